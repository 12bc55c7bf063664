from __future__ import annotations


class UmlinkError(Exception):
    """Base error for everything the linker raises on purpose."""


class ClassFormatError(UmlinkError):
    """A .class payload could not be decoded."""


class IncludePathError(UmlinkError):
    """An include path is missing or is neither a file nor a directory."""


class DuplicateClassError(UmlinkError):
    """Two inputs resolved to the same class name."""

    def __init__(self, class_name: str, source: str | None = None) -> None:
        self.class_name = class_name
        self.source = source
        where = f" (from {source})" if source else ""
        super().__init__(f"Duplicate class name '{class_name}'{where}; all class names must be unique")


class DiagramParseError(UmlinkError):
    """The diagram text is not a class diagram we understand."""

    def __init__(self, message: str, line_no: int | None = None) -> None:
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class OutputPathError(UmlinkError):
    """The output destination cannot be used."""
