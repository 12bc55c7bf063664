"""
Collect .class files from include paths into a name -> JavaClassInfo store.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from javatools import JavaClassInfo  # type: ignore

from .classinfo import describe, read_class
from .errors import ClassFormatError, DuplicateClassError, IncludePathError

logger = logging.getLogger(__name__)

CLASSFILE_SUFFIX = ".class"

ClassStore = Dict[str, JavaClassInfo]


def class_name_from_stem(stem: str) -> Optional[str]:
    """
    "Computer" -> "Computer", "Computer$State" -> "Computer.State",
    "Computer$1" -> None (anonymous classes are not diagrammed).
    """
    if "$" in stem:
        suffix = stem.rsplit("$", 1)[1]
        if suffix == "" or suffix.isdigit():
            return None
        return stem.replace("$", ".")
    return stem


def load_classfile(path: Path) -> JavaClassInfo:
    """Raises OSError when unreadable, ClassFormatError when not a class file."""
    return read_class(path.read_bytes())


def add_classfile(store: ClassStore, class_name: str, classfile: JavaClassInfo, source: Optional[str] = None) -> None:
    if class_name in store:
        raise DuplicateClassError(class_name, source)
    store[class_name] = classfile
    logger.debug("Loaded %s from %s: %s", class_name, source, describe(classfile))


def load_class_bytes(store: ClassStore, file_name: str, data: bytes) -> Optional[str]:
    """
    Decode one in-memory .class payload named like its file ("Foo$Bar.class").
    Returns the class name it was stored under, or None when it was skipped.
    Raises ClassFormatError for undecodable data.
    """
    stem = Path(file_name).name
    if stem.endswith(CLASSFILE_SUFFIX):
        stem = stem[: -len(CLASSFILE_SUFFIX)]

    class_name = class_name_from_stem(stem)
    if class_name is None:
        logger.debug("Skipping anonymous class %s", file_name)
        return None

    add_classfile(store, class_name, read_class(data), source=file_name)
    return class_name


def _load_file(store: ClassStore, path: Path) -> None:
    if path.suffix != CLASSFILE_SUFFIX:
        return

    class_name = class_name_from_stem(path.stem)
    if class_name is None:
        logger.debug("Skipping anonymous class %s", path)
        return

    try:
        classfile = load_classfile(path)
    except ClassFormatError as e:
        logger.warning("Found an include file with extension .class but failed to parse '%s': %s", path, e)
        return

    add_classfile(store, class_name, classfile, source=str(path))


def load_classfiles(store: ClassStore, include_path: Union[str, Path]) -> None:
    """
    Load one .class file, or every .class file under a directory (recursive,
    sorted). Unparseable class files are skipped with a warning; everything
    else that goes wrong is raised.
    """
    path = Path(include_path)
    if not path.exists():
        raise IncludePathError(f"Missing include path {path}")

    if path.is_dir():
        for child in sorted(path.iterdir()):
            load_classfiles(store, child)
    elif path.is_file():
        _load_file(store, path)
    else:
        raise IncludePathError(f"Include path {path} is neither a file nor a directory")


def load_all(include_paths: List[Union[str, Path]]) -> ClassStore:
    store: ClassStore = {}
    for include_path in include_paths:
        load_classfiles(store, include_path)
    logger.info("Loaded %d class file(s)", len(store))
    return store
