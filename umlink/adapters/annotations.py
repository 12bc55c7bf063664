"""
Annotation lookups on class, field and method records.

Annotations are matched by fully qualified name ("com.example.Skip") against
both the runtime-visible and the class-retention (runtime-invisible) lists.
Element values that point at missing constants are treated as absent.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional, Protocol, Tuple

from javatools import JavaAnnotation, UnknownConstantPoolTagException  # type: ignore

DEFAULT_CARDINALITY = "1"

SELF_CARD = "selfCard"
LABEL = "label"
OTHER_CARD = "otherCard"

# element_value tags whose data is a constant pool index
CONSTANT_TAGS = "BCDFIJSZs"


class Annotated(Protocol):
    def get_annotations(self) -> Tuple[JavaAnnotation, ...]: ...

    def get_invisible_annotations(self) -> Tuple[JavaAnnotation, ...]: ...


def normalize_type_name(descriptor: str) -> str:
    """
    "Lcom/example/Skip;" -> "com.example.Skip"
    """
    name = descriptor
    if name.startswith("L"):
        name = name[1:]
    if name.endswith(";"):
        name = name[:-1]
    return name.replace("/", ".")


def _iter_annotations(owner: Annotated) -> Iterator[Tuple[str, JavaAnnotation]]:
    for annotation in owner.get_annotations() + owner.get_invisible_annotations():
        yield normalize_type_name(annotation.cpool.deref_const(annotation.type_ref)), annotation


def find_annotation(owner: Annotated, target: Optional[str]) -> Optional[JavaAnnotation]:
    """First annotation instance on `owner` whose type is `target`."""
    if not target:
        return None
    for type_name, annotation in _iter_annotations(owner):
        if type_name == target:
            return annotation
    return None


def has_annotation(owner: Annotated, target: Optional[str]) -> bool:
    return find_annotation(owner, target) is not None


def element_value_as_string(annotation: JavaAnnotation, value: Tuple[str, Any]) -> Optional[str]:
    """
    Only constant element values are understood; enums, classes, nested
    annotations and arrays yield None. Booleans and chars come out in their
    stored integer form ("1", "0", "65").
    """
    tag, data = value
    if tag not in CONSTANT_TAGS:
        return None
    try:
        constant = annotation.cpool.deref_const(data)
    except (IndexError, UnknownConstantPoolTagException):
        return None
    if isinstance(constant, str):
        return constant
    if isinstance(constant, (int, float)):
        return str(constant)
    return None


def relationship_params(owner: Annotated, target: Optional[str]) -> Optional[Tuple[str, str, str]]:
    """
    (selfCard, label, otherCard) read off the first `target` annotation on
    `owner`, or None when it is not annotated. Cardinalities default to "1",
    the label to "".
    """
    annotation = find_annotation(owner, target)
    if annotation is None:
        return None

    params = {SELF_CARD: DEFAULT_CARDINALITY, LABEL: "", OTHER_CARD: DEFAULT_CARDINALITY}
    for param_name, value in annotation.items():
        if param_name not in params:
            continue
        text = element_value_as_string(annotation, value)
        if text is not None:
            params[param_name] = text

    return params[SELF_CARD], params[LABEL], params[OTHER_CARD]
