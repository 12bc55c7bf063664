"""
Class records are javatools' JavaClassInfo. This module loads them with every
constant the linker dereferences checked up front, and decodes the one
attribute javatools leaves as raw bytes (MethodParameters).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from javatools import (  # type: ignore
    ClassUnpackException,
    JavaClassInfo,
    JavaMemberInfo,
    Unimplemented,
    UnknownConstantPoolTagException,
    UnpackException,
    unpack_class,
)
from javatools.pack import compile_struct, unpack  # type: ignore

from .errors import ClassFormatError

METHOD_PARAMETERS = "MethodParameters"

_B = compile_struct(">B")
_HH = compile_struct(">HH")

# what javatools raises for malformed data, eagerly or on a lazy dereference
UNPACK_ERRORS = (
    ClassUnpackException,
    UnpackException,
    UnknownConstantPoolTagException,
    Unimplemented,
    IndexError,
)


def class_package(info: JavaClassInfo) -> str:
    """Internal package path ("com/example"), "" for the default package."""
    name = info.get_this()
    return name.rsplit("/", 1)[0] if "/" in name else ""


def method_parameter_names(method: JavaMemberInfo) -> Optional[List[Optional[str]]]:
    """
    Names recorded by `javac -parameters`, in declaration order. A slot
    without a name is None. Returns None when the attribute is absent.
    """
    buff = method.get_attribute(METHOD_PARAMETERS)
    if buff is None:
        return None

    with unpack(buff) as up:
        (count,) = up.unpack_struct(_B)
        entries = [up.unpack_struct(_HH) for _i in range(count)]

    return [method.deref_const(name_ref) if name_ref else None for name_ref, _flags in entries]


def _check_references(info: JavaClassInfo) -> None:
    if not isinstance(info.get_this(), str):
        raise ClassFormatError("this_class does not name a class")
    info.get_super()
    info.get_interfaces()

    owners: List[Any] = [info]
    owners.extend(info.fields)
    owners.extend(info.methods)
    for owner in owners:
        for annotation in owner.get_annotations() + owner.get_invisible_annotations():
            annotation.cpool.deref_const(annotation.type_ref)

    for member in info.fields + info.methods:
        member.get_name()
        member.get_descriptor()
    for method in info.methods:
        method_parameter_names(method)


def read_class(data: bytes) -> JavaClassInfo:
    """Unpack one .class payload. Raises ClassFormatError on bad input."""
    try:
        info = unpack_class(data)
        _check_references(info)
    except UNPACK_ERRORS as e:
        raise ClassFormatError(str(e) or type(e).__name__) from e
    return info


def describe(info: JavaClassInfo) -> Dict[str, Any]:
    """Small debug summary used in log lines."""
    major, minor = info.get_version()
    return {
        "name": info.get_this(),
        "version": f"{major}.{minor}",
        "fields": len(info.fields),
        "methods": len(info.methods),
    }
