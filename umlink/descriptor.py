"""
JVM descriptor decoding.

Turns field descriptors ("Ljava/lang/String;", "[I") and method descriptors
("(ILjava/lang/String;)V") into the short type names shown in a diagram.
Decoding never raises: unknown codes become PLACEHOLDER_TYPE and decoding
carries on with the rest of the string.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

VOID = "void"
PLACEHOLDER_TYPE = "Object"

PRIMITIVES = {
    "B": "byte",
    "C": "char",
    "D": "double",
    "F": "float",
    "I": "int",
    "J": "long",
    "S": "short",
    "Z": "boolean",
    "V": VOID,
}

ARRAY_MARKER = "["
OBJECT_MARKER = "L"
OBJECT_TERMINATOR = ";"


def _decode_unit(descriptor: str, start: int) -> Tuple[str, int]:
    """
    Decode exactly one type unit beginning at `start`.
    Returns (display_type, characters_consumed).
    """
    idx = start
    depth = 0
    while idx < len(descriptor) and descriptor[idx] == ARRAY_MARKER:
        depth += 1
        idx += 1

    if idx >= len(descriptor):
        # truncated: "[" with nothing after it, or an empty descriptor
        return PLACEHOLDER_TYPE + "[]" * depth, idx - start

    code = descriptor[idx]
    if code == OBJECT_MARKER:
        end = descriptor.find(OBJECT_TERMINATOR, idx)
        if end == -1:
            end = len(descriptor)
        class_path = descriptor[idx + 1:end]
        base = class_path.rsplit("/", 1)[-1] or PLACEHOLDER_TYPE
        idx = min(end + 1, len(descriptor))
    elif code in PRIMITIVES:
        base = PRIMITIVES[code]
        idx += 1
    else:
        base = PLACEHOLDER_TYPE
        idx += 1

    return base + "[]" * depth, idx - start


def decode_field(descriptor: str) -> str:
    """
    "I" -> "int", "[[Ljava/lang/String;" -> "String[][]".
    """
    if not descriptor:
        return PLACEHOLDER_TYPE
    return _decode_unit(descriptor, 0)[0]


def decode_method(descriptor: str) -> Tuple[List[str], str]:
    """
    "(ILjava/lang/String;)Ljava/lang/Object;" -> (["int", "String"], "Object")
    "()V" -> ([], "void")
    """
    params: List[str] = []
    if not descriptor.startswith("("):
        return params, VOID

    close = descriptor.find(")")
    if close == -1:
        close = len(descriptor)
    params_part = descriptor[1:close]
    return_part = descriptor[close + 1:]

    # shared cursor: each unit must consume exactly its own span
    idx = 0
    while idx < len(params_part):
        param_type, consumed = _decode_unit(params_part, idx)
        params.append(param_type)
        idx += consumed

    if not return_part:
        return params, VOID
    return params, _decode_unit(return_part, 0)[0]


def object_type_name(descriptor: str) -> Optional[str]:
    """
    Simple name of a plain object-reference descriptor, None for primitives
    and arrays. Only these descriptors can denote a relationship target.
    """
    if not descriptor.startswith(OBJECT_MARKER):
        return None
    return _decode_unit(descriptor, 0)[0]
