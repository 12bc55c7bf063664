"""
Namespace grouping.

Packages come in internal form ("com/example/model"). Namespaces use "." as
their path separator and the default namespace is the empty string.
"""

from __future__ import annotations

from typing import Iterable, List

PACKAGE_SEPARATOR = "/"
NAMESPACE_SEPARATOR = "."
DEFAULT_NAMESPACE = ""


def to_namespace(package: str) -> str:
    return package.replace(PACKAGE_SEPARATOR, NAMESPACE_SEPARATOR)


def common_prefix(packages: Iterable[str]) -> str:
    """
    Longest run of leading path segments shared by every package.

    ["com/example/a", "com/example/b"] -> "com/example"
    """
    split = [p.split(PACKAGE_SEPARATOR) for p in packages]
    if not split:
        return ""

    prefix: List[str] = []
    for idx, segment in enumerate(split[0]):
        if all(len(parts) > idx and parts[idx] == segment for parts in split[1:]):
            prefix.append(segment)
        else:
            break

    return PACKAGE_SEPARATOR.join(prefix)


def relative_namespace(base: str, full: str) -> str:
    """Namespace of package `full` once the common `base` prefix is removed."""
    if not base:
        return to_namespace(full)
    if full == base:
        return DEFAULT_NAMESPACE

    boundary = base + PACKAGE_SEPARATOR
    if full.startswith(boundary):
        return to_namespace(full[len(boundary):])

    # not under base at all
    return to_namespace(full)
