from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional, Union

Visibility = Literal["public", "private", "protected", "package", "unspecified"]

# class kind annotations, rendered as <<...>>
INTERFACE = "interface"
ENUMERATION = "enumeration"
ABSTRACT = "abstract"


@dataclass
class Attribute:
    name: str
    data_type: Optional[str] = None   # None renders no ": Type" part (enum constants)
    visibility: Visibility = "package"
    is_static: bool = False


@dataclass
class Parameter:
    name: str
    data_type: Optional[str] = None


@dataclass
class Method:
    name: str
    parameters: List[Parameter] = field(default_factory=list)
    return_type: Optional[str] = None  # None == void
    visibility: Visibility = "package"
    is_static: bool = False
    is_abstract: bool = False


Member = Union[Attribute, Method]


@dataclass
class ClassModel:
    name: str
    annotations: List[str] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)
    generic: Optional[str] = None     # only ever set from hand-authored diagrams


class RelationKind(str, Enum):
    INHERITANCE = "inheritance"
    REALIZATION = "realization"
    COMPOSITION = "composition"
    AGGREGATION = "aggregation"
    ASSOCIATION = "association"
    DEPENDENCY = "dependency"
    LINK = "link"


class LineStyle(str, Enum):
    SOLID = "solid"
    DOTTED = "dotted"


@dataclass
class Relation:
    """
    tail -> head. For extracted relations the tail is the class that declares
    the superclass / interface / annotated field and the head is the target.
    """
    tail: str
    head: str
    kind: RelationKind
    line: LineStyle = LineStyle.SOLID
    cardinality_tail: Optional[str] = None
    cardinality_head: Optional[str] = None
    label: Optional[str] = None
