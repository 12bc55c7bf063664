from .graph import CIRGraph
from .model import Attribute, ClassModel, LineStyle, Member, Method, Parameter, Relation, RelationKind

__all__ = [
    "Attribute",
    "CIRGraph",
    "ClassModel",
    "LineStyle",
    "Member",
    "Method",
    "Parameter",
    "Relation",
    "RelationKind",
]
