from .document import DEFAULT_NAMESPACE, Diagram, FrontMatter, Namespace
from .parser import parse_member, parse_mermaid, parse_relation
from .serializer import serialize_diagram

__all__ = [
    "DEFAULT_NAMESPACE",
    "Diagram",
    "FrontMatter",
    "Namespace",
    "parse_member",
    "parse_mermaid",
    "parse_relation",
    "serialize_diagram",
]
