"""Link compiled Java classes into Mermaid class diagrams."""

from .assembler import build_cir_graph, link_diagram
from .config import MergedConfig, UmlinkConfig
from .mermaid import Diagram, parse_mermaid, serialize_diagram

__version__ = "0.1.0"

__all__ = [
    "Diagram",
    "MergedConfig",
    "UmlinkConfig",
    "build_cir_graph",
    "link_diagram",
    "parse_mermaid",
    "serialize_diagram",
]
