from __future__ import annotations

from typing import Dict, List, Tuple

from ..cir.model import Attribute, ClassModel, LineStyle, Member, Method, Relation, RelationKind
from .document import DEFAULT_NAMESPACE, Diagram
from .parser import is_positional_name

# Map CIR visibility to Mermaid glyphs
VISIBILITY_MAP = {
    "public": "+",
    "private": "-",
    "protected": "#",
    "package": "~",
    "unspecified": "",
}

# (kind, line) -> glyph, always tail on the left
RELATION_GLYPHS: Dict[Tuple[RelationKind, LineStyle], str] = {
    (RelationKind.INHERITANCE, LineStyle.SOLID): "--|>",
    (RelationKind.INHERITANCE, LineStyle.DOTTED): "..|>",
    (RelationKind.REALIZATION, LineStyle.SOLID): "..|>",
    (RelationKind.REALIZATION, LineStyle.DOTTED): "..|>",
    (RelationKind.COMPOSITION, LineStyle.SOLID): "--*",
    (RelationKind.COMPOSITION, LineStyle.DOTTED): "..*",
    (RelationKind.AGGREGATION, LineStyle.SOLID): "--o",
    (RelationKind.AGGREGATION, LineStyle.DOTTED): "..o",
    (RelationKind.ASSOCIATION, LineStyle.SOLID): "-->",
    (RelationKind.ASSOCIATION, LineStyle.DOTTED): "..>",
    (RelationKind.DEPENDENCY, LineStyle.SOLID): "..>",
    (RelationKind.DEPENDENCY, LineStyle.DOTTED): "..>",
    (RelationKind.LINK, LineStyle.SOLID): "--",
    (RelationKind.LINK, LineStyle.DOTTED): "..",
}

INDENT = "  "


def escape_generics(type_name: str) -> str:
    """List<String> -> List~String~"""
    return type_name.replace("<", "~").replace(">", "~")


def _format_attribute(attr: Attribute) -> str:
    out = VISIBILITY_MAP.get(attr.visibility, "") + attr.name
    if attr.data_type:
        out += f": {escape_generics(attr.data_type)}"
    if attr.is_static:
        out += "$"
    return out


def _format_method(method: Method) -> str:
    param_parts: List[str] = []
    for p in method.parameters:
        ptype = escape_generics(p.data_type) if p.data_type else ""
        if is_positional_name(p.name):
            param_parts.append(ptype or p.name)
        elif ptype:
            param_parts.append(f"{p.name}: {ptype}")
        else:
            param_parts.append(p.name)

    out = VISIBILITY_MAP.get(method.visibility, "") + f"{method.name}({', '.join(param_parts)})"
    if method.return_type:
        out += f" {escape_generics(method.return_type)}"
    if method.is_abstract:
        out += "*"
    if method.is_static:
        out += "$"
    return out


def format_member(member: Member) -> str:
    if isinstance(member, Method):
        return _format_method(member)
    return _format_attribute(member)


def _class_lines(model: ClassModel, depth: int) -> List[str]:
    pad = INDENT * depth
    header = f"class {model.name}"
    if model.generic:
        header += f"~{model.generic}~"

    lines = [f"{pad}{header} {{"]
    for annotation in model.annotations:
        lines.append(f"{pad}{INDENT}<<{annotation}>>")
    for member in model.members:
        lines.append(f"{pad}{INDENT}{format_member(member)}")
    lines.append(f"{pad}}}")
    return lines


def format_relation(relation: Relation) -> str:
    glyph = RELATION_GLYPHS[(relation.kind, relation.line)]
    parts = [relation.tail]
    if relation.cardinality_tail:
        parts.append(f'"{relation.cardinality_tail}"')
    parts.append(glyph)
    if relation.cardinality_head:
        parts.append(f'"{relation.cardinality_head}"')
    parts.append(relation.head)

    out = " ".join(parts)
    if relation.label:
        out += f" : {relation.label}"
    return out


# ======================================================================
#  CLASS DIAGRAM SERIALIZATION
# ======================================================================

def serialize_diagram(diagram: Diagram) -> str:
    """
    Diagram -> Mermaid classDiagram text.
    Default-namespace classes first (unwrapped), then named namespaces in
    name order, then relations in document order, then notes.
    """
    lines: List[str] = []

    if diagram.front_matter is not None:
        lines.append("---")
        if diagram.front_matter.raw:
            lines.append(diagram.front_matter.raw)
        lines.append("---")

    lines.append("classDiagram")
    if diagram.direction:
        lines.append(f"direction {diagram.direction}")

    # ---------- default namespace ----------
    default_ns = diagram.namespaces.get(DEFAULT_NAMESPACE)
    if default_ns is not None:
        for model in default_ns.classes.values():
            lines.append("")
            lines.extend(_class_lines(model, 0))

    # ---------- named namespaces ----------
    for ns_name in sorted(n for n in diagram.namespaces if n != DEFAULT_NAMESPACE):
        ns = diagram.namespaces[ns_name]
        lines.append("")
        lines.append(f"namespace {ns_name} {{")
        for model in ns.classes.values():
            lines.extend(_class_lines(model, 1))
        lines.append("}")

    # ---------- relations ----------
    if diagram.relations:
        lines.append("")
        for rel in diagram.relations:
            lines.append(format_relation(rel))

    if diagram.notes:
        lines.append("")
        lines.extend(diagram.notes)

    return "\n".join(lines) + "\n"
