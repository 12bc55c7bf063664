"""
Mermaid classDiagram text -> Diagram.

Understands the subset the linker reads and writes: front-matter, the
classDiagram header, direction, namespace blocks, class blocks with
<<annotations>> and members, inline "Class : member" lines, relations with
optional cardinalities and label, and notes. Anything else is an error.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from ..cir.model import (
    Attribute,
    ClassModel,
    LineStyle,
    Member,
    Method,
    Parameter,
    Relation,
    RelationKind,
    Visibility,
)
from ..errors import DiagramParseError
from .document import DEFAULT_NAMESPACE, Diagram, FrontMatter

logger = logging.getLogger(__name__)

FRONT_MATTER_FENCE = "---"
HEADERS = ("classDiagram", "classDiagram-v2")
COMMENT_PREFIX = "%%"

VISIBILITY_BY_GLYPH: Dict[str, Visibility] = {
    "+": "public",
    "-": "private",
    "#": "protected",
    "~": "package",
}

STATIC_MARKER = "$"
ABSTRACT_MARKER = "*"

# glyph -> (kind, line style, points left)
RELATION_GLYPHS: Dict[str, Tuple[RelationKind, LineStyle, bool]] = {
    "--|>": (RelationKind.INHERITANCE, LineStyle.SOLID, False),
    "<|--": (RelationKind.INHERITANCE, LineStyle.SOLID, True),
    "..|>": (RelationKind.REALIZATION, LineStyle.DOTTED, False),
    "<|..": (RelationKind.REALIZATION, LineStyle.DOTTED, True),
    "--*": (RelationKind.COMPOSITION, LineStyle.SOLID, False),
    "*--": (RelationKind.COMPOSITION, LineStyle.SOLID, True),
    "..*": (RelationKind.COMPOSITION, LineStyle.DOTTED, False),
    "*..": (RelationKind.COMPOSITION, LineStyle.DOTTED, True),
    "--o": (RelationKind.AGGREGATION, LineStyle.SOLID, False),
    "o--": (RelationKind.AGGREGATION, LineStyle.SOLID, True),
    "..o": (RelationKind.AGGREGATION, LineStyle.DOTTED, False),
    "o..": (RelationKind.AGGREGATION, LineStyle.DOTTED, True),
    "-->": (RelationKind.ASSOCIATION, LineStyle.SOLID, False),
    "<--": (RelationKind.ASSOCIATION, LineStyle.SOLID, True),
    "..>": (RelationKind.DEPENDENCY, LineStyle.DOTTED, False),
    "<..": (RelationKind.DEPENDENCY, LineStyle.DOTTED, True),
    "--": (RelationKind.LINK, LineStyle.SOLID, False),
    "..": (RelationKind.LINK, LineStyle.DOTTED, False),
}

DIRECTION_RE = re.compile(r"^direction\s+(TB|TD|BT|LR|RL)$")
NAMESPACE_RE = re.compile(r"^namespace\s+([\w.$-]+)\s*\{$")
CLASS_RE = re.compile(r"^class\s+([\w.$-]+)(?:~([^~]+)~)?\s*(\{\s*\}?)?$")
ANNOTATION_RE = re.compile(r"^<<\s*([\w-]+)\s*>>$")
ANNOTATION_STATEMENT_RE = re.compile(r"^<<\s*([\w-]+)\s*>>\s+([\w.$-]+)$")
INLINE_MEMBER_RE = re.compile(r"^([\w.$-]+)\s*:\s*(.+)$")
RELATION_RE = re.compile(
    r'^([\w.$-]+)\s+(?:"([^"]*)"\s+)?(\S+)\s+(?:"([^"]*)"\s+)?([\w.$-]+)(?:\s*:\s*(.*))?$'
)
METHOD_RE = re.compile(r"^([^(]+)\((.*)\)(.*)$")
POSITIONAL_NAME_RE = re.compile(r"^arg\d+$")
NOTE_RE = re.compile(r"^note\s")


# ---------------- Members ----------------

def _split_classifiers(text: str) -> Tuple[str, bool, bool]:
    """Strip trailing $ / * markers. Returns (rest, is_static, is_abstract)."""
    is_static = is_abstract = False
    text = text.rstrip()
    while text and text[-1] in (STATIC_MARKER, ABSTRACT_MARKER):
        if text[-1] == STATIC_MARKER:
            is_static = True
        else:
            is_abstract = True
        text = text[:-1].rstrip()
    return text, is_static, is_abstract


def _parse_parameters(text: str) -> List[Parameter]:
    params: List[Parameter] = []
    for i, raw in enumerate(p.strip() for p in text.split(",")):
        if not raw:
            continue
        if ":" in raw:
            name, ptype = (s.strip() for s in raw.split(":", 1))
            params.append(Parameter(name=name, data_type=ptype or None))
        elif " " in raw:
            # Mermaid's native "Type name" order
            ptype, name = raw.rsplit(" ", 1)
            params.append(Parameter(name=name, data_type=ptype.strip()))
        else:
            # type only: the name was positional
            params.append(Parameter(name=f"arg{i}", data_type=raw))
    return params


def parse_member(line: str) -> Optional[Member]:
    """
    One member line. Accepts both "name: Type" and "Type name" forms.

    "+getName(id: int) String$"  -> static Method
    "-count: int"                -> Attribute
    """
    text = line.strip().rstrip(";")
    if not text:
        return None

    visibility: Visibility = "unspecified"
    if text[0] in VISIBILITY_BY_GLYPH:
        visibility = VISIBILITY_BY_GLYPH[text[0]]
        text = text[1:].strip()

    text, is_static, is_abstract = _split_classifiers(text)
    if not text:
        return None

    m = METHOD_RE.match(text)
    if m:
        return Method(
            name=m.group(1).strip(),
            parameters=_parse_parameters(m.group(2)),
            return_type=m.group(3).strip() or None,
            visibility=visibility,
            is_static=is_static,
            is_abstract=is_abstract,
        )

    if ":" in text:
        name, data_type = (s.strip() for s in text.split(":", 1))
    elif " " in text:
        data_type, name = (s.strip() for s in text.rsplit(" ", 1))
    else:
        name, data_type = text, ""

    return Attribute(
        name=name,
        data_type=data_type or None,
        visibility=visibility,
        is_static=is_static,
    )


def is_positional_name(name: str) -> bool:
    return bool(POSITIONAL_NAME_RE.match(name))


# ---------------- Relations ----------------

def parse_relation(line: str) -> Optional[Relation]:
    m = RELATION_RE.match(line)
    if not m:
        return None

    tail, tail_card, glyph, head_card, head, label = m.groups()
    spec = RELATION_GLYPHS.get(glyph)
    if spec is None:
        return None

    kind, line_style, points_left = spec
    if points_left:
        tail, head = head, tail
        tail_card, head_card = head_card, tail_card

    return Relation(
        tail=tail,
        head=head,
        kind=kind,
        line=line_style,
        cardinality_tail=tail_card or None,
        cardinality_head=head_card or None,
        label=(label or "").strip() or None,
    )


# ---------------- Document ----------------

def _split_front_matter(lines: List[str]) -> Tuple[Optional[FrontMatter], int]:
    """Returns (front matter, index of the first line after it)."""
    if not lines or lines[0].strip() != FRONT_MATTER_FENCE:
        return None, 0

    for idx in range(1, len(lines)):
        if lines[idx].strip() == FRONT_MATTER_FENCE:
            raw = "\n".join(lines[1:idx])
            return FrontMatter.parse(raw, line_no=1), idx + 1

    raise DiagramParseError("unterminated front-matter", 1)


def parse_mermaid(text: str) -> Diagram:
    """Parse a Mermaid class diagram. Raises DiagramParseError."""
    lines = text.lstrip("\ufeff").splitlines()
    front_matter, idx = _split_front_matter(lines)
    diagram = Diagram(front_matter=front_matter)

    # header
    while idx < len(lines):
        stripped = lines[idx].strip()
        idx += 1
        if not stripped or stripped.startswith(COMMENT_PREFIX):
            continue
        if stripped in HEADERS:
            break
        raise DiagramParseError(f"expected 'classDiagram', found {stripped!r}", idx)
    else:
        raise DiagramParseError("missing 'classDiagram' header")

    current_namespace: Optional[str] = None
    current_class: Optional[ClassModel] = None

    def ensure_class(name: str) -> ClassModel:
        ns = diagram.namespace(current_namespace or DEFAULT_NAMESPACE)
        if name not in ns.classes:
            ns.classes[name] = ClassModel(name=name)
        return ns.classes[name]

    for line_no, raw in enumerate(lines[idx:], start=idx + 1):
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue

        # ---------- inside a class body ----------
        if current_class is not None:
            if line == "}":
                current_class = None
                continue
            annot = ANNOTATION_RE.match(line)
            if annot:
                current_class.annotations.append(annot.group(1))
                continue
            member = parse_member(line)
            if member is not None:
                current_class.members.append(member)
            continue

        m = DIRECTION_RE.match(line)
        if m:
            diagram.direction = m.group(1)
            continue

        if NOTE_RE.match(line):
            diagram.notes.append(line)
            continue

        m = NAMESPACE_RE.match(line)
        if m:
            if current_namespace is not None:
                raise DiagramParseError("nested namespaces are not supported", line_no)
            current_namespace = m.group(1)
            diagram.namespace(current_namespace)
            continue

        if line == "}":
            if current_namespace is None:
                raise DiagramParseError("unexpected '}'", line_no)
            current_namespace = None
            continue

        m = CLASS_RE.match(line)
        if m:
            name, generic, brace = m.groups()
            cls = ensure_class(name)
            if generic:
                cls.generic = generic
            if brace and brace.replace(" ", "") == "{":
                current_class = cls
            continue

        m = ANNOTATION_STATEMENT_RE.match(line)
        if m:
            ensure_class(m.group(2)).annotations.append(m.group(1))
            continue

        rel = parse_relation(line)
        if rel is not None:
            diagram.relations.append(rel)
            continue

        m = INLINE_MEMBER_RE.match(line)
        if m:
            member = parse_member(m.group(2))
            if member is not None:
                ensure_class(m.group(1)).members.append(member)
            continue

        raise DiagramParseError(f"unrecognized statement {line!r}", line_no)

    if current_class is not None:
        raise DiagramParseError(f"unterminated class block '{current_class.name}'")
    if current_namespace is not None:
        raise DiagramParseError(f"unterminated namespace '{current_namespace}'")

    logger.debug(
        "Parsed diagram: %d namespace(s), %d relation(s)",
        len(diagram.namespaces),
        len(diagram.relations),
    )
    return diagram
