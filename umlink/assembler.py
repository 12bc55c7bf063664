"""
Diagram assembly: decoded class records + existing diagram -> linked diagram.

Classes in the input diagram are always replaced by the ones extracted from
the class records. Front-matter, direction, notes and hand-written relations
are kept, and extracted relations are appended after them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from javatools import JavaClassInfo  # type: ignore
from pydantic import BaseModel, StrictStr, ValidationError

from .adapters.classfile_adapter import ClassfileAdapter
from .cir.graph import CIRGraph
from .classinfo import class_package
from .config import MergedConfig
from .mermaid.document import DEFAULT_NAMESPACE, Diagram
from .namespaces import common_prefix, relative_namespace, to_namespace

logger = logging.getLogger(__name__)

GROUP_PACKAGE = "groupPackage"
SELECT = "select"
PACKAGE_FIELD = "package"


class SelectFilter(BaseModel):
    """One `select` entry in the front-matter: {field: package, pattern: com.example}."""
    field: StrictStr
    pattern: StrictStr


# ---------------- Front-matter directives ----------------

def should_group_by_package(directives: Mapping[str, Any]) -> bool:
    # only a real boolean true switches grouping on
    return directives.get(GROUP_PACKAGE) is True


def select_filters(directives: Mapping[str, Any]) -> Optional[List[SelectFilter]]:
    """
    None when there is no `select` directive (include everything), otherwise
    the well-formed filters. A malformed directive yields [] (include nothing).
    """
    if SELECT not in directives:
        return None

    raw = directives[SELECT]
    if not isinstance(raw, list):
        logger.warning("Front-matter 'select' is not a list; no classes will be included")
        return []

    filters: List[SelectFilter] = []
    for entry in raw:
        try:
            filters.append(SelectFilter.model_validate(entry))
        except ValidationError:
            logger.warning("Ignoring malformed select filter: %r", entry)
    return filters


def should_include_classfile(filters: Optional[List[SelectFilter]], classfile: JavaClassInfo) -> bool:
    if filters is None:
        return True

    package = to_namespace(class_package(classfile))
    for f in filters:
        if f.field != PACKAGE_FIELD:
            continue
        if f.pattern == package:
            return True
    return False


# ---------------- Assembly ----------------

def _surviving(
    classfiles: Mapping[str, JavaClassInfo],
    filters: Optional[List[SelectFilter]],
    adapter: ClassfileAdapter,
) -> List[Tuple[str, JavaClassInfo]]:
    survivors: List[Tuple[str, JavaClassInfo]] = []
    for class_name in sorted(classfiles):
        classfile = classfiles[class_name]
        if classfile.is_annotation():
            logger.debug("Skipping annotation type %s", class_name)
            continue
        if not should_include_classfile(filters, classfile):
            logger.debug("Skipping %s: not selected", class_name)
            continue
        if adapter.is_skipped(classfile):
            logger.debug("Skipping %s: carries the skip annotation", class_name)
            continue
        survivors.append((class_name, classfile))
    return survivors


def build_cir_graph(
    classfiles: Mapping[str, JavaClassInfo],
    directives: Mapping[str, Any],
    config: MergedConfig,
) -> CIRGraph:
    """
    Extract class models and relation candidates, in class-name order.
    Namespaces are assigned here when `groupPackage` is on.
    """
    adapter = ClassfileAdapter(
        skip_annotation=config.skip,
        relationship_annotations=config.relationship_kinds(),
    )
    filters = select_filters(directives)
    survivors = _surviving(classfiles, filters, adapter)

    group = should_group_by_package(directives)
    base = ""
    if group:
        packages = [class_package(cf) for _, cf in survivors]
        base = common_prefix(p for p in packages if p)
        logger.debug("Grouping by package under base '%s'", base)

    graph = CIRGraph()
    for class_name, classfile in survivors:
        namespace = relative_namespace(base, class_package(classfile)) if group else DEFAULT_NAMESPACE
        graph.add_class(adapter.to_class_model(classfile, class_name), namespace)

        for relation in adapter.relation_candidates(classfile, class_name):
            graph.add_relation(relation)

    return graph


def merge_into_diagram(graph: CIRGraph, diagram: Diagram) -> Diagram:
    """Replace the diagram's classes with the graph's and append its relations."""
    diagram.namespaces.clear()
    for namespace, model in graph.classes():
        diagram.add_class(namespace, model)
    diagram.relations.extend(graph.relations())
    return diagram


def link_diagram(
    classfiles: Mapping[str, JavaClassInfo],
    diagram: Diagram,
    config: MergedConfig,
) -> Tuple[Diagram, CIRGraph]:
    graph = build_cir_graph(classfiles, diagram.directives(), config)
    merge_into_diagram(graph, diagram)

    counts: Dict[str, int] = {}
    for ns, _ in diagram.classes():
        counts[ns] = counts.get(ns, 0) + 1
    logger.info(
        "Linked %d class(es) into %d namespace(s), %d new relation(s)",
        sum(counts.values()),
        len(counts),
        len(graph.relations()),
    )
    return diagram, graph
