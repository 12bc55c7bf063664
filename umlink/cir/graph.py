import networkx as nx # type: ignore
from dataclasses import asdict
from typing import Any, Dict, Iterator, List, Tuple

from .model import ClassModel, Relation


class CIRGraph:
    """
    Typed multi-graph of one linking run.
    Nodes: extracted classes (kind="Class", payload=ClassModel, namespace)
           and bare relation endpoints (kind="Ref") that have no definition.
    Edges: relation candidates, kept in the order they were produced.
    """
    def __init__(self) -> None:
        self.g = nx.MultiDiGraph()
        self._seq = 0

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def add_class(self, model: ClassModel, namespace: str) -> None:
        """
        Later definitions of the same name overwrite earlier ones, the
        namespace included.
        """
        self.g.add_node(
            model.name,
            kind="Class",
            payload=model,
            namespace=namespace,
            seq=self._next_seq(),
        )

    def add_relation(self, relation: Relation) -> None:
        for endpoint in (relation.tail, relation.head):
            if endpoint not in self.g:
                self.g.add_node(endpoint, kind="Ref")
        self.g.add_edge(
            relation.tail,
            relation.head,
            etype=relation.kind.value,
            payload=relation,
            order=self._next_seq(),
        )

    def classes(self) -> Iterator[Tuple[str, ClassModel]]:
        """(namespace, model) pairs in insertion order."""
        nodes = [
            data for _, data in self.g.nodes(data=True)
            if data.get("kind") == "Class"
        ]
        for data in sorted(nodes, key=lambda d: d["seq"]):
            yield data["namespace"], data["payload"]

    def relations(self) -> List[Relation]:
        edges = sorted(self.g.edges(data=True), key=lambda e: e[2]["order"])
        return [data["payload"] for _, _, data in edges]

    def to_debug_json(self) -> Dict[str, Any]:
        """
        Convert graph to JSON-like dict for debugging / API responses.
        """
        nodes = []
        for node_id, data in self.g.nodes(data=True):
            payload = data.get("payload")
            if isinstance(payload, ClassModel):
                attrs = {
                    "name": payload.name,
                    "annotations": list(payload.annotations),
                    "members": [
                        {"member": type(m).__name__, **asdict(m)} for m in payload.members
                    ],
                }
            else:
                attrs = {}
            nodes.append({
                "id": node_id,
                "kind": data.get("kind"),
                "namespace": data.get("namespace"),
                "attrs": attrs,
            })

        edges = []
        for src, dst, data in sorted(self.g.edges(data=True), key=lambda e: e[2]["order"]):
            rel: Relation = data["payload"]
            edges.append({
                "src": src,
                "dst": dst,
                "type": data.get("etype"),
                "line": rel.line.value,
                "cardinality_tail": rel.cardinality_tail,
                "cardinality_head": rel.cardinality_head,
                "label": rel.label,
            })

        return {"nodes": nodes, "edges": edges}
