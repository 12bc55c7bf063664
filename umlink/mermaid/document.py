from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml  # type: ignore

from ..cir.model import ClassModel, Relation
from ..errors import DiagramParseError

DEFAULT_NAMESPACE = ""

# front-matter key holding the linker's own directives
DIRECTIVES_KEY = "umlink"


@dataclass
class FrontMatter:
    """
    YAML block between the leading "---" fences.
    `raw` is written back untouched; `data` is only read.
    """
    raw: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, raw: str, line_no: Optional[int] = None) -> "FrontMatter":
        try:
            loaded = yaml.safe_load(raw) if raw.strip() else None
        except yaml.YAMLError as e:
            raise DiagramParseError(f"invalid front-matter: {e}", line_no) from e
        return cls(raw=raw, data=loaded if isinstance(loaded, dict) else {})

    def directives(self) -> Dict[str, Any]:
        section = self.data.get(DIRECTIVES_KEY)
        return section if isinstance(section, dict) else {}


@dataclass
class Namespace:
    classes: Dict[str, ClassModel] = field(default_factory=dict)


@dataclass
class Diagram:
    """
    In-memory class diagram. Namespace "" is the default (unwrapped) one.
    """
    front_matter: Optional[FrontMatter] = None
    direction: Optional[str] = None
    namespaces: Dict[str, Namespace] = field(default_factory=dict)
    relations: List[Relation] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    def namespace(self, name: str) -> Namespace:
        return self.namespaces.setdefault(name, Namespace())

    def add_class(self, namespace: str, model: ClassModel) -> None:
        # same name in the same namespace: last one wins
        self.namespace(namespace).classes[model.name] = model

    def classes(self) -> Iterator[Tuple[str, ClassModel]]:
        for ns_name, ns in self.namespaces.items():
            for model in ns.classes.values():
                yield ns_name, model

    def directives(self) -> Dict[str, Any]:
        if self.front_matter is None:
            return {}
        return self.front_matter.directives()
