from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple

import yaml  # type: ignore
from pydantic import BaseModel, ConfigDict, ValidationError

from .cir.model import RelationKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "umlink.yml"


class UmlinkConfig(BaseModel):
    """
    umlink.yml contents. Every value is a fully qualified annotation name,
    e.g. "com.example.uml.Skip".
    """
    model_config = ConfigDict(extra="ignore")

    skip: Optional[str] = None
    aggregate: Optional[str] = None
    compose: Optional[str] = None
    link: Optional[str] = None
    navigate: Optional[str] = None

    @classmethod
    def load_from_file(cls, path: Path) -> "UmlinkConfig":
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        return cls.model_validate(data or {})

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> Optional["UmlinkConfig"]:
        """
        Explicit path first, then umlink.yml in the working directory.
        A file that cannot be read or validated is reported and ignored.
        """
        if config_path is not None:
            path = Path(config_path)
        else:
            path = Path(DEFAULT_CONFIG_FILE)
            if not path.exists():
                return None

        try:
            config = cls.load_from_file(path)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.warning("Failed to load config from %s: %s", path, e)
            return None

        logger.info("Loaded configuration from %s", path)
        return config

    def merge_with_args(self, args: Any) -> "MergedConfig":
        """Command-line values win over file values, field by field."""
        def pick(name: str) -> Optional[str]:
            value = getattr(args, name, None)
            return value if value is not None else getattr(self, name)

        return MergedConfig(
            skip=pick("skip"),
            aggregate=pick("aggregate"),
            compose=pick("compose"),
            link=pick("link"),
            navigate=pick("navigate"),
        )


class MergedConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    skip: Optional[str] = None
    aggregate: Optional[str] = None
    compose: Optional[str] = None
    link: Optional[str] = None
    navigate: Optional[str] = None

    def relationship_kinds(self) -> List[Tuple[str, RelationKind]]:
        """Configured relationship annotations in matching priority order."""
        ordered = [
            (self.aggregate, RelationKind.AGGREGATION),
            (self.compose, RelationKind.COMPOSITION),
            (self.link, RelationKind.ASSOCIATION),
            (self.navigate, RelationKind.ASSOCIATION),
        ]
        return [(name, kind) for name, kind in ordered if name]
