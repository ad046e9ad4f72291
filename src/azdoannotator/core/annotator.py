from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping, MutableMapping, Optional, Union

from azdoannotator.core.host import HostRegistry
from azdoannotator.core.location_parser import parse_azure_location
from azdoannotator.core.types import Entity, LocationSpec
from azdoannotator.storage.config import AppConfig, parse_config

logger = logging.getLogger(__name__)


def _fold_kind(kind: Any) -> str:
    return str(kind or "").casefold()


@dataclass(frozen=True)
class AzureDevOpsAnnotatorProcessor:
    """
    Adds `dev.azure.com/host-org` and `dev.azure.com/project-repo` annotations
    to catalog entities sourced from Azure DevOps repositories.
    """

    registry: HostRegistry
    kinds: Optional[FrozenSet[str]] = None  # case-folded; None processes every kind

    @staticmethod
    def from_config(
        config: Union[AppConfig, Mapping[str, Any], None],
        kinds: Optional[Iterable[str]] = None,
    ) -> "AzureDevOpsAnnotatorProcessor":
        cfg = parse_config(config)
        if kinds is None:
            kinds = cfg.annotator.kinds
        registry = HostRegistry.from_config(cfg)
        logger.info("Azure DevOps hosts: %s", ", ".join(registry.sorted_hosts()))
        return AzureDevOpsAnnotatorProcessor(
            registry=registry,
            kinds=frozenset(_fold_kind(k) for k in kinds) if kinds is not None else None,
        )

    def get_processor_name(self) -> str:
        return "AzureDevOpsAnnotatorProcessor"

    def applies_to(self, entity: Entity) -> bool:
        if self.kinds is None:
            return True
        return _fold_kind(entity.get("kind")) in self.kinds

    def annotations_for(self, target: str) -> Optional[Dict[str, str]]:
        parsed = parse_azure_location(target, self.registry)
        return parsed.annotations() if parsed else None

    def pre_process_entity(self, entity: Entity, location: LocationSpec) -> Entity:
        if not self.applies_to(entity):
            return entity
        if location.type != "url":
            return entity

        computed = self.annotations_for(location.target)
        if not computed:
            return entity

        metadata = entity.get("metadata")
        if metadata is None:
            metadata = entity["metadata"] = {}
        if not isinstance(metadata, MutableMapping):
            return entity
        annotations = metadata.get("annotations")
        if annotations is None:
            annotations = metadata["annotations"] = {}
        if not isinstance(annotations, MutableMapping):
            return entity

        for key, value in computed.items():
            if key in annotations:
                if annotations[key] != value:
                    logger.debug("Keeping existing %s=%r (computed %r)", key, annotations[key], value)
                continue
            annotations[key] = value
            logger.debug("Annotated %s with %s=%r", metadata.get("name"), key, value)
        return entity
