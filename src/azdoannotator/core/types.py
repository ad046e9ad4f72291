from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

ANNOTATION_AZURE_HOST_ORG = "dev.azure.com/host-org"
ANNOTATION_AZURE_PROJECT_REPO = "dev.azure.com/project-repo"

# Backstage-style catalog entity: {"apiVersion", "kind", "metadata": {...}, ...}
Entity = Dict[str, Any]


@dataclass(frozen=True)
class LocationSpec:
    type: str
    target: str


@dataclass(frozen=True)
class ParsedLocation:
    """
    Identity recovered from an Azure DevOps repository URL.

    `prefix` holds the on-premises collection path segments (e.g. ("tfs",)),
    empty for dev.azure.com URLs.
    """

    host: str
    organization: str
    project: str
    repository: str
    prefix: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def host_org(self) -> str:
        return "/".join([self.host, *self.prefix, self.organization])

    @property
    def project_repo(self) -> str:
        return f"{self.project}/{self.repository}"

    def annotations(self) -> Dict[str, str]:
        return {
            ANNOTATION_AZURE_HOST_ORG: self.host_org,
            ANNOTATION_AZURE_PROJECT_REPO: self.project_repo,
        }
