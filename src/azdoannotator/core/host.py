from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List
from urllib.parse import urlparse

from azdoannotator.storage.config import AppConfig

DEFAULT_AZURE_HOST = "dev.azure.com"


def normalize_host(value: str) -> str:
    """
    Reduce a user-provided host value to a bare netloc.

    Case is preserved since hosts are matched exactly.

    Examples:
    - "https://dev.azure.com" -> "dev.azure.com"
    - "example.com/tfs" -> "example.com"
    - "https://example.com:8080/tfs/org" -> "example.com:8080"
    """
    v = (value or "").strip()
    if not v:
        return ""
    if "://" in v:
        u = urlparse(v)
        v = u.netloc or ""
    if "/" in v:
        v = v.split("/", 1)[0]
    return v.rsplit("@", 1)[-1]


@dataclass(frozen=True)
class HostRegistry:
    hosts: FrozenSet[str]

    @staticmethod
    def from_hosts(hosts: Iterable[str] = ()) -> "HostRegistry":
        return HostRegistry(hosts=frozenset([DEFAULT_AZURE_HOST, *(h for h in hosts if h)]))

    @staticmethod
    def from_config(cfg: AppConfig) -> "HostRegistry":
        return HostRegistry.from_hosts(cfg.azure_hosts())

    def is_recognized(self, candidate_host: str) -> bool:
        return candidate_host in self.hosts

    def sorted_hosts(self) -> List[str]:
        return sorted(self.hosts)
