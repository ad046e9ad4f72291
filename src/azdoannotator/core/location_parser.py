from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlparse

from azdoannotator.core.host import HostRegistry
from azdoannotator.core.types import ParsedLocation

logger = logging.getLogger(__name__)

GIT_MARKER = "_git"


def _host_candidates(authority: str) -> List[str]:
    # most specific first: "example.com:8080", then "example.com"
    candidates = [authority]
    host, sep, port = authority.rpartition(":")
    if sep and host and port.isdigit() and not authority.endswith("]"):
        candidates.append(host)
    return candidates


def parse_azure_location(target: str, registry: HostRegistry) -> Optional[ParsedLocation]:
    """
    Recover host/organization/project/repository from an Azure DevOps git URL.

    Supported shapes:
    - https://dev.azure.com/{org}/{project}/_git/{repo}
    - https://{host}/{org}/{project}/_git/{repo}
    - https://{host}/{collection...}/{org}/{project}/_git/{repo}

    Anything after the repository segment, the query string and the fragment
    are ignored. Returns None when the URL is not a recognized Azure DevOps
    repository URL.
    """
    try:
        u = urlparse((target or "").strip())
    except ValueError:
        logger.debug("Unparsable location %r", target)
        return None
    if u.scheme not in ("http", "https") or not u.netloc:
        logger.debug("Not an http(s) URL: %r", target)
        return None

    authority = u.netloc.rsplit("@", 1)[-1]
    if not any(registry.is_recognized(c) for c in _host_candidates(authority)):
        logger.debug("Host %r is not a configured Azure DevOps host", authority)
        return None

    segments = [s for s in (u.path or "").split("/") if s]
    try:
        git_index = segments.index(GIT_MARKER)
    except ValueError:
        logger.debug("No %s segment in %r", GIT_MARKER, target)
        return None
    if git_index < 2 or git_index + 1 >= len(segments):
        logger.debug("Path too shallow for an Azure DevOps repository: %r", target)
        return None

    return ParsedLocation(
        host=authority,
        organization=segments[git_index - 2],
        project=segments[git_index - 1],
        repository=segments[git_index + 1],
        prefix=tuple(segments[: git_index - 2]),
    )
