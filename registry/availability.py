"""Lookups for mix artifacts that are already available outside this run.

An installed artifact is recognised by its config descriptor
``<prefix>/lib/mix/<target>/<target>.yaml``. A remote package index can be
consulted as well; it answers ``GET <endpoint>/<target>`` with 200 when the
artifact exists and 404 when it does not.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence

import requests

from common.logging import get_logger
from common.paths import get_config_install_dir, mix_target_name

LOGGER = get_logger(__name__)


def config_descriptor_path(prefix: Path, target: str) -> Path:
    return get_config_install_dir(prefix, target) / f"{target}.yaml"


class ArtifactIndex(Protocol):
    def contains(self, target: str) -> bool:
        """Return True when ``target`` is available."""


class PrefixArtifactIndex:
    """Searches install prefixes for artifact config descriptors."""

    def __init__(self, prefixes: Sequence[Path]) -> None:
        self.prefixes = list(prefixes)

    def contains(self, target: str) -> bool:
        return any(config_descriptor_path(prefix, target).exists() for prefix in self.prefixes)


class RemoteArtifactIndex:
    """HTTP package index; network failures count as "not available"."""

    def __init__(self, endpoint: str, *, timeout: float = 8.0, session: Optional[requests.Session] = None) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def contains(self, target: str) -> bool:
        url = f"{self.endpoint}/{target}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            LOGGER.warning("Artifact index lookup failed for %s: %s", target, exc)
            return False
        if response.status_code == 404:
            return False
        if response.status_code != 200:
            LOGGER.warning(
                "Artifact index returned HTTP %s for %s; treating it as absent",
                response.status_code,
                target,
            )
            return False
        return True


class ArtifactAvailabilityChecker:
    """Answers ``is_available(idl_type, middleware, package)`` over several indexes."""

    def __init__(self, indexes: Iterable[ArtifactIndex]) -> None:
        self.indexes: List[ArtifactIndex] = list(indexes)

    def is_available(self, idl_type: str, middleware: str, package: str) -> bool:
        target = mix_target_name(idl_type, middleware, package)
        return any(index.contains(target) for index in self.indexes)


__all__ = [
    "ArtifactAvailabilityChecker",
    "ArtifactIndex",
    "PrefixArtifactIndex",
    "RemoteArtifactIndex",
    "config_descriptor_path",
]
