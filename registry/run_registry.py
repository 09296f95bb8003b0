"""Run-scoped registry of artifacts built (or being built) in this run."""
from __future__ import annotations

import threading
from typing import Dict, List, Optional

from common.schema import ArtifactStatus, MixArtifact, MixIdentity


class RunRegistry:
    """Write-once-per-identity map.

    :meth:`claim` is the check-and-register step: it returns False when the
    identity is already known, so each artifact is built exactly once even
    when several plans share packages.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._artifacts: Dict[MixIdentity, MixArtifact] = {}

    def claim(self, artifact: MixArtifact) -> bool:
        with self._lock:
            if artifact.identity in self._artifacts:
                return False
            self._artifacts[artifact.identity] = artifact
            return True

    def get(self, identity: MixIdentity) -> Optional[MixArtifact]:
        return self._artifacts.get(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._artifacts

    def release(self, identity: MixIdentity) -> None:
        with self._lock:
            self._artifacts.pop(identity, None)

    def built(self) -> List[MixArtifact]:
        return [artifact for artifact in self._artifacts.values() if artifact.status is ArtifactStatus.BUILT]


__all__ = ["RunRegistry"]
