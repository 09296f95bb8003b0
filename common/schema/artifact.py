"""Mix artifact records."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from common.paths import mix_target_name


class ArtifactStatus(str, enum.Enum):
    AVAILABLE = "available-externally"
    TO_BE_GENERATED = "to-be-generated"
    BUILT = "built"


@dataclass(frozen=True, order=True)
class MixIdentity:
    """Idempotence key: at most one artifact per identity in a run."""

    idl_type: str
    middleware: str
    package: str

    @property
    def target(self) -> str:
        return mix_target_name(self.idl_type, self.middleware, self.package)

    def sibling(self, package: str) -> "MixIdentity":
        """Identity of ``package`` for the same IDL kind and middleware."""

        return MixIdentity(self.idl_type, self.middleware, package)

    def __str__(self) -> str:
        return self.target


@dataclass
class MixArtifact:
    identity: MixIdentity
    status: ArtifactStatus
    dependencies: Tuple[MixIdentity, ...] = ()
    source_files: List[Path] = field(default_factory=list)
    include_dir: Optional[Path] = None
    library_dir: Optional[Path] = None
    install_destinations: Dict[str, str] = field(default_factory=dict)

    @property
    def package(self) -> str:
        return self.identity.package

    @property
    def target(self) -> str:
        return self.identity.target

    def to_dict(self) -> Dict[str, object]:
        return {
            "target": self.target,
            "idl_type": self.identity.idl_type,
            "middleware": self.identity.middleware,
            "package": self.package,
            "status": self.status.value,
            "dependencies": [dep.target for dep in self.dependencies],
            "source_files": [str(path) for path in self.source_files],
            "include_dir": str(self.include_dir) if self.include_dir else None,
            "install": dict(self.install_destinations),
        }


@dataclass
class BuildPlan:
    """Artifacts of one middleware, each after all of its predecessors."""

    idl_type: str
    middleware: str
    artifacts: List[MixArtifact] = field(default_factory=list)
    satisfied: List[MixIdentity] = field(default_factory=list)

    def __iter__(self) -> Iterator[MixArtifact]:
        return iter(self.artifacts)

    def __len__(self) -> int:
        return len(self.artifacts)

    @property
    def packages(self) -> List[str]:
        return [artifact.package for artifact in self.artifacts]

    def index_of(self, package: str) -> int:
        return self.packages.index(package)


__all__ = ["ArtifactStatus", "BuildPlan", "MixArtifact", "MixIdentity"]
