"""Artifact availability lookups and the run-scoped artifact registry."""
from .availability import (
    ArtifactAvailabilityChecker,
    PrefixArtifactIndex,
    RemoteArtifactIndex,
    config_descriptor_path,
)
from .run_registry import RunRegistry

__all__ = [
    "ArtifactAvailabilityChecker",
    "PrefixArtifactIndex",
    "RemoteArtifactIndex",
    "RunRegistry",
    "config_descriptor_path",
]
