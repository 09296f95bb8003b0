"""Build graph registration, mix library construction and installation."""
from .build_graph import BuildGraph, BuildUnit, InstallRule
from .builder import MixArtifactBuilder
from .install import InstallSummary, apply_install

__all__ = [
    "BuildGraph",
    "BuildUnit",
    "InstallRule",
    "InstallSummary",
    "MixArtifactBuilder",
    "apply_install",
]
