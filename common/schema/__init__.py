"""Data records shared by the resolver, planner and builder."""
from .artifact import ArtifactStatus, BuildPlan, MixArtifact, MixIdentity
from .middleware import Middleware
from .package import (
    FIELD_SEPARATOR,
    LIST_SEPARATOR,
    PACKAGE_INFO_FIELDS,
    PackageInfo,
    parse_package_info,
    type_names,
)

__all__ = [
    "ArtifactStatus",
    "BuildPlan",
    "FIELD_SEPARATOR",
    "LIST_SEPARATOR",
    "MixArtifact",
    "MixIdentity",
    "Middleware",
    "PACKAGE_INFO_FIELDS",
    "PackageInfo",
    "parse_package_info",
    "type_names",
]
