"""Package information lookup and dependency closure construction."""
from .closure import USER_REQUESTER, DependencyClosure, DependencyClosureBuilder, describe_requesters
from .package_info import Introspector, PackageInfoResolver, ScriptIntrospector

__all__ = [
    "USER_REQUESTER",
    "DependencyClosure",
    "DependencyClosureBuilder",
    "Introspector",
    "PackageInfoResolver",
    "ScriptIntrospector",
    "describe_requesters",
]
