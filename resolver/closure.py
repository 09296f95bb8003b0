"""Transitive dependency closure over interface packages."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, Iterator, List, Optional, Sequence, Set

from common.errors import RecoverableMixError
from common.logging import get_logger
from common.problems import ProblemLog
from common.schema import PackageInfo

from .package_info import PackageInfoResolver

LOGGER = get_logger(__name__)

USER_REQUESTER = "the user"


def describe_requesters(requesters: Iterable[str]) -> str:
    """``["nav_msgs", "the user"] -> " [nav_msgs] [the user]"``"""

    return "".join(f" [{name}]" for name in requesters)


@dataclass
class DependencyClosure:
    """Packages reachable from the requested roots, in first-seen order.

    ``requesters`` maps every package in the closure to the packages (or the
    user) that need it. A package is in the closure iff its requester list is
    non-empty.
    """

    roots: List[str]
    packages: List[str] = field(default_factory=list)
    requesters: Dict[str, List[str]] = field(default_factory=dict)
    infos: Dict[str, PackageInfo] = field(default_factory=dict)
    failures: Dict[str, RecoverableMixError] = field(default_factory=dict)
    excluded: List[str] = field(default_factory=list)
    pruned: List[str] = field(default_factory=list)

    def __contains__(self, package: object) -> bool:
        return package in self.requesters

    def __iter__(self) -> Iterator[str]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def info(self, package: str) -> PackageInfo:
        return self.infos[package]

    def dependencies_of(self, package: str) -> List[str]:
        return list(self.infos[package].dependencies)

    def requesters_of(self, package: str) -> List[str]:
        return list(self.requesters.get(package, []))


class DependencyClosureBuilder:
    """Breadth-first closure builder with cascading removal of failures."""

    def __init__(
        self,
        resolver: PackageInfoResolver,
        *,
        idl_type: str = "",
        problems: Optional[ProblemLog] = None,
    ) -> None:
        self.resolver = resolver
        self.idl_type = idl_type
        self.problems = problems if problems is not None else ProblemLog()

    def build(self, requested: Sequence[str]) -> DependencyClosure:
        closure = DependencyClosure(roots=list(requested))
        order: List[str] = []
        queue: Deque[str] = deque()

        def _visit(package: str, requester: str) -> None:
            _append_unique(closure.requesters.setdefault(package, []), requester)
            if package not in order:
                order.append(package)
                queue.append(package)

        for root in requested:
            _visit(root, USER_REQUESTER)

        while queue:
            package = queue.popleft()
            try:
                info = self.resolver.resolve(package)
            except RecoverableMixError as exc:
                closure.failures[package] = exc
                continue
            closure.infos[package] = info
            for dependency in info.dependencies:
                _visit(dependency, package)

        self._exclude_failures(closure, order)
        closure.packages = [package for package in order if package in closure.requesters]
        return closure

    def _exclude_failures(self, closure: DependencyClosure, order: List[str]) -> None:
        if not closure.failures:
            return
        doomed: Set[str] = set()
        for failed in order:
            if failed not in closure.failures:
                continue
            dependents = self._dependents(failed, closure.requesters)
            self._report(failed, dependents, closure)
            doomed.add(failed)
            doomed.update(dependents)

        closure.excluded = [package for package in order if package in doomed]
        for package in doomed:
            closure.requesters.pop(package, None)
            closure.infos.pop(package, None)
        for package in closure.requesters:
            closure.requesters[package] = [
                name for name in closure.requesters[package] if name not in doomed
            ]

        # Dependencies needed only by excluded packages are no longer required.
        changed = True
        while changed:
            changed = False
            for package in order:
                if package in closure.requesters and not closure.requesters[package]:
                    del closure.requesters[package]
                    closure.infos.pop(package, None)
                    closure.pruned.append(package)
                    LOGGER.debug("Package [%s] is no longer required by any package", package)
                    for other in closure.requesters.values():
                        if package in other:
                            other.remove(package)
                    changed = True

    @staticmethod
    def _dependents(failed: str, requesters: Dict[str, List[str]]) -> List[str]:
        """Every package that needs ``failed`` directly or transitively."""

        found: List[str] = []
        queue: Deque[str] = deque([failed])
        while queue:
            current = queue.popleft()
            for requester in requesters.get(current, []):
                if requester == USER_REQUESTER or requester == failed or requester in found:
                    continue
                found.append(requester)
                queue.append(requester)
        return found

    def _report(self, failed: str, dependents: List[str], closure: DependencyClosure) -> None:
        LOGGER.debug("Resolution failure for %s: %s", failed, closure.failures[failed])
        if not dependents:
            self.problems.report(
                f"Could not find a {self.idl_type or 'interface'} package named [{failed}]! "
                "You need to install that package in order to generate mix libraries "
                "for its message and service specifications."
            )
            return
        affected = list(dependents)
        if USER_REQUESTER in closure.requesters.get(failed, []):
            affected.append(USER_REQUESTER)
        self.problems.report(
            f"Could not find the dependency [{failed}]. Its dependent packages"
            f"{describe_requesters(affected)} will be skipped."
        )


def _append_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


__all__ = ["USER_REQUESTER", "DependencyClosure", "DependencyClosureBuilder", "describe_requesters"]
