"""Per-middleware build plans over a dependency closure."""
from __future__ import annotations

from typing import Dict, List, Protocol

import rustworkx as rx

from common.errors import CyclicPackageDependency
from common.logging import get_logger, log_status
from common.schema import ArtifactStatus, BuildPlan, MixArtifact, MixIdentity
from resolver import DependencyClosure, describe_requesters

LOGGER = get_logger(__name__)


class AvailabilityChecker(Protocol):
    def is_available(self, idl_type: str, middleware: str, package: str) -> bool:
        ...


class MixBuildPlanner:
    """Turns a closure into the ordered list of artifacts to generate.

    Artifacts found by the availability checker are recorded as satisfied
    and left out of the plan. The remaining ones are ordered so that every
    artifact follows the artifacts of its dependencies.
    """

    def __init__(self, idl_type: str, *, quiet: bool = False) -> None:
        self.idl_type = idl_type
        self.quiet = quiet

    def plan(self, closure: DependencyClosure, middleware: str, checker: AvailabilityChecker) -> BuildPlan:
        plan = BuildPlan(idl_type=self.idl_type, middleware=middleware)
        pending: Dict[str, MixArtifact] = {}
        for package in closure:
            identity = MixIdentity(self.idl_type, middleware, package)
            required_by = describe_requesters(closure.requesters_of(package))
            if checker.is_available(self.idl_type, middleware, package):
                plan.satisfied.append(identity)
                log_status(
                    LOGGER,
                    self.quiet,
                    "Found [%s] mix for package [%s] required by%s.",
                    middleware,
                    package,
                    required_by,
                )
                continue
            log_status(
                LOGGER,
                self.quiet,
                "Could not find [%s] mix for package [%s] required by%s. "
                "The [%s] mix for [%s] will be automatically generated.",
                middleware,
                package,
                required_by,
                middleware,
                package,
            )
            pending[package] = MixArtifact(
                identity=identity,
                status=ArtifactStatus.TO_BE_GENERATED,
                dependencies=tuple(identity.sibling(dep) for dep in closure.dependencies_of(package)),
            )

        order = _dependency_order(pending, middleware)
        plan.artifacts = [pending[package] for package in order]
        LOGGER.debug("Plan for [%s]: %s", middleware, plan.packages)
        return plan


def _dependency_order(pending: Dict[str, MixArtifact], middleware: str) -> List[str]:
    """Dependencies first; ties keep closure order."""

    graph = rx.PyDiGraph(multigraph=False, check_cycle=False)
    position = {package: offset for offset, package in enumerate(pending)}
    index = dict(zip(pending, graph.add_nodes_from(list(pending))))
    for package, artifact in pending.items():
        for dependency in artifact.dependencies:
            if dependency.package in index:
                graph.add_edge(index[dependency.package], index[package], None)
    if not rx.is_directed_acyclic_graph(graph):
        raise CyclicPackageDependency(middleware, _find_cycle(graph))
    return list(rx.lexicographical_topological_sort(graph, key=lambda package: f"{position[package]:08d}"))


def _find_cycle(graph: rx.PyDiGraph) -> List[str]:
    """Names of one dependency cycle, closed on its first package."""

    for component in rx.strongly_connected_components(graph):
        if len(component) < 2:
            continue
        subgraph = graph.subgraph(sorted(component))
        edges = rx.digraph_find_cycle(subgraph, source=0)
        cycle = [subgraph[source] for source, _ in edges]
        return cycle + cycle[:1]
    return []


__all__ = ["AvailabilityChecker", "MixBuildPlanner"]
