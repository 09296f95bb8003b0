"""Mix generation run: closure, availability, planning and building.

The run resolves every package the requested ones depend on, checks which
``<idl>-<middleware>-<package>-mix`` artifacts are already available, and
builds only the missing ones, dependencies first. Recoverable problems drop
the affected packages or middlewares; a required run stops with
:class:`RequiredProblemsError` before any generation starts. Fatal errors
abort the run without exporting the build graph.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from common.config import MixRequest, MixSettings
from common.config.extensions import extension_search_dirs
from common.errors import ConfigurationError, FatalMixError
from common.logging import get_logger
from common.paths import ensure_dir
from common.problems import ProblemLog
from common.schema import BuildPlan, Middleware, MixArtifact
from executor import BuildGraph, MixArtifactBuilder
from generator import ScriptGenerator, SourceGenerator
from registry import (
    ArtifactAvailabilityChecker,
    PrefixArtifactIndex,
    RemoteArtifactIndex,
    RunRegistry,
)
from resolver import (
    DependencyClosure,
    DependencyClosureBuilder,
    Introspector,
    PackageInfoResolver,
    ScriptIntrospector,
)

from .middleware import select_middlewares
from .planner import AvailabilityChecker, MixBuildPlanner

LOGGER = get_logger(__name__)

BUILD_GRAPH_FILENAME = "build_graph.json"
REPORT_FILENAME = "mix_report.json"


@dataclass
class MixRunReport:
    idl_type: str
    middlewares: List[str] = field(default_factory=list)
    packages: List[str] = field(default_factory=list)
    excluded_packages: List[str] = field(default_factory=list)
    plans: Dict[str, List[str]] = field(default_factory=dict)
    built: List[MixArtifact] = field(default_factory=list)
    problems: List[str] = field(default_factory=list)
    build_graph_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "idl_type": self.idl_type,
            "middlewares": list(self.middlewares),
            "packages": list(self.packages),
            "excluded_packages": list(self.excluded_packages),
            "plans": {name: list(packages) for name, packages in self.plans.items()},
            "built": [artifact.to_dict() for artifact in self.built],
            "problems": list(self.problems),
            "build_graph": str(self.build_graph_path) if self.build_graph_path else None,
        }


def default_checker(settings: MixSettings) -> ArtifactAvailabilityChecker:
    indexes: List[Any] = [PrefixArtifactIndex(settings.search_prefixes())]
    if settings.registry_endpoint:
        indexes.append(RemoteArtifactIndex(settings.registry_endpoint, timeout=settings.timeout or 8.0))
    return ArtifactAvailabilityChecker(indexes)


class MixRun:
    """One orchestration call.

    Collaborators default to the script-backed implementations described by
    ``settings``; tests pass in-memory fakes. ``registry`` and ``graph`` may
    be shared between calls so that repeated orchestration (for example one
    call per middleware) never configures an artifact twice.
    """

    def __init__(
        self,
        request: MixRequest,
        settings: MixSettings,
        *,
        introspector: Optional[Introspector] = None,
        generator: Optional[SourceGenerator] = None,
        checker: Optional[AvailabilityChecker] = None,
        resolver: Optional[PackageInfoResolver] = None,
        registry: Optional[RunRegistry] = None,
        graph: Optional[BuildGraph] = None,
    ) -> None:
        self.request = request
        self.settings = settings
        self.problems = ProblemLog(required=request.required)
        self.resolver = resolver or PackageInfoResolver(
            introspector or self._script_introspector(),
            prefixes=settings.search_prefixes(),
        )
        self.generator = generator or ScriptGenerator(
            settings.interpreter, settings.generate_script, timeout=settings.timeout
        )
        self.checker = checker or default_checker(settings)
        self.registry = registry or RunRegistry()
        self.graph = graph or BuildGraph()

    def _script_introspector(self) -> ScriptIntrospector:
        if self.settings.find_script is None:
            raise ConfigurationError("No find script configured; set find_script or MIX_FIND_SCRIPT")
        return ScriptIntrospector(
            self.settings.interpreter, self.settings.find_script, timeout=self.settings.timeout
        )

    def run(self) -> MixRunReport:
        request = self.request
        report = MixRunReport(idl_type=request.idl_type)

        search_dirs = extension_search_dirs(self.settings.extension_dirs, self.settings.search_prefixes())
        middlewares = select_middlewares(request.idl_type, request.middlewares, search_dirs, self.problems)
        report.middlewares = [middleware.name for middleware in middlewares]

        closure = self.closure()
        report.packages = list(closure.packages)
        report.excluded_packages = list(closure.excluded)
        report.problems = self.problems.messages
        self.problems.raise_if_required()

        plans = self.plan(closure, middlewares)
        report.plans = {name: plan.packages for name, plan in plans.items()}

        builder = MixArtifactBuilder(
            resolver=self.resolver,
            generator=self.generator,
            graph=self.graph,
            registry=self.registry,
            build_dir=self.settings.build_dir,
            quiet=request.quiet,
        )
        try:
            for middleware in middlewares:
                report.built.extend(builder.build(plans[middleware.name], middleware))
        except FatalMixError:
            released = builder.rollback()
            if released:
                LOGGER.debug("Rolled back artifacts of the aborted run: %s", ", ".join(map(str, released)))
            raise

        report.build_graph_path = self.write_outputs(report)
        return report

    def closure(self) -> DependencyClosure:
        builder = DependencyClosureBuilder(
            self.resolver,
            idl_type=self.request.idl_type,
            problems=self.problems,
        )
        return builder.build(self.request.packages)

    def plan(self, closure: DependencyClosure, middlewares: List[Middleware]) -> Dict[str, BuildPlan]:
        """Plan every middleware before building anything so cycles abort early."""

        planner = MixBuildPlanner(self.request.idl_type, quiet=self.request.quiet)
        return {middleware.name: planner.plan(closure, middleware.name, self.checker) for middleware in middlewares}

    def write_outputs(self, report: MixRunReport) -> Path:
        build_dir = ensure_dir(self.settings.build_dir)
        graph_path = self.graph.write(build_dir / BUILD_GRAPH_FILENAME)
        report.build_graph_path = graph_path
        report_path = build_dir / REPORT_FILENAME
        report_path.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        LOGGER.info("Build graph written to %s", graph_path)
        return graph_path


def run_mix_generator(request: MixRequest, settings: MixSettings, **collaborators: Any) -> MixRunReport:
    return MixRun(request, settings, **collaborators).run()


__all__ = ["MixRun", "MixRunReport", "default_checker", "run_mix_generator"]
