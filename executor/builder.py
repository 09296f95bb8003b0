"""Builds the mix libraries of a plan, one artifact at a time."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import yaml

from common.errors import GenerationFailed, NoGeneratedSources
from common.logging import get_logger, log_status
from common.paths import (
    ensure_dir,
    get_header_dir,
    get_include_dir,
    get_library_dir,
    get_manifest_root,
    get_source_dir,
    library_filename,
)
from common.schema import ArtifactStatus, BuildPlan, Middleware, MixArtifact, MixIdentity, PackageInfo
from generator import (
    GeneratedSources,
    GenerationRequest,
    SourceGenerator,
    generate_sources,
    write_manifest_entries,
)
from registry import RunRegistry
from resolver import PackageInfoResolver

from .build_graph import BuildGraph, InstallRule

LOGGER = get_logger(__name__)


class MixArtifactBuilder:
    """Generates, registers and records installation of missing mix libraries.

    The run registry makes :meth:`build_artifact` idempotent: an identity
    already claimed in this run is returned as-is, so a package reached from
    several roots (or several orchestration calls) is generated once per
    middleware. :meth:`rollback` forgets everything this builder configured
    when the run aborts.
    """

    def __init__(
        self,
        *,
        resolver: PackageInfoResolver,
        generator: SourceGenerator,
        graph: BuildGraph,
        registry: RunRegistry,
        build_dir: Path,
        quiet: bool = False,
    ) -> None:
        self.resolver = resolver
        self.generator = generator
        self.graph = graph
        self.registry = registry
        self.build_dir = build_dir
        self.quiet = quiet
        self.configured: List[MixArtifact] = []

    def build(self, plan: BuildPlan, middleware: Middleware) -> List[MixArtifact]:
        """Build the plan and return the artifacts configured by this call."""

        self.graph.add_imported(middleware.runtime)
        self.graph.add_imported(*(identity.target for identity in plan.satisfied))
        first = len(self.configured)
        for artifact in plan:
            self.build_artifact(artifact, middleware)
        return self.configured[first:]

    def build_artifact(self, artifact: MixArtifact, middleware: Middleware) -> MixArtifact:
        if not self.registry.claim(artifact):
            existing = self.registry.get(artifact.identity)
            LOGGER.debug("%s already configured in this run; skipping", artifact.target)
            return existing if existing is not None else artifact
        try:
            self._configure(artifact, middleware)
        except Exception:
            self.registry.release(artifact.identity)
            raise
        self.configured.append(artifact)
        return artifact

    def rollback(self) -> List[MixIdentity]:
        """Release every identity configured here and drop its build unit."""

        released: List[MixIdentity] = []
        for artifact in reversed(self.configured):
            self.registry.release(artifact.identity)
            self.graph.discard(artifact.target)
            released.append(artifact.identity)
        self.configured.clear()
        return released

    def _configure(self, artifact: MixArtifact, middleware: Middleware) -> None:
        identity = artifact.identity
        log_status(
            LOGGER, self.quiet, "Configuring [%s] mix library for [%s] middleware", identity.package, middleware.name
        )
        info = self.resolver.resolve(identity.package)

        generated = self._sources(identity, info, middleware)
        if not generated.source_files:
            raise NoGeneratedSources(middleware.name, identity.package)

        link_libraries: List[str] = [middleware.runtime]
        include_dirs: List[Path] = []
        if generated.include_dir is not None:
            include_dirs.append(generated.include_dir)
        native_libraries: List[str] = list(info.libraries)
        include_dirs.extend(info.include_dirs)
        for dependency in artifact.dependencies:
            link_libraries.append(dependency.target)
            dep_info = self.resolver.resolve(dependency.package)
            native_libraries.extend(dep_info.libraries)
            include_dirs.extend(dep_info.include_dirs)
        self.graph.add_imported(*native_libraries)
        link_libraries.extend(native_libraries)

        library_dir = get_library_dir(self.build_dir, identity.idl_type, identity.middleware)
        self.graph.add_library(
            identity.target,
            generated.source_files,
            link_libraries=link_libraries,
            include_dirs=include_dirs,
            output_dir=library_dir,
        )

        artifact.source_files = list(generated.source_files)
        artifact.include_dir = generated.include_dir
        artifact.library_dir = library_dir
        artifact.install_destinations = self._record_install(artifact, info)
        artifact.status = ArtifactStatus.BUILT

    def _sources(self, identity: MixIdentity, info: PackageInfo, middleware: Middleware) -> GeneratedSources:
        explicit = middleware.extension.explicit_sources(identity.package)
        if explicit:
            return GeneratedSources(source_files=explicit, include_dir=None)
        if not middleware.use_templates:
            raise GenerationFailed(
                middleware.name,
                identity.package,
                f"The {middleware.extension.name} extension is broken or incompatible with this "
                "version of the mix generator!",
            )
        msg_templates = middleware.extension.template_set("msg")
        srv_templates = middleware.extension.template_set("srv")
        request = GenerationRequest(
            package=identity.package,
            source_dir=get_source_dir(self.build_dir, identity.idl_type, identity.middleware, identity.package),
            header_dir=get_header_dir(self.build_dir, identity.idl_type, identity.middleware, identity.package),
            include_dir=get_include_dir(self.build_dir, identity.idl_type, identity.middleware, identity.package),
            msg_files=info.msg_files,
            msg_cpp_templates=msg_templates.cpp,
            msg_hpp_templates=msg_templates.hpp,
            srv_files=info.srv_files,
            srv_cpp_templates=srv_templates.cpp,
            srv_hpp_templates=srv_templates.hpp,
            file_dependencies=info.file_dependencies,
        )
        return generate_sources(self.generator, request, middleware=middleware.name, quiet=self.quiet)

    def _record_install(self, artifact: MixArtifact, info: PackageInfo) -> Dict[str, str]:
        identity = artifact.identity
        component = f"{identity.idl_type}-mix"
        library_file = library_filename(identity.target)
        library_dir = artifact.library_dir or get_library_dir(self.build_dir, identity.idl_type, identity.middleware)

        library_path = library_dir / library_file
        self.graph.add_install(
            InstallRule("file", library_path, "lib", component=component, optional=True, target=identity.target)
        )
        destinations = {"library": f"lib/{library_file}"}

        if artifact.include_dir is not None and artifact.include_dir.exists():
            self.graph.add_install(
                InstallRule("directory", artifact.include_dir, "include", component=component, target=identity.target)
            )
            destinations["headers"] = "include"

        config_dir = ensure_dir(self.build_dir / "mix" / identity.idl_type / "config")
        config_path = config_dir / f"{identity.target}.yaml"
        config_path.write_text(
            yaml.safe_dump(
                {
                    "target": identity.target,
                    "idl_type": identity.idl_type,
                    "middleware": identity.middleware,
                    "package": identity.package,
                    "library": library_file,
                    "dependencies": [dependency.target for dependency in artifact.dependencies],
                    "include_dir": "include" if "headers" in destinations else None,
                },
                sort_keys=False,
            ),
            encoding="utf-8",
        )
        config_destination = f"lib/mix/{identity.target}"
        self.graph.add_install(
            InstallRule(
                "file",
                config_path,
                config_destination,
                component=component,
                requires=library_path,
                target=identity.target,
            )
        )
        destinations["config"] = f"{config_destination}/{config_path.name}"

        manifest_root = get_manifest_root(self.build_dir, identity.idl_type, identity.middleware)
        entries = write_manifest_entries(
            manifest_root,
            identity,
            library_file,
            msg_types=info.msg_types,
            srv_types=info.srv_types,
        )
        for entry_dir in sorted({entry.parent for entry in entries}):
            relative = entry_dir.relative_to(manifest_root).as_posix()
            self.graph.add_install(
                InstallRule(
                    "directory",
                    entry_dir,
                    f"lib/mix/{relative}",
                    component=component,
                    requires=library_path,
                    target=identity.target,
                )
            )
        if entries:
            destinations["manifest"] = f"lib/mix/{identity.idl_type}/{identity.middleware}"
        return destinations


__all__ = ["MixArtifactBuilder"]
