"""Middleware extension descriptor loader.

A descriptor named ``<idl>-<middleware>.yaml`` tells the generator how to
produce mix sources for that middleware: either template files handed to the
generator script, or explicit per-package source lists used as-is.
"""
from __future__ import annotations

import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from common.errors import ConfigurationError
from common.logging import get_logger
from common.paths import MIX_DIRNAME, mix_target_name

LOGGER = get_logger(__name__)

EXTENSION_SUBDIR = Path("share") / MIX_DIRNAME / "extensions"
IDL_KINDS = ("msg", "srv")


@dataclass(frozen=True)
class TemplateSet:
    cpp: Tuple[Path, ...] = ()
    hpp: Tuple[Path, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.cpp and not self.hpp


@dataclass(frozen=True)
class ExtensionDescriptor:
    idl_type: str
    middleware: str
    path: Path
    runtime: str
    templates: Dict[str, TemplateSet] = field(default_factory=dict)
    sources: Dict[str, Tuple[Path, ...]] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return mix_target_name(self.idl_type, self.middleware)

    @property
    def use_templates(self) -> bool:
        return any(not templates.empty for templates in self.templates.values())

    def template_set(self, kind: str) -> TemplateSet:
        return self.templates.get(kind) or TemplateSet()

    def explicit_sources(self, package: str) -> List[Path]:
        return list(self.sources.get(package, ()))


def extension_search_dirs(extension_dirs: Iterable[Path], prefixes: Iterable[Path]) -> Tuple[Path, ...]:
    dirs: List[Path] = []
    for directory in [*extension_dirs, *(prefix / EXTENSION_SUBDIR for prefix in prefixes)]:
        if directory not in dirs:
            dirs.append(directory)
    return tuple(dirs)


@functools.lru_cache(maxsize=64)
def find_extension(
    idl_type: str, middleware: str, search_dirs: Tuple[Path, ...]
) -> Optional[ExtensionDescriptor]:
    """Return the first descriptor for ``(idl_type, middleware)`` on the search path."""

    filename = f"{idl_type}-{middleware}.yaml"
    for directory in search_dirs:
        path = directory / filename
        if path.exists():
            LOGGER.debug("Loading %s extension for %s from %s", idl_type, middleware, path)
            return _load_descriptor(idl_type, middleware, path)
    return None


def clear_extension_cache() -> None:
    find_extension.cache_clear()


def _load_descriptor(idl_type: str, middleware: str, path: Path) -> ExtensionDescriptor:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Extension file {path} must contain a mapping")
    base = path.parent
    templates: Dict[str, TemplateSet] = {}
    raw_templates = data.get("templates") or {}
    if not isinstance(raw_templates, dict):
        raise ConfigurationError(f"Extension file {path}: 'templates' must be a mapping")
    for kind in IDL_KINDS:
        entry = raw_templates.get(kind) or {}
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Extension file {path}: 'templates.{kind}' must be a mapping")
        templates[kind] = TemplateSet(
            cpp=_resolve_paths(base, entry.get("cpp")),
            hpp=_resolve_paths(base, entry.get("hpp")),
        )
    sources: Dict[str, Tuple[Path, ...]] = {}
    raw_sources = data.get("sources") or {}
    if not isinstance(raw_sources, dict):
        raise ConfigurationError(f"Extension file {path}: 'sources' must be a mapping")
    for package, files in raw_sources.items():
        resolved = _resolve_paths(base, files)
        if resolved:
            sources[str(package)] = resolved
    return ExtensionDescriptor(
        idl_type=idl_type,
        middleware=middleware,
        path=path,
        runtime=str(data.get("runtime") or f"mix-{middleware}"),
        templates=templates,
        sources=sources,
    )


def _resolve_paths(base: Path, value: Any) -> Tuple[Path, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = [value]
    resolved: List[Path] = []
    for item in value:
        candidate = Path(str(item))
        resolved.append(candidate if candidate.is_absolute() else base / candidate)
    return tuple(resolved)


__all__ = [
    "ExtensionDescriptor",
    "TemplateSet",
    "clear_extension_cache",
    "extension_search_dirs",
    "find_extension",
]
