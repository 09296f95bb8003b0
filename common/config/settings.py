"""Run settings loaded from an optional YAML file plus environment overrides.

Environment variables take precedence over the run file so that CI jobs can
redirect build and install directories without editing checked-in files.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from common.errors import ConfigurationError


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "on"}
    return bool(value)


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [token for token in value.replace(",", " ").split() if token]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ConfigurationError(f"Expected a list of names, got {type(value).__name__}")


def _split_paths(value: str | None) -> List[Path]:
    paths: List[Path] = []
    for raw in (value or "").split(os.pathsep):
        raw = raw.strip()
        if raw:
            paths.append(Path(raw))
    return paths


def _optional_path(value: Any) -> Optional[Path]:
    if value in (None, ""):
        return None
    return Path(str(value))


@dataclass(frozen=True)
class MixSettings:
    """Where collaborators live and where results go."""

    interpreter: str = "python3"
    find_script: Optional[Path] = None
    generate_script: Optional[Path] = None
    build_dir: Path = Path("build")
    install_prefix: Path = Path("install")
    prefix_path: List[Path] = field(default_factory=list)
    extension_dirs: List[Path] = field(default_factory=list)
    registry_endpoint: Optional[str] = None
    timeout: Optional[float] = None

    def search_prefixes(self) -> List[Path]:
        """Prefixes searched for installed artifacts, the install prefix first."""

        prefixes: List[Path] = [self.install_prefix]
        for prefix in self.prefix_path:
            if prefix not in prefixes:
                prefixes.append(prefix)
        return prefixes


@dataclass(frozen=True)
class MixRequest:
    """What the caller asked for."""

    idl_type: str
    packages: List[str]
    middlewares: List[str]
    quiet: bool = False
    required: bool = False


def load_run_file(path: Path | None) -> Dict[str, Any]:
    if path is None:
        return {}
    if not path.exists():
        raise ConfigurationError(f"Run file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Run file {path} must contain a mapping")
    return data


def load_settings(
    data: Dict[str, Any] | None = None,
    *,
    environ: Dict[str, str] | None = None,
) -> MixSettings:
    data = data or {}
    env = os.environ if environ is None else environ
    settings = MixSettings(
        interpreter=str(data.get("interpreter") or "python3"),
        find_script=_optional_path(data.get("find_script")),
        generate_script=_optional_path(data.get("generate_script")),
        build_dir=Path(str(data.get("build_dir") or "build")),
        install_prefix=Path(str(data.get("install_prefix") or "install")),
        prefix_path=[Path(item) for item in _as_list(data.get("prefix_path"))],
        extension_dirs=[Path(item) for item in _as_list(data.get("extension_dirs"))],
        registry_endpoint=(str(data.get("registry_endpoint") or "").strip() or None),
        timeout=_parse_timeout(data.get("timeout")),
    )
    return _apply_env(settings, env)


def _apply_env(settings: MixSettings, env: Dict[str, str]) -> MixSettings:
    overrides: Dict[str, Any] = {}
    if env.get("MIX_INTERPRETER"):
        overrides["interpreter"] = env["MIX_INTERPRETER"]
    if env.get("MIX_FIND_SCRIPT"):
        overrides["find_script"] = Path(env["MIX_FIND_SCRIPT"])
    if env.get("MIX_GENERATE_SCRIPT"):
        overrides["generate_script"] = Path(env["MIX_GENERATE_SCRIPT"])
    if env.get("MIX_BUILD_DIR"):
        overrides["build_dir"] = Path(env["MIX_BUILD_DIR"])
    if env.get("MIX_INSTALL_PREFIX"):
        overrides["install_prefix"] = Path(env["MIX_INSTALL_PREFIX"])
    if env.get("MIX_PREFIX_PATH"):
        overrides["prefix_path"] = settings.prefix_path + _split_paths(env["MIX_PREFIX_PATH"])
    if env.get("MIX_EXTENSION_DIRS"):
        overrides["extension_dirs"] = settings.extension_dirs + _split_paths(env["MIX_EXTENSION_DIRS"])
    if env.get("MIX_REGISTRY_ENDPOINT"):
        overrides["registry_endpoint"] = env["MIX_REGISTRY_ENDPOINT"].strip()
    if env.get("MIX_TOOL_TIMEOUT"):
        overrides["timeout"] = _parse_timeout(env["MIX_TOOL_TIMEOUT"])
    return replace(settings, **overrides) if overrides else settings


def _parse_timeout(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid tool timeout: {value!r}") from exc
    return timeout if timeout > 0 else None


def build_request(
    data: Dict[str, Any],
    *,
    idl_type: str | None = None,
    packages: Sequence[str] | None = None,
    middlewares: Sequence[str] | None = None,
    quiet: bool = False,
    required: bool = False,
) -> MixRequest:
    """Merge CLI values over the run file's request section."""

    resolved_idl = (idl_type or str(data.get("idl_type") or "")).strip()
    if not resolved_idl:
        raise ConfigurationError("An IDL type is required")
    resolved_packages = _dedupe(list(packages) if packages else _as_list(data.get("packages")))
    resolved_middlewares = _dedupe(
        list(middlewares) if middlewares else _as_list(data.get("middlewares"))
    )
    return MixRequest(
        idl_type=resolved_idl,
        packages=resolved_packages,
        middlewares=resolved_middlewares,
        quiet=quiet or _as_bool(data.get("quiet", False)),
        required=required or _as_bool(data.get("required", False)),
    )


def _dedupe(names: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for name in names:
        if name and name not in seen:
            seen.append(name)
    return seen


__all__ = ["MixRequest", "MixSettings", "build_request", "load_run_file", "load_settings"]
