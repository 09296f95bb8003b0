"""Package information resolver backed by the external introspection tool."""
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, List, Protocol, Sequence, Tuple, Union

from common.errors import ConfigurationError, PackageNotFound, RecoverableMixError
from common.logging import get_logger
from common.schema import PackageInfo, parse_package_info

LOGGER = get_logger(__name__)

_LIBRARY_SUFFIXES = (".so", ".dylib", ".dll", ".lib", ".a")


class Introspector(Protocol):
    def describe(self, package: str) -> str:
        """Return the raw four-field description of ``package``."""


class ScriptIntrospector:
    """Runs ``<interpreter> <find-script> <package>`` and returns its stdout."""

    def __init__(self, interpreter: str, script: Path, *, timeout: float | None = None) -> None:
        self.interpreter = interpreter
        self.script = script
        self.timeout = timeout

    def describe(self, package: str) -> str:
        cmd = [self.interpreter, str(self.script), package]
        LOGGER.debug("Running command: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Introspection tool is not runnable: {' '.join(cmd)}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ConfigurationError(
                f"Introspection tool timed out after {self.timeout}s for {package}"
            ) from exc
        error = (proc.stderr or "").strip()
        if proc.returncode != 0 or error:
            raise PackageNotFound(package, error or f"exit status {proc.returncode}")
        return proc.stdout or ""


class PackageInfoResolver:
    """Memoizing front-end over an :class:`Introspector`.

    Each distinct package name reaches the introspector at most once per run.
    Failures are memoized as well and re-raised on later lookups.
    """

    def __init__(self, introspector: Introspector, *, prefixes: Sequence[Path] = ()) -> None:
        self.introspector = introspector
        self.prefixes = list(prefixes)
        self._cache: Dict[str, Union[PackageInfo, RecoverableMixError]] = {}

    def resolve(self, package: str) -> PackageInfo:
        cached = self._cache.get(package)
        if cached is None:
            cached = self._lookup(package)
            self._cache[package] = cached
        if isinstance(cached, RecoverableMixError):
            raise cached
        return cached

    def is_cached(self, package: str) -> bool:
        return package in self._cache

    def _lookup(self, package: str) -> Union[PackageInfo, RecoverableMixError]:
        try:
            info = parse_package_info(package, self.introspector.describe(package))
        except RecoverableMixError as exc:
            LOGGER.debug("Resolution of %s failed: %s", package, exc)
            return exc
        libraries, include_dirs = _native_dependencies(package, self.prefixes)
        return PackageInfo(
            name=info.name,
            dependencies=info.dependencies,
            msg_files=info.msg_files,
            srv_files=info.srv_files,
            file_dependencies=info.file_dependencies,
            libraries=libraries,
            include_dirs=include_dirs,
        )


def _native_dependencies(package: str, prefixes: Sequence[Path]) -> Tuple[Tuple[str, ...], Tuple[Path, ...]]:
    """Libraries ``lib<package>`` or ``lib<package>__*`` and ``include/<package>`` under each prefix."""

    libraries: List[str] = []
    include_dirs: List[Path] = []
    for prefix in prefixes:
        include_dir = prefix / "include" / package
        if include_dir.is_dir() and include_dir not in include_dirs:
            include_dirs.append(include_dir)
        lib_dir = prefix / "lib"
        if not lib_dir.is_dir():
            continue
        for path in sorted(lib_dir.glob(f"lib{package}*")):
            if not path.is_file() or path.suffix not in _LIBRARY_SUFFIXES:
                continue
            name = path.name[len("lib"):].split(".", 1)[0]
            if name != package and not name.startswith(f"{package}__"):
                continue
            if name not in libraries:
                libraries.append(name)
    return tuple(libraries), tuple(include_dirs)


__all__ = ["Introspector", "PackageInfoResolver", "ScriptIntrospector"]
