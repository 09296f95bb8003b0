"""Error taxonomy for mix generation runs.

Recoverable errors are resolved by excluding the affected package or
middleware from the run. Fatal errors abort the whole orchestration.
"""
from __future__ import annotations

from typing import Sequence


class MixError(RuntimeError):
    """Base class for every orchestration failure."""


class RecoverableMixError(MixError):
    """Handled by exclusion unless the run is required (strict)."""


class FatalMixError(MixError):
    """Aborts the run; nothing produced so far is reported as available."""


class PackageNotFound(RecoverableMixError):
    def __init__(self, package: str, detail: str = ""):
        message = f"Could not find the package [{package}]"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.package = package
        self.detail = detail


class MalformedPackageInfo(RecoverableMixError):
    def __init__(self, package: str, field_count: int, expected: int = 4):
        super().__init__(
            f"Critical failure when trying to parse the package information of {package}: "
            f"the introspection tool output a list with {field_count} elements instead of {expected}."
        )
        self.package = package
        self.field_count = field_count


class MiddlewareExtensionMissing(RecoverableMixError):
    def __init__(self, idl_type: str, middleware: str, extension_name: str):
        super().__init__(
            f"Could not find the {idl_type} extension for [{middleware}]! You need to install "
            f"the package [{extension_name}] if such a package exists. We will skip generating "
            "a mix library for that middleware."
        )
        self.middleware = middleware
        self.extension_name = extension_name


class CyclicPackageDependency(FatalMixError):
    def __init__(self, middleware: str, cycle: Sequence[str]):
        chain = " -> ".join(f"[{name}]" for name in cycle)
        super().__init__(f"Cyclic package dependency for [{middleware}] mixes: {chain}")
        self.middleware = middleware
        self.cycle = list(cycle)


class GenerationFailed(FatalMixError):
    def __init__(self, middleware: str, package: str, detail: str, returncode: int | None = None):
        super().__init__(
            f"Critical failure when trying to generate {middleware} source files for {package}:\n{detail}"
        )
        self.middleware = middleware
        self.package = package
        self.returncode = returncode


class NoGeneratedSources(FatalMixError):
    def __init__(self, middleware: str, package: str):
        super().__init__(
            f"Generating {middleware} source files for {package} reported success but produced no sources"
        )
        self.middleware = middleware
        self.package = package


class LinkFailed(FatalMixError):
    def __init__(self, target: str, missing: Sequence[str]):
        names = ", ".join(f"[{name}]" for name in missing)
        super().__init__(f"Cannot link [{target}]: unknown link targets {names}")
        self.target = target
        self.missing = list(missing)


class RequiredProblemsError(FatalMixError):
    """Raised before generation when a required run recorded any problem."""

    def __init__(self, problems: Sequence[str]):
        super().__init__(
            f"{len(problems)} problem(s) prevented the mix libraries from being generated"
        )
        self.problems = list(problems)


class ConfigurationError(FatalMixError):
    """Raised when settings or collaborator scripts are unusable."""


__all__ = [
    "MixError",
    "RecoverableMixError",
    "FatalMixError",
    "PackageNotFound",
    "MalformedPackageInfo",
    "MiddlewareExtensionMissing",
    "CyclicPackageDependency",
    "GenerationFailed",
    "NoGeneratedSources",
    "LinkFailed",
    "RequiredProblemsError",
    "ConfigurationError",
]
