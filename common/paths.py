"""Path helpers to keep the build and install layout consistent."""
from __future__ import annotations

import sys
from pathlib import Path

MIX_DIRNAME = "mix"
# Manifest entries sit five levels below the library directory:
# <libdir>/mix/<idl>/<middleware>/{msg,srv}/<package>/<type>.mix
MANIFEST_LIBRARY_DIRECTORY = "../../../../.."


def mix_target_name(idl_type: str, middleware: str, package: str | None = None) -> str:
    """Return ``<idl>-<middleware>-<package>-mix`` (or the extension name)."""

    if package:
        return f"{idl_type}-{middleware}-{package}-mix"
    return f"{idl_type}-{middleware}-mix"


def get_package_build_dir(build_dir: Path, idl_type: str, middleware: str, package: str) -> Path:
    return build_dir / MIX_DIRNAME / idl_type / middleware / package


def get_source_dir(build_dir: Path, idl_type: str, middleware: str, package: str) -> Path:
    return get_package_build_dir(build_dir, idl_type, middleware, package) / "src"


def get_include_dir(build_dir: Path, idl_type: str, middleware: str, package: str) -> Path:
    return get_package_build_dir(build_dir, idl_type, middleware, package) / "include"


def get_header_dir(build_dir: Path, idl_type: str, middleware: str, package: str) -> Path:
    include_dir = get_include_dir(build_dir, idl_type, middleware, package)
    return include_dir / MIX_DIRNAME / idl_type / middleware / package


def get_library_dir(build_dir: Path, idl_type: str, middleware: str) -> Path:
    return build_dir / MIX_DIRNAME / idl_type / middleware / "lib"


def get_manifest_root(build_dir: Path, idl_type: str, middleware: str) -> Path:
    return get_library_dir(build_dir, idl_type, middleware) / MIX_DIRNAME


def get_config_install_dir(prefix: Path, target: str) -> Path:
    return prefix / "lib" / MIX_DIRNAME / target


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def library_filename(target: str, platform: str | None = None) -> str:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return f"{target}.dll"
    if platform == "darwin":
        return f"lib{target}.dylib"
    return f"lib{target}.so"
