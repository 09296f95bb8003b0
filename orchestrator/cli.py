"""Mix generator CLI.

Example::

    mix-generate --idl-type rosidl --packages nav_msgs --middlewares ros2 websocket \
        --find-script tools/find_package_info.py --generate-script tools/generate.py
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from common.config import build_request, load_run_file, load_settings
from common.errors import MixError
from common.logging import configure_logging, get_logger
from executor import BuildGraph, apply_install
from orchestrator.mix import MixRun

LOGGER = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate mix libraries for interface packages")
    parser.add_argument("--config", type=Path, help="Run file (YAML) with settings and request")
    parser.add_argument("--idl-type", help="IDL kind, e.g. rosidl")
    parser.add_argument("--packages", nargs="+", default=[], help="Packages to generate mixes for")
    parser.add_argument("--middlewares", nargs="+", default=[], help="Middlewares to target")
    parser.add_argument("--quiet", action="store_true", help="Suppress status updates")
    parser.add_argument(
        "--required",
        action="store_true",
        help="Fail when anything prevents a mix library from being generated",
    )
    parser.add_argument("--interpreter", help="Interpreter for the find/generate scripts")
    parser.add_argument("--find-script", type=Path, help="Package introspection script")
    parser.add_argument("--generate-script", type=Path, help="Source generation script")
    parser.add_argument("--build-dir", type=Path)
    parser.add_argument("--install-prefix", type=Path)
    parser.add_argument("--prefix-path", type=Path, action="append", default=[])
    parser.add_argument("--extension-dir", type=Path, action="append", default=[])
    parser.add_argument("--install", action="store_true", help="Install the results after generation")
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


def _settings_data(args: argparse.Namespace) -> dict:
    data = load_run_file(args.config)
    if args.interpreter:
        data["interpreter"] = args.interpreter
    if args.find_script:
        data["find_script"] = str(args.find_script)
    if args.generate_script:
        data["generate_script"] = str(args.generate_script)
    if args.build_dir:
        data["build_dir"] = str(args.build_dir)
    if args.install_prefix:
        data["install_prefix"] = str(args.install_prefix)
    if args.prefix_path:
        data["prefix_path"] = _as_strings(data.get("prefix_path")) + [str(path) for path in args.prefix_path]
    if args.extension_dir:
        data["extension_dirs"] = _as_strings(data.get("extension_dirs")) + [str(path) for path in args.extension_dir]
    return data


def _as_strings(value: object) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if args.log_level:
        configure_logging(args.log_level)
    try:
        data = _settings_data(args)
        settings = load_settings(data)
        request = build_request(
            data,
            idl_type=args.idl_type,
            packages=args.packages,
            middlewares=args.middlewares,
            quiet=args.quiet,
            required=args.required,
        )
        report = MixRun(request, settings).run()
        if args.install and report.build_graph_path is not None:
            apply_install(BuildGraph.load(report.build_graph_path), settings.install_prefix)
    except MixError as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc
    for middleware, packages in report.plans.items():
        LOGGER.info("[%s] generated %d mix librar%s", middleware, len(packages), "y" if len(packages) == 1 else "ies")


if __name__ == "__main__":
    main()
