"""Apply recorded install rules to an install prefix."""
from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from common.errors import ConfigurationError
from common.logging import get_logger
from common.paths import ensure_dir

from .build_graph import BuildGraph, InstallRule

LOGGER = get_logger(__name__)


@dataclass
class InstallSummary:
    prefix: Path
    installed: List[Path] = field(default_factory=list)
    skipped: List[InstallRule] = field(default_factory=list)


def apply_install(graph: BuildGraph, prefix: Path) -> InstallSummary:
    """Copy every install rule's source below ``prefix``.

    Files land in ``<prefix>/<destination>/<name>``; directories are merged
    into ``<prefix>/<destination>``. Rules whose ``requires`` file is missing
    are skipped, so an artifact's config descriptor and manifests are only
    installed next to a compiled library.
    """

    summary = InstallSummary(prefix=prefix)
    for rule in graph.install_rules:
        if rule.requires is not None and not rule.requires.exists():
            LOGGER.warning("%s has not been built yet; skipping %s", rule.requires, rule.source)
            summary.skipped.append(rule)
            continue
        if not rule.source.exists():
            if rule.optional:
                LOGGER.warning("%s has not been built yet; skipping its installation", rule.source)
                summary.skipped.append(rule)
                continue
            raise ConfigurationError(f"Cannot install missing {rule.kind} {rule.source}")
        destination = ensure_dir(prefix / rule.destination)
        if rule.kind == "directory":
            shutil.copytree(rule.source, destination, dirs_exist_ok=True)
            summary.installed.append(destination)
        else:
            target = destination / rule.source.name
            shutil.copy2(rule.source, target)
            summary.installed.append(target)
        LOGGER.debug("Installed %s -> %s", rule.source, summary.installed[-1])
    LOGGER.info("Installed %d item(s) into %s", len(summary.installed), prefix)
    return summary


__all__ = ["InstallSummary", "apply_install"]
