"""Selection of the requested middlewares whose extensions are installed."""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from common.config.extensions import find_extension
from common.errors import MiddlewareExtensionMissing
from common.logging import get_logger
from common.paths import mix_target_name
from common.problems import ProblemLog
from common.schema import Middleware

LOGGER = get_logger(__name__)


def select_middlewares(
    idl_type: str,
    requested: Sequence[str],
    search_dirs: Sequence[Path],
    problems: ProblemLog,
) -> List[Middleware]:
    """Return the usable middlewares in request order.

    A middleware without an extension descriptor is reported and dropped.
    """

    selected: List[Middleware] = []
    for name in requested:
        if any(middleware.name == name for middleware in selected):
            continue
        extension = find_extension(idl_type, name, tuple(search_dirs))
        if extension is None:
            problems.report(str(MiddlewareExtensionMissing(idl_type, name, mix_target_name(idl_type, name))))
            continue
        LOGGER.debug("Using %s extension %s", name, extension.path)
        selected.append(Middleware(name=name, extension=extension))
    return selected


__all__ = ["select_middlewares"]
