"""Ordered record of recoverable problems met during a run."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from common.errors import RequiredProblemsError
from common.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class ProblemLog:
    """Collects diagnostics for dropped packages and middlewares.

    Problems are logged as warnings, or as errors when the run is required.
    Required runs stop at the next :meth:`raise_if_required` checkpoint.
    """

    required: bool = False
    messages: List[str] = field(default_factory=list)

    def report(self, message: str) -> None:
        self.messages.append(message)
        LOGGER.log(logging.ERROR if self.required else logging.WARNING, "%s", message)

    @property
    def has_problems(self) -> bool:
        return bool(self.messages)

    def raise_if_required(self) -> None:
        if self.required and self.messages:
            raise RequiredProblemsError(self.messages)


__all__ = ["ProblemLog"]
