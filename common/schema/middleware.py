"""Selected middleware record."""
from __future__ import annotations

from dataclasses import dataclass

from common.config.extensions import ExtensionDescriptor


@dataclass(frozen=True)
class Middleware:
    """A requested middleware whose extension descriptor was found."""

    name: str
    extension: ExtensionDescriptor

    @property
    def runtime(self) -> str:
        return self.extension.runtime

    @property
    def use_templates(self) -> bool:
        return self.extension.use_templates


__all__ = ["Middleware"]
