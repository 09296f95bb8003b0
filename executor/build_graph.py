"""In-memory build graph handed to the native toolchain.

Units are shared libraries with their sources, link edges and include
directories. Link edges must point at a unit of this graph or at a target
imported from outside the run; anything else is a :class:`LinkFailed`.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from common.errors import LinkFailed
from common.logging import get_logger
from common.paths import ensure_dir

LOGGER = get_logger(__name__)


@dataclass
class BuildUnit:
    name: str
    sources: List[Path]
    link_libraries: List[str]
    include_dirs: List[Path]
    output_dir: Path
    kind: str = "shared"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "sources": [str(path) for path in self.sources],
            "link_libraries": list(self.link_libraries),
            "include_dirs": [str(path) for path in self.include_dirs],
            "output_dir": str(self.output_dir),
        }


@dataclass(frozen=True)
class InstallRule:
    """Copy ``source`` to ``<prefix>/<destination>``.

    ``kind`` is ``file`` or ``directory``. Optional rules are skipped with a warning
    when their source does not exist yet (e.g. a library not compiled yet).
    A rule with ``requires`` is skipped the same way while that file is missing.
    """

    kind: str
    source: Path
    destination: str
    component: str = ""
    optional: bool = False
    requires: Optional[Path] = None
    target: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["source"] = str(self.source)
        payload["requires"] = str(self.requires) if self.requires is not None else None
        return payload


@dataclass
class BuildGraph:
    units: Dict[str, BuildUnit] = field(default_factory=dict)
    imported: List[str] = field(default_factory=list)
    install_rules: List[InstallRule] = field(default_factory=list)

    def has_unit(self, name: str) -> bool:
        return name in self.units

    def knows(self, name: str) -> bool:
        return name in self.units or name in self.imported

    def add_imported(self, *names: str) -> None:
        for name in names:
            if name and name not in self.imported:
                self.imported.append(name)

    def add_library(
        self,
        name: str,
        sources: Sequence[Path],
        *,
        link_libraries: Sequence[str] = (),
        include_dirs: Sequence[Path] = (),
        output_dir: Path,
    ) -> BuildUnit:
        existing = self.units.get(name)
        if existing is not None:
            return existing
        missing = [library for library in link_libraries if not self.knows(library)]
        if missing:
            raise LinkFailed(name, missing)
        unit = BuildUnit(
            name=name,
            sources=list(sources),
            link_libraries=_unique(link_libraries),
            include_dirs=_unique(include_dirs),
            output_dir=output_dir,
        )
        self.units[name] = unit
        LOGGER.debug("Registered build unit %s (%d sources)", name, len(unit.sources))
        return unit

    def discard(self, name: str) -> None:
        """Forget the unit ``name`` and the install rules recorded for it."""

        self.units.pop(name, None)
        self.install_rules = [rule for rule in self.install_rules if rule.target != name]

    def add_install(self, rule: InstallRule) -> None:
        if rule not in self.install_rules:
            self.install_rules.append(rule)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "units": [unit.to_dict() for unit in self.units.values()],
            "imported": list(self.imported),
            "install": [rule.to_dict() for rule in self.install_rules],
        }

    def write(self, path: Path) -> Path:
        ensure_dir(path.parent)
        path.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "BuildGraph":
        data = json.loads(path.read_text(encoding="utf-8"))
        graph = cls(imported=list(data.get("imported") or []))
        for entry in data.get("units") or []:
            graph.units[entry["name"]] = BuildUnit(
                name=entry["name"],
                sources=[Path(item) for item in entry.get("sources") or []],
                link_libraries=list(entry.get("link_libraries") or []),
                include_dirs=[Path(item) for item in entry.get("include_dirs") or []],
                output_dir=Path(entry["output_dir"]),
                kind=entry.get("kind", "shared"),
            )
        for entry in data.get("install") or []:
            graph.install_rules.append(
                InstallRule(
                    kind=entry["kind"],
                    source=Path(entry["source"]),
                    destination=entry["destination"],
                    component=entry.get("component", ""),
                    optional=bool(entry.get("optional", False)),
                    requires=Path(entry["requires"]) if entry.get("requires") else None,
                    target=entry.get("target", ""),
                )
            )
        return graph


def _unique(items: Iterable[Any]) -> List[Any]:
    seen: List[Any] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


__all__ = ["BuildGraph", "BuildUnit", "InstallRule"]
