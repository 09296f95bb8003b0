"""Package information records and the introspection output decoder."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple

from common.errors import MalformedPackageInfo

# Introspection output: four ``;``-separated fields, each ``#``-separated.
FIELD_SEPARATOR = ";"
LIST_SEPARATOR = "#"
PACKAGE_INFO_FIELDS = ("dependencies", "msg_files", "srv_files", "file_dependencies")


@dataclass(frozen=True)
class PackageInfo:
    """What the introspection tool reports about one package."""

    name: str
    dependencies: Tuple[str, ...] = ()
    msg_files: Tuple[Path, ...] = ()
    srv_files: Tuple[Path, ...] = ()
    file_dependencies: Tuple[Path, ...] = ()
    libraries: Tuple[str, ...] = field(default=(), compare=False)
    include_dirs: Tuple[Path, ...] = field(default=(), compare=False)

    @property
    def msg_types(self) -> List[str]:
        return type_names(self.msg_files)

    @property
    def srv_types(self) -> List[str]:
        return type_names(self.srv_files)


def _split_list(raw: str) -> List[str]:
    return [token.strip() for token in raw.split(LIST_SEPARATOR) if token.strip()]


def parse_package_info(package: str, output: str) -> PackageInfo:
    """Decode the introspection tool's stdout for ``package``.

    Raises :class:`MalformedPackageInfo` unless there are exactly four fields.
    """

    text = output.strip()
    fields = text.split(FIELD_SEPARATOR) if text else []
    if len(fields) != len(PACKAGE_INFO_FIELDS):
        raise MalformedPackageInfo(package, len(fields), len(PACKAGE_INFO_FIELDS))
    dependencies, msg_files, srv_files, file_deps = (_split_list(item) for item in fields)
    ordered_deps: List[str] = []
    for name in dependencies:
        if name != package and name not in ordered_deps:
            ordered_deps.append(name)
    return PackageInfo(
        name=package,
        dependencies=tuple(ordered_deps),
        msg_files=tuple(Path(item) for item in msg_files),
        srv_files=tuple(Path(item) for item in srv_files),
        file_dependencies=tuple(Path(item) for item in file_deps),
    )


def type_names(files: Sequence[Path]) -> List[str]:
    """``[.../Pose.msg, .../Point.msg] -> ["Pose", "Point"]``"""

    names: List[str] = []
    for path in files:
        stem = Path(path).name.split(".", 1)[0]
        if stem and stem not in names:
            names.append(stem)
    return names


__all__ = [
    "FIELD_SEPARATOR",
    "LIST_SEPARATOR",
    "PACKAGE_INFO_FIELDS",
    "PackageInfo",
    "parse_package_info",
    "type_names",
]
