"""Per-type mix manifest entries.

Downstream tooling finds the bridge for a type by looking up
``<idl>/<middleware>/{msg,srv}/<package>/<type>.mix`` below the mix
directory of an install; each entry names the library to load relative to
itself.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import yaml

from common.paths import MANIFEST_LIBRARY_DIRECTORY, ensure_dir
from common.schema import MixIdentity


def manifest_entry_path(root: Path, identity: MixIdentity, kind: str, type_name: str) -> Path:
    return root / identity.idl_type / identity.middleware / kind / identity.package / f"{type_name}.mix"


def write_manifest_entries(
    root: Path,
    identity: MixIdentity,
    library_file: str,
    *,
    msg_types: Sequence[str] = (),
    srv_types: Sequence[str] = (),
) -> List[Path]:
    payload = yaml.safe_dump(
        {
            "library": library_file,
            "directory": MANIFEST_LIBRARY_DIRECTORY,
            "target": identity.target,
        },
        sort_keys=False,
    )
    written: List[Path] = []
    for kind, names in (("msg", msg_types), ("srv", srv_types)):
        for type_name in names:
            path = manifest_entry_path(root, identity, kind, type_name)
            ensure_dir(path.parent)
            path.write_text(payload, encoding="utf-8")
            written.append(path)
    return written


__all__ = ["manifest_entry_path", "write_manifest_entries"]
