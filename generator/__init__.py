"""Source generation for mix libraries and the per-type mix manifests."""
from .manifest import manifest_entry_path, write_manifest_entries
from .service import (
    GeneratedSources,
    GenerationRequest,
    GeneratorOutput,
    ScriptGenerator,
    SourceGenerator,
    collect_sources,
    generate_sources,
)

__all__ = [
    "GeneratedSources",
    "GenerationRequest",
    "GeneratorOutput",
    "ScriptGenerator",
    "SourceGenerator",
    "collect_sources",
    "generate_sources",
    "manifest_entry_path",
    "write_manifest_entries",
]
