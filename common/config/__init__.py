"""Configuration helpers for run settings and middleware extensions."""

from .extensions import ExtensionDescriptor, TemplateSet, clear_extension_cache, find_extension
from .settings import MixRequest, MixSettings, build_request, load_run_file, load_settings

__all__ = [
    "ExtensionDescriptor",
    "MixRequest",
    "MixSettings",
    "TemplateSet",
    "build_request",
    "clear_extension_cache",
    "find_extension",
    "load_run_file",
    "load_settings",
]
