"""Shared helpers for mix generation: logging, paths, configuration, records."""
