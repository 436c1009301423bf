# src/polyemit/meta.py

"""Centralized program identity constants for polyemit."""

from typing import NamedTuple

_BASE = "polyemit"

# CLI script name (the executable or `poetry run` entrypoint)
PROGRAM_SCRIPT = _BASE

# Human-readable name for banners, help text, etc.
PROGRAM_DISPLAY = _BASE.title()

# Python package / import name
PROGRAM_PACKAGE = _BASE.replace("-", "_")

# Environment variable prefix (used for POLYEMIT_LOG_LEVEL, etc.)
PROGRAM_ENV = _BASE.replace("-", "_").upper()

# Short tagline or description for help screens and metadata
DESCRIPTION = (
    "Merge, compile and minify TypeScript sources into esm, cjs and browser builds."
)


class Metadata(NamedTuple):
    version: str
    commit: str
