from __future__ import annotations

"""
lockpool.version - the package version.

LOCKPOOL_VERSION in the environment wins; otherwise the installed
distribution's version, or BASE_VERSION when running from a source tree.
"""

import os
from importlib import metadata

BASE_VERSION = "0.1.0"


def build_version() -> str:
    override = os.getenv("LOCKPOOL_VERSION")
    if override:
        return override
    try:
        return metadata.version("lockpool")
    except metadata.PackageNotFoundError:
        return BASE_VERSION


__version__ = build_version()


def get_version() -> str:
    return __version__


__all__ = ["__version__", "get_version", "BASE_VERSION"]
