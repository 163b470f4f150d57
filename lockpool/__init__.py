from __future__ import annotations
"""
lockpool - time-locked deposit pool with pro-rata inflow distribution.

Participants lock a base asset for a chosen duration and receive a position
record. Any asset that later flows into the pool is shared between current
positions by bonus-weighted units, using constant-time accumulator
bookkeeping (no iteration over holders). Submodules are lazily imported to
keep import time minimal.

Public surface (lazily loaded):
- config, errors, metrics, store
- ledger, lifecycle, registry, treasury, ptypes
- queries, metadata, rpc, cli
"""


from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    # lazily importable subpackages/modules
    "config",
    "errors",
    "metrics",
    "store",
    "ledger",
    "lifecycle",
    "registry",
    "treasury",
    "ptypes",
    "queries",
    "metadata",
    "rpc",
    "cli",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib


_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the lockpool package version string."""
    return __version__
