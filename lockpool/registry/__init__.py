from __future__ import annotations
"""
lockpool.registry
=================

Ownership capability for position records (create / owner_of / transfer /
approve / burn). The pool consumes the `PositionRegistry` protocol; an
in-memory implementation is provided for tests and single-process use.
"""

from .ownership import InMemoryRegistry, PositionRegistry

__all__ = ["InMemoryRegistry", "PositionRegistry"]
