# -*- coding: utf-8 -*-
"""
lockpool.ledger.fixedpoint
==========================

Integer-only fixed-point helpers for the distribution accumulator.

Conventions
-----------
- Values are Python ints; nothing here ever touches floats.
- Rounding direction is explicit in each name; callers pick the one that
  favors the pool.
- Inputs are validated as non-negative ints (bool is rejected).
"""

from __future__ import annotations

from typing import Final

from lockpool.errors import LedgerInvariantError

DEFAULT_SCALE_BITS: Final[int] = 128


def require_uint(x: int, name: str = "value") -> int:
    """Return `x` if it is a non-negative int, else raise LedgerInvariantError."""
    if isinstance(x, bool) or not isinstance(x, int) or x < 0:
        raise LedgerInvariantError(f"{name} must be a non-negative integer", details={"value": repr(x)})
    return x


def mul_div_down(x: int, y: int, d: int) -> int:
    """floor(x * y / d)."""
    if d <= 0:
        raise LedgerInvariantError("division by zero", details={"divisor": d})
    return (x * y) // d


def scale_down(x: int, bits: int) -> int:
    """floor(x / 2**bits) for non-negative x."""
    return x >> bits


def scale_up(x: int, bits: int) -> int:
    """ceil(x / 2**bits) for non-negative x."""
    return -((-x) >> bits)


__all__ = [
    "DEFAULT_SCALE_BITS",
    "require_uint",
    "mul_div_down",
    "scale_down",
    "scale_up",
]
