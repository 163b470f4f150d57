from __future__ import annotations
"""
lockpool.ledger
===============

Distribution ledger: the accumulator arithmetic that apportions inflows to
positions by weight in constant time. Leaf package; it knows nothing about
position lifecycle, ownership, or asset movement.
"""

from .accumulator import DistributionLedger
from .fixedpoint import DEFAULT_SCALE_BITS

__all__ = ["DistributionLedger", "DEFAULT_SCALE_BITS"]
