from __future__ import annotations
"""
Core record types for the lock pool.

- Position / PositionView: per-deposit bookkeeping and its read-only projection
- PoolState: pool-wide totals and the distribution accumulator
- Attributes: derived presentation attributes (tier, score, sequence)
- events: lifecycle event payloads
"""

from typing import NewType

Account = NewType("Account", str)
PositionId = int

from .pool import PoolState  # noqa: E402
from .position import Attributes, Position, PositionView  # noqa: E402

__all__ = ["Account", "PositionId", "PoolState", "Position", "PositionView", "Attributes"]
