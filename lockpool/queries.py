from __future__ import annotations

"""
Read-only batch queries over one owner's positions.

These are convenience compositions of the pool's single-position queries,
used by the RPC layer and the inspection CLI. Everything runs under the
pool lock so a result reflects one consistent state.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from lockpool.lifecycle.pool import DistributionPool
from lockpool.ptypes import PositionView


@dataclass(frozen=True)
class LockedPositions:
    position_ids: List[int]
    positions: List[PositionView]
    withdrawables: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position_ids": list(self.position_ids),
            "positions": [p.to_dict() for p in self.positions],
            "withdrawables": [str(w) for w in self.withdrawables],
        }


def tokens_of(pool: DistributionPool, owner: str) -> List[int]:
    """All position ids currently owned by `owner`, ascending."""
    return pool.tokens_of(owner)


def tokens_and_scores_of(pool: DistributionPool, owner: str) -> Tuple[List[int], List[int]]:
    with pool.guard():
        ids = pool.tokens_of(owner)
        return ids, [pool.attributes_of(pid).score for pid in ids]


def locked_positions_of(pool: DistributionPool, owner: str) -> LockedPositions:
    """Owned positions that still carry weight, with their views and withdrawable amounts."""
    with pool.guard():
        ids: List[int] = []
        views: List[PositionView] = []
        amounts: List[int] = []
        for pid in pool.tokens_of(owner):
            view = pool.position_of(pid)
            if view.weight == 0:
                continue
            ids.append(pid)
            views.append(view)
            amounts.append(pool.withdrawable_of(pid))
        return LockedPositions(position_ids=ids, positions=views, withdrawables=amounts)


def locked_positions_and_scores_of(pool: DistributionPool, owner: str) -> Tuple[LockedPositions, List[int]]:
    with pool.guard():
        locked = locked_positions_of(pool, owner)
        return locked, [v.score for v in locked.positions]


__all__ = [
    "LockedPositions",
    "tokens_of",
    "tokens_and_scores_of",
    "locked_positions_of",
    "locked_positions_and_scores_of",
]
