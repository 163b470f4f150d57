from __future__ import annotations

"""
PoolState: the pool-wide record every lifecycle operation mutates.

It is a plain mutable dataclass handed to the ledger by reference; there is
no module-level singleton. Integers are serialized as decimal strings so the
2**128-scaled accumulator survives JSON round trips.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass
class PoolState:
    total_weight: int = 0
    total_principal: int = 0
    distributable: int = 0
    points_per_weight: int = 0
    emergency: bool = False
    mint_sequence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_weight": str(self.total_weight),
            "total_principal": str(self.total_principal),
            "distributable": str(self.distributable),
            "points_per_weight": str(self.points_per_weight),
            "emergency": self.emergency,
            "mint_sequence": self.mint_sequence,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "PoolState":
        return PoolState(
            total_weight=int(d.get("total_weight", 0)),
            total_principal=int(d.get("total_principal", 0)),
            distributable=int(d.get("distributable", 0)),
            points_per_weight=int(d.get("points_per_weight", 0)),
            emergency=bool(d.get("emergency", False)),
            mint_sequence=int(d.get("mint_sequence", 0)),
        )


__all__ = ["PoolState"]
