from __future__ import annotations

"""
Position records.

A Position is the ledger's bookkeeping for one deposit:

  principal          amount returned verbatim on exit (never includes bonus)
  weight             principal * bonus_multiplier // multiplier_base; share of inflows
  points_correction  owed-amount offset, re-derived whenever weight changes
  unlock_time        UNIX seconds after which ordinary exit is allowed
  score              principal * duration at creation (or summed by merge)
  sequence           creation index, for stable ordering/display only

A position is *locked* while weight > 0. Exits zero weight and principal but
keep score; merge/consume burn the record's identity and zero its score.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass
class Position:
    principal: int
    weight: int
    points_correction: int
    unlock_time: int
    score: int
    sequence: int
    duration: int = 0
    bonus_multiplier: int = 0
    burned: bool = False

    @property
    def locked(self) -> bool:
        return self.weight > 0

    def view(self) -> "PositionView":
        return PositionView(
            principal=self.principal,
            weight=self.weight,
            unlock_time=self.unlock_time,
            score=self.score,
            sequence=self.sequence,
            duration=self.duration,
            bonus_multiplier=self.bonus_multiplier,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": str(self.principal),
            "weight": str(self.weight),
            "points_correction": str(self.points_correction),
            "unlock_time": self.unlock_time,
            "score": str(self.score),
            "sequence": self.sequence,
            "duration": self.duration,
            "bonus_multiplier": self.bonus_multiplier,
            "burned": self.burned,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Position":
        return Position(
            principal=int(d["principal"]),
            weight=int(d["weight"]),
            points_correction=int(d["points_correction"]),
            unlock_time=int(d["unlock_time"]),
            score=int(d["score"]),
            sequence=int(d["sequence"]),
            duration=int(d.get("duration", 0)),
            bonus_multiplier=int(d.get("bonus_multiplier", 0)),
            burned=bool(d.get("burned", False)),
        )


@dataclass(frozen=True)
class PositionView:
    """Read-only projection returned by `position_of` (no correction term)."""
    principal: int
    weight: int
    unlock_time: int
    score: int
    sequence: int
    duration: int = 0
    bonus_multiplier: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": str(self.principal),
            "weight": str(self.weight),
            "unlock_time": self.unlock_time,
            "score": str(self.score),
            "sequence": self.sequence,
            "duration": self.duration,
            "bonus_multiplier": self.bonus_multiplier,
        }


@dataclass(frozen=True)
class Attributes:
    """Presentation attributes, recomputed on every read."""
    tier: int
    score: int
    sequence: int

    def to_dict(self) -> Dict[str, Any]:
        return {"tier": self.tier, "score": str(self.score), "sequence": self.sequence}


__all__ = ["Position", "PositionView", "Attributes"]
