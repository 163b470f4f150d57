from __future__ import annotations
"""
Lock pool event types.

Events are appended to the pool journal after every successful mutation and
fanned out to subscribers (metrics, RPC/WebSocket layers, tests). All events
are pure dataclasses with JSON-serializable `to_dict()` helpers.

Events:
  - PositionLocked:      a new position was created (lock / relock / merge / consume)
  - PositionUnlocked:    a position's value left the pool (ordinary or emergency)
  - PositionsMerged:     unlocked positions were folded into one score carrier
  - ScoreConsumed:       part of a position's score was redeemed
  - DistributionUpdated: the accumulator absorbed new inflows
  - AdminAction:         schedule change, emergency activation, ownership handover

Timestamps are the pool clock (UNIX seconds) at the time of the operation.
"""


from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(str, Enum):
    LOCKED = "PositionLocked"
    UNLOCKED = "PositionUnlocked"
    MERGED = "PositionsMerged"
    CONSUMED = "ScoreConsumed"
    DISTRIBUTION = "DistributionUpdated"
    ADMIN = "AdminAction"


class ExitKind(str, Enum):
    ORDINARY = "ordinary"
    EMERGENCY = "emergency"
    RELOCK = "relock"


@dataclass
class PositionLocked:
    etype: EventType
    ts: int
    position_id: int
    owner: str
    principal: int
    weight: int
    duration: int
    score: int
    origin: str = "lock"  # lock | relock | merge | consume

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        for k in ("principal", "weight", "score"):
            d[k] = str(d[k])
        return d


@dataclass
class PositionUnlocked:
    etype: EventType
    ts: int
    position_id: int
    destination: Optional[str]
    principal: int
    paid: int
    kind: ExitKind = ExitKind.ORDINARY

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        d["kind"] = self.kind.value
        d["principal"] = str(self.principal)
        d["paid"] = str(self.paid)
        return d


@dataclass
class PositionsMerged:
    etype: EventType
    ts: int
    position_ids: List[int]
    new_position_id: int
    score: int

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        d["score"] = str(self.score)
        return d


@dataclass
class ScoreConsumed:
    etype: EventType
    ts: int
    position_id: int
    new_position_id: int
    consumer: str
    amount: int
    remaining: int

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        d["amount"] = str(self.amount)
        d["remaining"] = str(self.remaining)
        return d


@dataclass
class DistributionUpdated:
    etype: EventType
    ts: int
    new_funds: int
    total_weight: int
    points_per_weight: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.value,
            "ts": self.ts,
            "new_funds": str(self.new_funds),
            "total_weight": str(self.total_weight),
            "points_per_weight": str(self.points_per_weight),
        }


@dataclass
class AdminAction:
    etype: EventType
    ts: int
    action: str
    caller: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d


__all__ = [
    "EventType",
    "ExitKind",
    "PositionLocked",
    "PositionUnlocked",
    "PositionsMerged",
    "ScoreConsumed",
    "DistributionUpdated",
    "AdminAction",
]
