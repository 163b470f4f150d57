from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from lockpool.errors import IncorrectBonusMultiplier, UnknownLockPeriod


@dataclass
class BonusSchedule:
    """
    Lock duration (seconds) -> bonus multiplier (basis `multiplier_base`).

    A multiplier is copied into the position at lock time, so later edits
    never affect existing positions.
    """
    multiplier_base: int = 100
    max_multiplier: int = 255
    _periods: Dict[int, int] = field(default_factory=dict)

    # --- reads ---
    def multiplier_for(self, duration: int, *, expected: Optional[int] = None) -> int:
        mult = self._periods.get(int(duration))
        if mult is None:
            raise UnknownLockPeriod(duration=duration)
        if expected is not None and int(expected) != mult:
            raise IncorrectBonusMultiplier(duration=duration, expected=expected, actual=mult)
        return mult

    def weight_for(self, amount: int, multiplier: int) -> int:
        return (amount * multiplier) // self.multiplier_base

    def periods(self) -> List[Tuple[int, int]]:
        return sorted(self._periods.items())

    # --- writes ---
    def validate_pairs(self, durations: Iterable[int], multipliers: Iterable[int]) -> List[Tuple[int, int]]:
        ds, ms = list(durations), list(multipliers)
        if len(ds) != len(ms):
            raise ValueError(f"durations/multipliers length mismatch ({len(ds)} != {len(ms)})")
        pairs: List[Tuple[int, int]] = []
        for d, m in zip(ds, ms):
            d, m = int(d), int(m)
            if d < 0:
                raise ValueError(f"lock duration must be non-negative (got {d})")
            # 0 removes the period
            if m != 0 and not (self.multiplier_base <= m <= self.max_multiplier):
                raise ValueError(
                    f"multiplier for duration {d} must be 0 or in "
                    f"[{self.multiplier_base}, {self.max_multiplier}] (got {m})"
                )
            pairs.append((d, m))
        return pairs

    def set_periods(self, durations: Iterable[int], multipliers: Iterable[int]) -> List[Tuple[int, int]]:
        pairs = self.validate_pairs(durations, multipliers)
        for d, m in pairs:
            if m == 0:
                self._periods.pop(d, None)
            else:
                self._periods[d] = m
        return pairs

    def to_dict(self) -> Dict[str, int]:
        return {str(d): m for d, m in self.periods()}

    @staticmethod
    def from_mapping(
        periods: Dict[int, int], *, multiplier_base: int = 100, max_multiplier: int = 255
    ) -> "BonusSchedule":
        sched = BonusSchedule(multiplier_base=multiplier_base, max_multiplier=max_multiplier)
        items = sorted((int(k), int(v)) for k, v in periods.items())
        sched.set_periods([d for d, _ in items], [m for _, m in items])
        return sched


__all__ = ["BonusSchedule"]
