from __future__ import annotations

"""
Distribution ledger - scalable pro-rata accounting
--------------------------------------------------

Converts asset inflows into per-position owed amounts in O(1), no matter how
many positions exist. The pool keeps one accumulator, `points_per_weight`
(scaled by 2**SCALE), which grows by `new_funds / total_weight` on every
refresh. A position's owed amount is

    floor(weight * points_per_weight / 2**SCALE) - points_correction

where `points_correction` is recomputed (rounded up) whenever the position's
weight is set, so accumulator growth that happened before the weight existed
is never credited to it.

Rounding
~~~~~~~~
The only systemic loss is the floor in the accumulator increment. It always
favors the pool: owed amounts never exceed actual inflows, and the difference
stays in `distributable` as dust.

Stranded funds
~~~~~~~~~~~~~~
If funds arrive while `total_weight == 0`, they are added to `distributable`
without moving the accumulator. Later refreshes only see funds beyond
`total_principal + distributable`, so those funds are never attributed.
This is the observable economics of the pool and is kept as-is.

The ledger owns no storage: it operates on a `PoolState` and on `Position`
records passed in by the lifecycle layer, which is responsible for locking.
"""

import logging

from lockpool.errors import LedgerInvariantError
from lockpool.ledger.fixedpoint import (DEFAULT_SCALE_BITS, mul_div_down,
                                        require_uint, scale_down, scale_up)
from lockpool.ptypes.pool import PoolState
from lockpool.ptypes.position import Position

log = logging.getLogger(__name__)


def _safe_sub(a: int, b: int, what: str) -> int:
    c = a - b
    if c < 0:
        raise LedgerInvariantError(f"{what} underflow: have {a}, need {b}", details={"have": str(a), "need": str(b)})
    return c


class DistributionLedger:
    """Pool-wide accumulator arithmetic over an explicit PoolState."""

    __slots__ = ("state", "scale_bits")

    def __init__(self, state: PoolState, *, scale_bits: int = DEFAULT_SCALE_BITS) -> None:
        self.state = state
        self.scale_bits = int(scale_bits)

    # --- accumulator ---

    def pending_funds(self, pool_balance: int) -> int:
        """Funds in the pool not yet seen by `refresh` (0 if none)."""
        s = self.state
        return max(0, require_uint(pool_balance, "pool_balance") - s.total_principal - s.distributable)

    def refresh(self, pool_balance: int) -> int:
        """
        Absorb any new inflow into `distributable` and the accumulator.

        Idempotent: a second call with the same balance finds no new funds.
        Returns the amount absorbed.
        """
        s = self.state
        new_funds = self.pending_funds(pool_balance)
        if new_funds == 0:
            log.debug("ledger: refresh no-op (balance=%d)", pool_balance)
            return 0

        s.distributable += new_funds
        if s.total_weight > 0:
            s.points_per_weight += mul_div_down(new_funds, 1 << self.scale_bits, s.total_weight)
            log.debug(
                "ledger: absorbed new_funds=%d total_weight=%d points_per_weight=%d",
                new_funds, s.total_weight, s.points_per_weight,
            )
        else:
            log.info("ledger: new_funds=%d arrived with no weight; kept unattributed", new_funds)
        return new_funds

    def owed(self, position: Position) -> int:
        """Distribution share currently owed to `position` (pure read, never negative)."""
        gross = scale_down(position.weight * self.state.points_per_weight, self.scale_bits)
        return max(0, gross - position.points_correction)

    def set_weight(self, position: Position, new_weight: int) -> None:
        """Establish or zero a position's weight and keep `total_weight` in step."""
        require_uint(new_weight, "new_weight")
        s = self.state
        old_weight = position.weight
        total = s.total_weight + new_weight - old_weight
        if total < 0:
            raise LedgerInvariantError(
                "total_weight underflow",
                details={"total_weight": str(s.total_weight), "old": str(old_weight), "new": str(new_weight)},
            )
        position.points_correction = scale_up(s.points_per_weight * new_weight, self.scale_bits)
        position.weight = new_weight
        s.total_weight = total

    # --- principal / distributable movements ---

    def add_principal(self, amount: int) -> None:
        self.state.total_principal += require_uint(amount, "amount")

    def remove_principal(self, amount: int) -> None:
        s = self.state
        s.total_principal = _safe_sub(s.total_principal, require_uint(amount, "amount"), "total_principal")

    def release(self, amount: int) -> None:
        """Move `amount` of owed distribution out of `distributable` (paid or carried into principal)."""
        s = self.state
        s.distributable = _safe_sub(s.distributable, require_uint(amount, "amount"), "distributable")

    # --- checks ---

    def check_conservation(self, pool_balance: int) -> None:
        """Raise unless pool_balance == total_principal + distributable."""
        s = self.state
        expected = s.total_principal + s.distributable
        if pool_balance != expected:
            raise LedgerInvariantError(
                "conservation violated",
                details={
                    "pool_balance": str(pool_balance),
                    "total_principal": str(s.total_principal),
                    "distributable": str(s.distributable),
                },
            )


__all__ = ["DistributionLedger"]
