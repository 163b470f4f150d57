from __future__ import annotations

"""
Lock pool - position lifecycle
------------------------------

`DistributionPool` is the single entry point for every state change:

  lock            deposit `amount` for `duration`, receive a new position
  unlock          after the time-lock, withdraw principal plus owed inflows
  batch_unlock    unlock several positions with one outgoing transfer
  emergency_unlock  principal-only refund, available once emergency mode is on
  relock          roll a matured position (plus optional top-up) into a new lock
  batch_relock    same, folding several positions into one
  merge           fold unlocked positions into one score carrier
  consume         redeem part of an unlocked position's score
  distribute      move an inflow into the pool and absorb it

Each call takes the pool lock, checks every precondition, then refreshes the
ledger and applies its mutations. A raised `LockPoolError` therefore means
nothing changed. The pool account's asset balance is always
`total_principal + distributable` once pending inflows are absorbed.

Ownership is delegated to a `PositionRegistry`, asset movement to an
`AssetLedger`. Time comes from an injectable `clock` returning UNIX seconds.
"""

import functools
import logging
import time
from dataclasses import asdict
from threading import RLock
from typing import (Any, Callable, Dict, Iterable, List, Mapping, Optional,
                    Sequence, Tuple)

from lockpool import metrics
from lockpool.config import (LedgerParams, LockPoolConfig, ScheduleConfig,
                             TierConfig)
from lockpool.errors import (EmergencyModeRequired, InsufficientBalance,
                             InvalidAmount, InvalidBatch, LockingDisabled,
                             LockPoolError, PositionNotFound,
                             PositionNotLocked, PositionStillLocked,
                             ScoreUnderflow, Unauthorized)
from lockpool.ledger import DistributionLedger
from lockpool.lifecycle.admin import AdminControl
from lockpool.lifecycle.schedule import BonusSchedule
from lockpool.lifecycle.tiers import tier_of
from lockpool.ptypes import Attributes, PoolState, Position, PositionView
from lockpool.ptypes.events import (AdminAction, DistributionUpdated,
                                    EventType, ExitKind, PositionLocked,
                                    PositionsMerged, PositionUnlocked,
                                    ScoreConsumed)
from lockpool.registry import PositionRegistry
from lockpool.treasury import AssetLedger

log = logging.getLogger(__name__)

Clock = Callable[[], int]
Listener = Callable[[Any], None]


def _system_clock() -> int:
    return int(time.time())


def _require_positive(amount: int, name: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(name=name, value=amount)
    return amount


def _require_nonneg(amount: int, name: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmount(name=name, value=amount, message=f"{name} must be a non-negative integer")
    return amount


def _tracked(fn):
    """Count rejected calls by error code, then re-raise. Pending events are delivered either way."""

    @functools.wraps(fn)
    def wrapper(self: "DistributionPool", *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except LockPoolError as e:
            metrics.record_rejection(fn.__name__, e.code)
            log.info("pool: %s rejected: %s", fn.__name__, e)
            raise
        finally:
            self._deliver()

    return wrapper


class DistributionPool:
    def __init__(
        self,
        *,
        asset: AssetLedger,
        registry: PositionRegistry,
        admin_owner: str,
        pool_account: str = "lockpool",
        config: Optional[LockPoolConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        cfg = config or LockPoolConfig()
        cfg.validate()
        self.config = cfg
        self.asset = asset
        self.registry = registry
        self.pool_account = pool_account
        self.clock: Clock = clock or _system_clock

        self.state = PoolState()
        self.ledger = DistributionLedger(self.state, scale_bits=cfg.ledger.points_scale_bits)
        self.schedule = BonusSchedule.from_mapping(
            cfg.schedule.lock_periods,
            multiplier_base=cfg.ledger.multiplier_base,
            max_multiplier=cfg.ledger.max_bonus_multiplier,
        )
        self.thresholds: Tuple[int, ...] = tuple(cfg.tiers.thresholds)
        self.admin = AdminControl(owner=admin_owner)

        self._positions: Dict[int, Position] = {}
        self._events: List[Any] = []
        self._listeners: List[Listener] = []
        self._pending: List[Any] = []
        self._lock = RLock()

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def subscribe(self, listener: Listener) -> None:
        """Register a callback invoked with every event after it is journaled."""
        with self._lock:
            self._listeners.append(listener)

    def events(self) -> Tuple[Any, ...]:
        with self._lock:
            return tuple(self._events)

    def guard(self) -> RLock:
        """The pool lock, for callers composing several reads into one snapshot."""
        return self._lock

    def _emit(self, event: Any) -> None:
        self._events.append(event)
        self._pending.append(event)

    def _deliver(self) -> None:
        """Fan journaled events out once the operation that produced them is complete."""
        with self._lock:
            pending, self._pending = self._pending, []
            for event in pending:
                for listener in list(self._listeners):
                    try:
                        listener(event)
                    except Exception as e:
                        log.warning("pool: listener %r failed on %s: %s", listener, type(event).__name__, e)

    # ------------------------------------------------------------------ #
    # Internal helpers (caller holds the lock)
    # ------------------------------------------------------------------ #

    def _now(self) -> int:
        return int(self.clock())

    def _pool_balance(self) -> int:
        return self.asset.balance_of(self.pool_account)

    def _refresh(self) -> int:
        absorbed = self.ledger.refresh(self._pool_balance())
        if absorbed:
            attributed = self.state.total_weight > 0
            metrics.record_distribution(
                absorbed, attributed=attributed, decimals=self.config.ledger.asset_decimals
            )
            self._emit(
                DistributionUpdated(
                    etype=EventType.DISTRIBUTION,
                    ts=self._now(),
                    new_funds=absorbed,
                    total_weight=self.state.total_weight,
                    points_per_weight=self.state.points_per_weight,
                )
            )
        return absorbed

    def _publish_totals(self) -> None:
        s = self.state
        metrics.set_pool_totals(
            s.total_weight, s.total_principal, s.distributable, decimals=self.config.ledger.asset_decimals
        )

    def _record(self, position_id: int) -> Position:
        pos = self._positions.get(position_id)
        if pos is None:
            raise PositionNotFound(position_id=position_id)
        return pos

    def _require_authorized(self, caller: str, position_id: int, action: str) -> Position:
        # owner_of raises PositionNotFound for unknown or burned ids
        self.registry.owner_of(position_id)
        pos = self._record(position_id)
        if not self.registry.is_authorized(position_id, caller):
            raise Unauthorized(caller=caller, action=action, position_id=position_id)
        return pos

    def _require_exitable(self, caller: str, position_id: int, action: str) -> Position:
        pos = self._require_authorized(caller, position_id, action)
        if not pos.locked:
            raise PositionNotLocked(position_id=position_id)
        now = self._now()
        if now < pos.unlock_time and not self.state.emergency:
            raise PositionStillLocked(position_id=position_id, unlock_time=pos.unlock_time, now=now)
        return pos

    def _require_unlocked(self, caller: str, position_id: int, action: str) -> Position:
        pos = self._require_authorized(caller, position_id, action)
        if pos.locked:
            raise PositionStillLocked(
                position_id=position_id, message=f"{action} requires positions without locked value"
            )
        return pos

    def _require_balance(self, account: str, amount: int) -> None:
        have = self.asset.balance_of(account)
        if have < amount:
            raise InsufficientBalance(account=account, required=amount, available=have)

    @staticmethod
    def _require_batch(position_ids: Iterable[int], minimum: int = 1) -> List[int]:
        ids = [int(p) for p in position_ids]
        if len(ids) < minimum or len(set(ids)) != len(ids):
            raise InvalidBatch(
                position_ids=ids,
                message=f"batch must hold at least {minimum} distinct position id(s)",
            )
        return ids

    def _close(self, position_id: int, pos: Position) -> Tuple[int, int]:
        """Zero a locked position's economic content. Returns (principal, owed)."""
        principal = pos.principal
        owed = self.ledger.owed(pos)
        self.ledger.set_weight(pos, 0)
        self.ledger.remove_principal(principal)
        self.ledger.release(owed)
        pos.principal = 0
        return principal, owed

    def _burn(self, position_id: int, pos: Position) -> None:
        self.registry.burn(position_id)
        pos.principal = 0
        pos.score = 0
        pos.burned = True

    def _mint(
        self,
        owner: str,
        *,
        principal: int,
        duration: int,
        multiplier: int,
        score: int,
        origin: str,
    ) -> int:
        """Create a position; `principal` must already sit in the pool balance."""
        now = self._now()
        position_id = self.registry.create(owner)
        self.state.mint_sequence += 1
        pos = Position(
            principal=principal,
            weight=0,
            points_correction=0,
            unlock_time=now + duration,
            score=score,
            sequence=self.state.mint_sequence,
            duration=duration,
            bonus_multiplier=multiplier,
        )
        self.ledger.add_principal(principal)
        self.ledger.set_weight(pos, self.schedule.weight_for(principal, multiplier) if principal else 0)
        self._positions[position_id] = pos
        metrics.record_position_created(origin)
        self._emit(
            PositionLocked(
                etype=EventType.LOCKED,
                ts=now,
                position_id=position_id,
                owner=owner,
                principal=principal,
                weight=pos.weight,
                duration=duration,
                score=score,
                origin=origin,
            )
        )
        return position_id

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @_tracked
    def lock(
        self,
        caller: str,
        amount: int,
        duration: int,
        destination: Optional[str] = None,
        *,
        bonus_multiplier: Optional[int] = None,
    ) -> int:
        """
        Deposit `amount` from `caller` for `duration` seconds.

        The new position is owned by `destination` (default: caller). Pass
        `bonus_multiplier` to fail unless the schedule still offers exactly
        that multiplier for `duration`.
        """
        with self._lock:
            _require_positive(amount)
            if self.state.emergency:
                raise LockingDisabled()
            multiplier = self.schedule.multiplier_for(duration, expected=bonus_multiplier)
            self._require_balance(caller, amount)

            self._refresh()
            self.asset.transfer(caller, self.pool_account, amount, reason="lock")
            position_id = self._mint(
                destination or caller,
                principal=amount,
                duration=int(duration),
                multiplier=multiplier,
                score=amount * int(duration),
                origin="lock",
            )
            self._publish_totals()
            log.info(
                "pool: lock id=%d owner=%s amount=%d duration=%d multiplier=%d",
                position_id, destination or caller, amount, duration, multiplier,
            )
            return position_id

    @_tracked
    def unlock(self, caller: str, position_id: int, destination: Optional[str] = None) -> int:
        """Withdraw principal plus owed inflows of a matured position. Returns the amount paid."""
        return self._unlock([position_id], caller, destination)

    @_tracked
    def batch_unlock(self, caller: str, position_ids: Sequence[int], destination: Optional[str] = None) -> int:
        return self._unlock(self._require_batch(position_ids), caller, destination)

    def _unlock(self, position_ids: List[int], caller: str, destination: Optional[str]) -> int:
        with self._lock:
            dest = destination or caller
            records = [(pid, self._require_exitable(caller, pid, "unlock")) for pid in position_ids]

            self._refresh()
            now = self._now()
            total = 0
            for pid, pos in records:
                principal, owed = self._close(pid, pos)
                total += principal + owed
                self._emit(
                    PositionUnlocked(
                        etype=EventType.UNLOCKED,
                        ts=now,
                        position_id=pid,
                        destination=dest,
                        principal=principal,
                        paid=principal + owed,
                    )
                )
            self.asset.transfer(self.pool_account, dest, total, reason="unlock")
            metrics.record_exit(ExitKind.ORDINARY.value, len(records))
            self._publish_totals()
            log.info("pool: unlock ids=%s destination=%s paid=%d", position_ids, dest, total)
            return total

    @_tracked
    def emergency_unlock(self, caller: str, position_id: int, destination: Optional[str] = None) -> int:
        """
        Refund principal only, ignoring the time-lock.

        The owed share is forfeited and stays in `distributable`. No refresh
        happens first, so the refund never depends on distribution accounting.
        """
        with self._lock:
            if not self.state.emergency:
                raise EmergencyModeRequired()
            pos = self._require_authorized(caller, position_id, "emergency_unlock")
            if not pos.locked:
                raise PositionNotLocked(position_id=position_id)
            dest = destination or caller

            principal = pos.principal
            self.ledger.set_weight(pos, 0)
            self.ledger.remove_principal(principal)
            pos.principal = 0
            self.asset.transfer(self.pool_account, dest, principal, reason="emergency_unlock")

            self._emit(
                PositionUnlocked(
                    etype=EventType.UNLOCKED,
                    ts=self._now(),
                    position_id=position_id,
                    destination=dest,
                    principal=principal,
                    paid=principal,
                    kind=ExitKind.EMERGENCY,
                )
            )
            metrics.record_exit(ExitKind.EMERGENCY.value)
            self._publish_totals()
            log.warning("pool: emergency unlock id=%d destination=%s principal=%d", position_id, dest, principal)
            return principal

    @_tracked
    def relock(
        self,
        caller: str,
        position_id: int,
        added_amount: int,
        duration: int,
        destination: Optional[str] = None,
        *,
        bonus_multiplier: Optional[int] = None,
    ) -> int:
        """
        Roll a matured position's whole value (principal + owed), plus
        `added_amount` from the caller, into a new position. Returns the new id.
        """
        return self._relock([position_id], caller, added_amount, duration, destination, bonus_multiplier)

    @_tracked
    def batch_relock(
        self,
        caller: str,
        position_ids: Sequence[int],
        added_amount: int,
        duration: int,
        destination: Optional[str] = None,
        *,
        bonus_multiplier: Optional[int] = None,
    ) -> int:
        return self._relock(
            self._require_batch(position_ids), caller, added_amount, duration, destination, bonus_multiplier
        )

    def _relock(
        self,
        position_ids: List[int],
        caller: str,
        added_amount: int,
        duration: int,
        destination: Optional[str],
        bonus_multiplier: Optional[int],
    ) -> int:
        with self._lock:
            _require_nonneg(added_amount, "added_amount")
            multiplier = self.schedule.multiplier_for(duration, expected=bonus_multiplier)
            records = [(pid, self._require_exitable(caller, pid, "relock")) for pid in position_ids]
            if added_amount:
                self._require_balance(caller, added_amount)

            self._refresh()
            now = self._now()
            carried = 0
            for pid, pos in records:
                principal, owed = self._close(pid, pos)
                carried += principal + owed
                self._emit(
                    PositionUnlocked(
                        etype=EventType.UNLOCKED,
                        ts=now,
                        position_id=pid,
                        destination=None,
                        principal=principal,
                        paid=principal + owed,
                        kind=ExitKind.RELOCK,
                    )
                )
            if added_amount:
                self.asset.transfer(caller, self.pool_account, added_amount, reason="relock")

            principal = carried + added_amount
            new_id = self._mint(
                destination or caller,
                principal=principal,
                duration=int(duration),
                multiplier=multiplier,
                score=principal * int(duration),
                origin="relock",
            )
            metrics.record_exit(ExitKind.RELOCK.value, len(records))
            self._publish_totals()
            log.info(
                "pool: relock ids=%s -> id=%d principal=%d (carried=%d added=%d)",
                position_ids, new_id, principal, carried, added_amount,
            )
            return new_id

    @_tracked
    def merge(self, caller: str, position_ids: Sequence[int], destination: Optional[str] = None) -> int:
        """Fold two or more unlocked positions into one carrying the summed score."""
        with self._lock:
            ids = self._require_batch(position_ids, minimum=2)
            records = [(pid, self._require_unlocked(caller, pid, "merge")) for pid in ids]

            self._refresh()
            score = sum(pos.score for _, pos in records)
            for pid, pos in records:
                self._burn(pid, pos)
            new_id = self._mint(
                destination or caller, principal=0, duration=0, multiplier=0, score=score, origin="merge"
            )
            self._emit(
                PositionsMerged(
                    etype=EventType.MERGED, ts=self._now(), position_ids=ids, new_position_id=new_id, score=score
                )
            )
            log.info("pool: merge ids=%s -> id=%d score=%d", ids, new_id, score)
            return new_id

    @_tracked
    def consume(self, caller: str, position_id: int, amount: int, destination: Optional[str] = None) -> int:
        """
        Redeem `amount` of an unlocked position's score.

        The position is burned and a replacement carrying the remaining score
        is minted to `destination` (default: the current owner).
        """
        with self._lock:
            _require_positive(amount)
            pos = self._require_unlocked(caller, position_id, "consume")
            if amount > pos.score:
                raise ScoreUnderflow(position_id=position_id, score=pos.score, amount=amount)
            dest = destination or self.registry.owner_of(position_id)

            self._refresh()
            remaining = pos.score - amount
            self._burn(position_id, pos)
            new_id = self._mint(dest, principal=0, duration=0, multiplier=0, score=remaining, origin="consume")
            self._emit(
                ScoreConsumed(
                    etype=EventType.CONSUMED,
                    ts=self._now(),
                    position_id=position_id,
                    new_position_id=new_id,
                    consumer=caller,
                    amount=amount,
                    remaining=remaining,
                )
            )
            log.info("pool: consume id=%d amount=%d -> id=%d remaining=%d", position_id, amount, new_id, remaining)
            return new_id

    # ------------------------------------------------------------------ #
    # Distribution
    # ------------------------------------------------------------------ #

    def update_distribution(self) -> int:
        """Absorb any asset sent to the pool since the last refresh. Returns the amount absorbed."""
        with self._lock:
            absorbed = self._refresh()
            self._publish_totals()
        self._deliver()
        return absorbed

    @_tracked
    def distribute(self, sender: str, amount: int) -> int:
        with self._lock:
            _require_positive(amount)
            self._require_balance(sender, amount)
            self.asset.transfer(sender, self.pool_account, amount, reason="distribute")
            absorbed = self._refresh()
            self._publish_totals()
            return absorbed

    # ------------------------------------------------------------------ #
    # Administration
    # ------------------------------------------------------------------ #

    @_tracked
    def set_lock_periods(self, caller: str, durations: Sequence[int], multipliers: Sequence[int]) -> List[Tuple[int, int]]:
        """Add, change or (multiplier 0) remove bonus schedule entries. Owner only."""
        with self._lock:
            self.admin.require_owner(caller, "set_lock_periods")
            pairs = self.schedule.set_periods(durations, multipliers)
            self._emit(
                AdminAction(
                    etype=EventType.ADMIN,
                    ts=self._now(),
                    action="set_lock_periods",
                    caller=caller,
                    data={str(d): m for d, m in pairs},
                )
            )
            log.info("pool: lock periods updated %s", pairs)
            return pairs

    @_tracked
    def activate_emergency_mode(self, caller: str) -> None:
        with self._lock:
            self.admin.require_owner(caller, "activate_emergency_mode")
            if self.state.emergency:
                return
            self.state.emergency = True
            self._emit(AdminAction(etype=EventType.ADMIN, ts=self._now(), action="activate_emergency_mode", caller=caller))
            log.warning("pool: emergency mode activated by %s", caller)

    @_tracked
    def propose_owner(self, caller: str, new_owner: str) -> None:
        with self._lock:
            self.admin.propose_owner(caller, new_owner)
            self._emit(
                AdminAction(
                    etype=EventType.ADMIN,
                    ts=self._now(),
                    action="propose_owner",
                    caller=caller,
                    data={"pending_owner": new_owner},
                )
            )

    @_tracked
    def accept_ownership(self, caller: str) -> None:
        with self._lock:
            previous = self.admin.accept_ownership(caller)
            self._emit(
                AdminAction(
                    etype=EventType.ADMIN,
                    ts=self._now(),
                    action="accept_ownership",
                    caller=caller,
                    data={"previous_owner": previous},
                )
            )

    @property
    def owner(self) -> str:
        return self.admin.owner

    @property
    def pending_owner(self) -> Optional[str]:
        return self.admin.pending_owner

    @property
    def emergency(self) -> bool:
        return self.state.emergency

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def withdrawable_of(self, position_id: int) -> int:
        """Principal plus owed inflows, against the last refreshed accumulator."""
        with self._lock:
            pos = self._record(position_id)
            return pos.principal + self.ledger.owed(pos)

    def position_of(self, position_id: int) -> PositionView:
        with self._lock:
            return self._record(position_id).view()

    def attributes_of(self, position_id: int) -> Attributes:
        with self._lock:
            pos = self._record(position_id)
            return Attributes(tier=tier_of(pos.score, self.thresholds), score=pos.score, sequence=pos.sequence)

    def exists(self, position_id: int) -> bool:
        with self._lock:
            return position_id in self._positions and not self._positions[position_id].burned

    def position_ids(self) -> List[int]:
        """All live (unburned) position ids, ascending."""
        with self._lock:
            return sorted(pid for pid, pos in self._positions.items() if not pos.burned)

    def owner_of(self, position_id: int) -> str:
        return self.registry.owner_of(position_id)

    def tokens_of(self, owner: str) -> List[int]:
        return self.registry.tokens_of(owner)

    def lock_periods(self) -> List[Tuple[int, int]]:
        with self._lock:
            return self.schedule.periods()

    def total_units(self) -> int:
        with self._lock:
            return self.state.total_weight

    def total_deposited(self) -> int:
        with self._lock:
            return self.state.total_principal

    def distributable(self) -> int:
        with self._lock:
            return self.state.distributable

    def pool_balance(self) -> int:
        with self._lock:
            return self._pool_balance()

    def check_conservation(self, *, refresh: bool = True) -> None:
        """
        Raise LedgerInvariantError unless the pool balance equals
        total_principal + distributable. Pending inflows are absorbed first
        unless `refresh` is False.
        """
        with self._lock:
            if refresh:
                self._refresh()
                self._deliver()
            self.ledger.check_conservation(self._pool_balance())

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "pool_account": self.pool_account,
                "pool_balance": str(self._pool_balance()),
                "total_units": str(self.state.total_weight),
                "total_deposited": str(self.state.total_principal),
                "distributable": str(self.state.distributable),
                "points_per_weight": str(self.state.points_per_weight),
                "emergency": self.state.emergency,
                "positions": len(self.position_ids()),
                "owner": self.admin.owner,
                "pending_owner": self.admin.pending_owner,
            }

    # ------------------------------------------------------------------ #
    # Snapshot
    # ------------------------------------------------------------------ #

    def dump(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "pool_account": self.pool_account,
                "state": self.state.to_dict(),
                "positions": {str(pid): pos.to_dict() for pid, pos in sorted(self._positions.items())},
                "schedule": self.schedule.to_dict(),
                "admin": self.admin.to_dict(),
                "ledger": asdict(self.config.ledger),
                "tiers": [str(t) for t in self.thresholds],
            }

    @classmethod
    def load(
        cls,
        data: Mapping[str, Any],
        *,
        asset: AssetLedger,
        registry: PositionRegistry,
        clock: Optional[Clock] = None,
    ) -> "DistributionPool":
        ledger_params = LedgerParams(**{k: int(v) for k, v in (data.get("ledger") or {}).items()})
        tiers = data.get("tiers")
        config = LockPoolConfig(
            ledger=ledger_params,
            schedule=ScheduleConfig(lock_periods={int(k): int(v) for k, v in (data.get("schedule") or {}).items()}),
            tiers=TierConfig(thresholds=tuple(int(t) for t in tiers)) if tiers else TierConfig(),
        )
        admin = AdminControl.from_dict(data["admin"])
        pool = cls(
            asset=asset,
            registry=registry,
            admin_owner=admin.owner,
            pool_account=str(data.get("pool_account", "lockpool")),
            config=config,
            clock=clock,
        )
        pool.admin = admin
        restored = PoolState.from_dict(data.get("state") or {})
        # The ledger holds a reference to the state; update it in place.
        for name, value in vars(restored).items():
            setattr(pool.state, name, value)
        pool._positions = {int(k): Position.from_dict(v) for k, v in (data.get("positions") or {}).items()}
        return pool


__all__ = ["Clock", "DistributionPool"]
