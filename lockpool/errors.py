from __future__ import annotations
# lockpool/errors.py
"""
Error types for the lock pool. Every lifecycle precondition maps to one of
these; they are raised before any state is touched, so a caught error means
the pool is exactly as it was. All errors are serializable and safe to
surface over RPC/logs.

Exports:
- LockPoolError (base)
- UnknownLockPeriod
- PositionStillLocked
- ScoreUnderflow
- Unauthorized
- LockingDisabled
- EmergencyModeRequired
- InvalidAmount
- InsufficientBalance
- PositionNotFound
- PositionNotLocked
- InvalidBatch
- IncorrectBonusMultiplier
- LedgerInvariantError
"""


from typing import Any, Dict, Iterable, Mapping, Optional
import json


class LockPoolError(Exception):
    """Base class for lock pool domain errors."""

    code: str = "LOCKPOOL_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            # Keep this compact and stable for logs
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class UnknownLockPeriod(LockPoolError):
    """The requested lock duration has no configured bonus multiplier."""
    code = "LOCKPOOL_UNKNOWN_LOCK_PERIOD"

    def __init__(self, *, duration: int, message: str = "no bonus multiplier for duration") -> None:
        super().__init__(message, details={"duration": int(duration)})


class PositionStillLocked(LockPoolError):
    """
    The time-lock has not elapsed (and emergency mode is off), or a merge was
    attempted on a position that still carries weight.
    """
    code = "LOCKPOOL_POSITION_STILL_LOCKED"

    def __init__(
        self,
        *,
        position_id: int,
        unlock_time: Optional[int] = None,
        now: Optional[int] = None,
        message: str = "position is still locked",
    ) -> None:
        d: Dict[str, Any] = {"position_id": int(position_id)}
        if unlock_time is not None:
            d["unlock_time"] = int(unlock_time)
        if now is not None:
            d["now"] = int(now)
        super().__init__(message, details=d)


class ScoreUnderflow(LockPoolError):
    """Consume amount exceeds the position's score."""
    code = "LOCKPOOL_SCORE_UNDERFLOW"

    def __init__(self, *, position_id: int, score: int, amount: int, message: str = "insufficient score") -> None:
        super().__init__(
            message,
            details={"position_id": int(position_id), "score": str(score), "amount": str(amount)},
        )


class Unauthorized(LockPoolError):
    """Caller is neither the owner nor an approved operator."""
    code = "LOCKPOOL_UNAUTHORIZED"

    def __init__(
        self,
        *,
        caller: str,
        action: str,
        position_id: Optional[int] = None,
        message: str = "caller not authorized",
    ) -> None:
        d: Dict[str, Any] = {"caller": caller, "action": action}
        if position_id is not None:
            d["position_id"] = int(position_id)
        super().__init__(message, details=d)


class LockingDisabled(LockPoolError):
    """New locks are rejected once emergency mode is active."""
    code = "LOCKPOOL_LOCKING_DISABLED"

    def __init__(self, message: str = "locking disabled in emergency mode") -> None:
        super().__init__(message)


class EmergencyModeRequired(LockPoolError):
    """Emergency unlock was requested while emergency mode is off."""
    code = "LOCKPOOL_EMERGENCY_MODE_REQUIRED"

    def __init__(self, message: str = "emergency mode is not active") -> None:
        super().__init__(message)


class InvalidAmount(LockPoolError):
    code = "LOCKPOOL_INVALID_AMOUNT"

    def __init__(self, *, name: str, value: Any, message: str = "amount must be a positive integer") -> None:
        super().__init__(message, details={"name": name, "value": repr(value)})


class InsufficientBalance(LockPoolError):
    """An external account cannot cover a debit into (or out of) the pool."""
    code = "LOCKPOOL_INSUFFICIENT_BALANCE"

    def __init__(self, *, account: str, required: int, available: int, message: str = "insufficient balance") -> None:
        super().__init__(
            message,
            details={"account": account, "required": str(required), "available": str(available)},
        )


class PositionNotFound(LockPoolError):
    code = "LOCKPOOL_POSITION_NOT_FOUND"

    def __init__(self, *, position_id: int, message: str = "no such position") -> None:
        super().__init__(message, details={"position_id": int(position_id)})


class PositionNotLocked(LockPoolError):
    """Exit or relock requested on a position that no longer carries weight."""
    code = "LOCKPOOL_POSITION_NOT_LOCKED"

    def __init__(self, *, position_id: int, message: str = "position has no locked value") -> None:
        super().__init__(message, details={"position_id": int(position_id)})


class InvalidBatch(LockPoolError):
    code = "LOCKPOOL_INVALID_BATCH"

    def __init__(self, *, position_ids: Iterable[int], message: str = "invalid position batch") -> None:
        super().__init__(message, details={"position_ids": [int(p) for p in position_ids]})


class IncorrectBonusMultiplier(LockPoolError):
    """Caller's expected multiplier differs from the configured one."""
    code = "LOCKPOOL_INCORRECT_BONUS_MULTIPLIER"

    def __init__(self, *, duration: int, expected: int, actual: int, message: str = "bonus multiplier mismatch") -> None:
        super().__init__(
            message,
            details={"duration": int(duration), "expected": int(expected), "actual": int(actual)},
        )


class LedgerInvariantError(LockPoolError):
    """Accounting would underflow or break conservation; indicates a bug or corrupt snapshot."""
    code = "LOCKPOOL_LEDGER_INVARIANT"


__all__ = [
    "LockPoolError",
    "UnknownLockPeriod",
    "PositionStillLocked",
    "ScoreUnderflow",
    "Unauthorized",
    "LockingDisabled",
    "EmergencyModeRequired",
    "InvalidAmount",
    "InsufficientBalance",
    "PositionNotFound",
    "PositionNotLocked",
    "InvalidBatch",
    "IncorrectBonusMultiplier",
    "LedgerInvariantError",
]
