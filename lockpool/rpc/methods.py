from __future__ import annotations

"""
lockpool.rpc.methods
--------------------

JSON-RPC style query methods for the lock pool.

Exposed methods (bind via `make_methods`):
  • lockpool.getPool
  • lockpool.getPosition
  • lockpool.getWithdrawable
  • lockpool.getAttributes
  • lockpool.getMetadata
  • lockpool.listPositions
  • lockpool.getLockPeriods

Design:
  - Transport-agnostic: `make_methods` returns a dict of callables a JSON-RPC
    dispatcher can register. `build_rest_router` exposes the same callables
    as FastAPI REST endpoints.
  - Read-only. State changes go through `DistributionPool` directly.
  - Large integers (amounts, scores, the accumulator) are returned as decimal
    strings so JSON clients never lose precision.

Usage:
    from lockpool.rpc.methods import make_methods
    methods = make_methods(pool)
    dispatcher.register_many(methods)
"""

from typing import Any, Callable, Dict, Optional

from lockpool.errors import LockPoolError, PositionNotFound
from lockpool.lifecycle.pool import DistributionPool
from lockpool.metadata import (DEFAULT_MEDIA_BASE_URL, collection_info,
                               metadata_for)
from lockpool.queries import locked_positions_of


# ---- Helpers ---------------------------------------------------------------

def _coerce_id(value: Any, name: str = "positionId") -> int:
    try:
        iv = int(value)
    except (TypeError, ValueError) as e:
        raise LockPoolError(f"invalid {name}: must be a positive integer", details={name: repr(value)}) from e
    if iv <= 0:
        raise LockPoolError(f"invalid {name}: must be a positive integer", details={name: repr(value)})
    return iv


def _position_payload(pool: DistributionPool, pid: int) -> Dict[str, Any]:
    with pool.guard():
        out = pool.position_of(pid).to_dict()
        out["positionId"] = pid
        out["owner"] = pool.owner_of(pid) if pool.exists(pid) else None
        out["withdrawable"] = str(pool.withdrawable_of(pid))
        return out


# ---- JSON-RPC method factory ----------------------------------------------

def make_methods(
    pool: DistributionPool, *, media_base_url: str = DEFAULT_MEDIA_BASE_URL
) -> Dict[str, Callable[..., Any]]:
    """
    Build a mapping of JSON-RPC method name -> callable.
    Each callable returns plain JSON-serializable structures.
    """

    def lockpool_get_pool() -> Dict[str, Any]:
        return pool.summary()

    def lockpool_get_position(*, positionId: Any) -> Dict[str, Any]:
        return _position_payload(pool, _coerce_id(positionId))

    def lockpool_get_withdrawable(*, positionId: Any) -> Dict[str, Any]:
        pid = _coerce_id(positionId)
        return {"positionId": pid, "withdrawable": str(pool.withdrawable_of(pid))}

    def lockpool_get_attributes(*, positionId: Any) -> Dict[str, Any]:
        pid = _coerce_id(positionId)
        out = pool.attributes_of(pid).to_dict()
        out["positionId"] = pid
        return out

    def lockpool_get_metadata(*, positionId: Any) -> Dict[str, Any]:
        return metadata_for(pool.attributes_of(_coerce_id(positionId)), media_base_url=media_base_url)

    def lockpool_list_positions(*, owner: str, lockedOnly: bool = False) -> Dict[str, Any]:
        if not owner:
            raise LockPoolError("owner is required")
        if lockedOnly:
            locked = locked_positions_of(pool, owner)
            return {"owner": owner, "items": [_position_payload(pool, pid) for pid in locked.position_ids]}
        with pool.guard():
            return {"owner": owner, "items": [_position_payload(pool, pid) for pid in pool.tokens_of(owner)]}

    def lockpool_get_lock_periods() -> Dict[str, Any]:
        return {
            "multiplierBase": pool.schedule.multiplier_base,
            "items": [{"duration": d, "multiplier": m} for d, m in pool.lock_periods()],
        }

    # Map JSON-RPC names → callables
    return {
        "lockpool.getPool": lockpool_get_pool,
        "lockpool.getPosition": lockpool_get_position,
        "lockpool.getWithdrawable": lockpool_get_withdrawable,
        "lockpool.getAttributes": lockpool_get_attributes,
        "lockpool.getMetadata": lockpool_get_metadata,
        "lockpool.listPositions": lockpool_list_positions,
        "lockpool.getLockPeriods": lockpool_get_lock_periods,
    }


# ---- REST adapter (FastAPI) ------------------------------------------------

def build_rest_router(pool: DistributionPool, *, media_base_url: str = DEFAULT_MEDIA_BASE_URL):
    """
    Return a FastAPI APIRouter exposing the read-only queries.
    Mount path suggestion: f"{RPC_PREFIX}" (import from lockpool.rpc).
    """
    from fastapi import APIRouter, HTTPException

    router = APIRouter()
    methods = make_methods(pool, media_base_url=media_base_url)

    def _call(name: str, **params: Any) -> Any:
        try:
            return methods[name](**params)
        except PositionNotFound as e:
            raise HTTPException(status_code=404, detail=e.to_dict()) from e
        except LockPoolError as e:
            raise HTTPException(status_code=400, detail=e.to_dict()) from e

    @router.get("/pool")
    def http_get_pool():
        return _call("lockpool.getPool")

    @router.get("/lock-periods")
    def http_get_lock_periods():
        return _call("lockpool.getLockPeriods")

    @router.get("/info")
    def http_collection_info():
        return collection_info(media_base_url=media_base_url)

    @router.get("/positions/{position_id}")
    def http_get_position(position_id: int):
        return _call("lockpool.getPosition", positionId=position_id)

    @router.get("/positions/{position_id}/withdrawable")
    def http_get_withdrawable(position_id: int):
        return _call("lockpool.getWithdrawable", positionId=position_id)

    @router.get("/positions/{position_id}/attributes")
    def http_get_attributes(position_id: int):
        return _call("lockpool.getAttributes", positionId=position_id)

    @router.get("/positions/{position_id}/metadata")
    def http_get_metadata(position_id: int):
        return _call("lockpool.getMetadata", positionId=position_id)

    @router.get("/owners/{owner}/positions")
    def http_list_positions(owner: str, locked: bool = False):
        return _call("lockpool.listPositions", owner=owner, lockedOnly=locked)

    return router


__all__ = ["make_methods", "build_rest_router"]
