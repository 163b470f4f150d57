from __future__ import annotations

"""
lockpool.rpc.mount
------------------

Helpers to mount the lock pool RPC surface into an existing FastAPI app
and/or to register the JSON-RPC methods with your dispatcher.

Typical usage (REST):
    from fastapi import FastAPI
    from lockpool.rpc.mount import mount_lockpool
    app = FastAPI()
    mount_lockpool(app, pool, prefix="/lockpool")

Typical usage (JSON-RPC):
    from lockpool.rpc.mount import register_jsonrpc
    register_jsonrpc(dispatcher, pool)

Notes
-----
- No hard dependency on a specific JSON-RPC framework: we just expect a
  dispatcher with a `.add(name, callable)` or `.register(name, callable)` API.
"""

from typing import Any, Protocol

from lockpool.lifecycle.pool import DistributionPool

from . import LOCKPOOL_OPENAPI_TAG, RPC_PREFIX
from .methods import build_rest_router, make_methods


class _JsonRpcDispatcherLike(Protocol):
    """Minimal protocol to support common JSON-RPC dispatchers."""
    def add(self, method: str, func: Any) -> None: ...
    def register(self, method: str, func: Any) -> None: ...


def mount_lockpool(app: Any, pool: DistributionPool, *, prefix: str = RPC_PREFIX, metrics: bool = False) -> None:
    """
    Mount the lock pool REST endpoints under `prefix` on a FastAPI app.

    With `metrics=True` the Prometheus endpoint is mounted at `{prefix}/metrics`.
    """
    router = build_rest_router(pool)
    tag = LOCKPOOL_OPENAPI_TAG["name"]
    app.include_router(router, prefix=prefix, tags=[tag])
    known = list(getattr(app, "openapi_tags", None) or [])
    if not any(t.get("name") == tag for t in known):
        app.openapi_tags = known + [dict(LOCKPOOL_OPENAPI_TAG)]
    if metrics:
        from lockpool.metrics import mount_fastapi

        mount_fastapi(app, path=f"{prefix.rstrip('/')}/metrics")


def register_jsonrpc(dispatcher: _JsonRpcDispatcherLike, pool: DistributionPool) -> None:
    """
    Register JSON-RPC methods on a dispatcher.

    We try `.add(name, fn)` first and fall back to `.register(name, fn)`.
    """
    for name, fn in make_methods(pool).items():
        try:
            dispatcher.add(name, fn)  # type: ignore[attr-defined]
        except AttributeError:
            dispatcher.register(name, fn)  # type: ignore[attr-defined]


__all__ = ["mount_lockpool", "register_jsonrpc"]
