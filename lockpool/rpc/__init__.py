from __future__ import annotations

"""
lockpool.rpc
------------

Read-only RPC surface for the lock pool:
  • JSON-RPC method table (`methods.make_methods`)
  • FastAPI REST router mirroring the same queries (`methods.build_rest_router`)
  • mounting helpers (`mount.mount_lockpool`, `mount.register_jsonrpc`)
"""

from typing import Dict, Final

# Base path under which lock pool endpoints are mounted into a host API.
RPC_PREFIX: Final[str] = "/lockpool"

LOCKPOOL_OPENAPI_TAG: Final[Dict[str, str]] = {
    "name": "lockpool",
    "description": "Time-locked deposit pool: positions, withdrawable amounts and tiers (read-only).",
}

__all__ = [
    "RPC_PREFIX",
    "LOCKPOOL_OPENAPI_TAG",
]
