from __future__ import annotations

"""
Snapshot persistence
--------------------

Writes the pool, the ownership registry and the asset ledger to a single
JSON file, and restores all three from it. Writes are atomic: the payload
goes to a temp file in the same directory which then replaces the target.

Only the in-memory implementations (`InMemoryRegistry`, `InMemoryAsset`)
are persisted here; pools wired to external registries or asset ledgers
should snapshot `DistributionPool.dump()` on their own.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from lockpool.lifecycle.pool import Clock, DistributionPool
from lockpool.registry import InMemoryRegistry
from lockpool.treasury import InMemoryAsset

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class Snapshot:
    pool: DistributionPool
    registry: InMemoryRegistry
    asset: InMemoryAsset


def _atomic_write(path: str, data: bytes) -> None:
    d = os.path.dirname(os.path.abspath(path)) or "."
    tmp = os.path.join(d, "." + os.path.basename(path) + ".tmp")
    with open(tmp, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)  # atomic on POSIX


def encode(pool: DistributionPool, registry: InMemoryRegistry, asset: InMemoryAsset) -> Dict[str, Any]:
    # All three parts under the pool lock, so no lifecycle call lands in between.
    with pool.guard():
        return {
            "version": SNAPSHOT_VERSION,
            "pool": pool.dump(),
            "registry": registry.dump(),
            "asset": asset.dump(),
        }


def decode(data: Dict[str, Any], *, clock: Optional[Clock] = None) -> Snapshot:
    version = int(data.get("version", 0))
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version {version} (want {SNAPSHOT_VERSION})")
    registry = InMemoryRegistry.load(data["registry"])
    asset = InMemoryAsset.load(data["asset"])
    pool = DistributionPool.load(data["pool"], asset=asset, registry=registry, clock=clock)
    return Snapshot(pool=pool, registry=registry, asset=asset)


class SnapshotStore:
    """Persist a pool and its in-memory collaborators in one JSON file."""

    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)
        self._lock = threading.RLock()

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def save(self, pool: DistributionPool, registry: InMemoryRegistry, asset: InMemoryAsset) -> None:
        payload = json.dumps(encode(pool, registry, asset), indent=2, sort_keys=True).encode("utf-8")
        with self._lock:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            _atomic_write(self.path, payload)
        log.info("store: snapshot saved path=%s bytes=%d", self.path, len(payload))

    def load(self, *, clock: Optional[Clock] = None) -> Snapshot:
        with self._lock:
            with open(self.path, "rb") as f:
                data = json.loads(f.read().decode("utf-8"))
        log.debug("store: snapshot loaded path=%s", self.path)
        return decode(data, clock=clock)


__all__ = ["SNAPSHOT_VERSION", "Snapshot", "SnapshotStore", "encode", "decode"]
