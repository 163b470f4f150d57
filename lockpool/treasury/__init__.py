from __future__ import annotations
"""
lockpool.treasury
=================

Base-asset movement for the pool: the `AssetLedger` capability (atomic
transfers between the pool account and external parties) and an in-memory
balance book used by tests and single-process deployments.
"""

from .asset import AssetLedger, InMemoryAsset, TransferEntry

__all__ = ["AssetLedger", "InMemoryAsset", "TransferEntry"]
