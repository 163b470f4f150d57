from __future__ import annotations

import pytest

from lockpool.config import LockPoolConfig, ScheduleConfig
from lockpool.lifecycle.pool import DistributionPool
from lockpool.registry import InMemoryRegistry
from lockpool.treasury import InMemoryAsset

E18 = 10**18
DAY = 86_400
POOL = "lockpool"
ADMIN = "god"

# 0 days at 1.0x, 1 day at 1.2x, 2 days at 1.5x
LOCK_PERIODS = {0: 100, DAY: 120, 2 * DAY: 150}


def units(whole: int, add: int = 0, sub: int = 0) -> int:
    return whole * E18 + add - sub


class FakeClock:
    """Deterministic UNIX-seconds clock for time-lock tests."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def asset() -> InMemoryAsset:
    a = InMemoryAsset(symbol="TKN", decimals=18)
    a.mint(ADMIN, units(240_000_000))
    for account in ("alice", "bob", "carol"):
        a.transfer(ADMIN, account, units(1000), reason="faucet")
    return a


@pytest.fixture
def registry() -> InMemoryRegistry:
    return InMemoryRegistry()


def make_pool(asset, registry, clock, periods=None) -> DistributionPool:
    cfg = LockPoolConfig(schedule=ScheduleConfig(lock_periods=dict(LOCK_PERIODS if periods is None else periods)))
    return DistributionPool(asset=asset, registry=registry, admin_owner=ADMIN, pool_account=POOL, config=cfg, clock=clock)


@pytest.fixture
def pool(asset, registry, clock) -> DistributionPool:
    return make_pool(asset, registry, clock)
