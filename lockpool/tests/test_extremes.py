"""
Extreme-value cycles: the largest bonus with the smallest deposit, and the
largest deposit with the smallest inflow. Each cycle may leave at most one
unit of dust in the pool.
"""

import pytest

from lockpool.registry import InMemoryRegistry
from lockpool.tests.conftest import ADMIN, DAY, POOL, FakeClock, make_pool, units
from lockpool.treasury import InMemoryAsset

SUPPLY = units(240_000_000)


@pytest.fixture
def whale():
    asset = InMemoryAsset()
    asset.mint(ADMIN, SUPPLY)
    pool = make_pool(asset, InMemoryRegistry(), FakeClock(), periods={0: 100, DAY: 255})
    return pool, asset


def test_max_lock_min_reward_cycles(whale):
    pool, asset = whale
    for i in range(1, 11):
        pid = pool.lock(ADMIN, units(1), DAY)
        assert pool.position_of(pid).weight == units(2, add=55 * 10**16)

        pool.distribute(ADMIN, units(239_000_000))
        assert pool.withdrawable_of(pid) == units(239_000_001, sub=1)

        pool.clock.advance(DAY)
        pool.unlock(ADMIN, pid)

        assert asset.balance_of(POOL) == i
        assert pool.distributable() == i
        assert asset.balance_of(ADMIN) == SUPPLY - i
        pool.check_conservation()


def test_min_lock_max_reward_cycles(whale):
    pool, asset = whale
    for i in range(1, 6):
        pid = pool.lock(ADMIN, asset.balance_of(ADMIN) - 1, 0)
        principal = pool.position_of(pid).principal

        pool.distribute(ADMIN, 1)
        assert pool.withdrawable_of(pid) == principal

        assert pool.unlock(ADMIN, pid) == principal
        assert asset.balance_of(POOL) == pool.distributable() == i
        pool.check_conservation()
