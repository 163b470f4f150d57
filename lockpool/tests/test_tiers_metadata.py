import pytest

from lockpool.config import (MAX_TIERS, SECONDS_PER_DAY, LockPoolConfig, TierConfig,
                             default_tier_thresholds)
from lockpool.lifecycle.pool import DistributionPool
from lockpool.lifecycle.tiers import DEFAULT_THRESHOLDS, max_tier, tier_of
from lockpool.metadata import TIERS, collection_info, metadata_for, tier_name
from lockpool.ptypes import Attributes
from lockpool.tests.conftest import ADMIN, DAY, units

TOKEN_DAY = 10**18 * SECONDS_PER_DAY


def test_default_thresholds_give_thirteen_tiers():
    assert len(DEFAULT_THRESHOLDS) == 12
    assert max_tier() == 13
    assert DEFAULT_THRESHOLDS[0] == 150 * TOKEN_DAY
    assert DEFAULT_THRESHOLDS[-1] == 500_000 * TOKEN_DAY
    assert default_tier_thresholds(6)[0] == 150 * 10**6 * SECONDS_PER_DAY


@pytest.mark.parametrize(
    "score, tier",
    [
        (0, 1),
        (150 * TOKEN_DAY - 1, 1),
        (150 * TOKEN_DAY, 2),
        (1_000 * TOKEN_DAY, 4),
        (7_000 * TOKEN_DAY, 7),
        (499_999 * TOKEN_DAY, 12),
        (500_000 * TOKEN_DAY, 13),
        (10**40, 13),
    ],
)
def test_tier_boundaries(score, tier):
    assert tier_of(score) == tier


def test_custom_thresholds():
    assert tier_of(5, (10, 20)) == 1
    assert tier_of(10, (10, 20)) == 2
    assert tier_of(25, (10, 20)) == 3
    assert max_tier((10, 20)) == 3


def test_attributes_follow_score(pool, clock):
    pid = pool.lock("alice", units(1000), DAY)
    attrs = pool.attributes_of(pid)
    assert attrs == Attributes(tier=4, score=units(1000) * DAY, sequence=1)

    clock.advance(DAY)
    pool.unlock("alice", pid)
    new_id = pool.consume("alice", pid, units(900) * DAY)
    assert pool.attributes_of(new_id).tier == 1
    assert pool.attributes_of(new_id).sequence == 2


def test_metadata_document():
    doc = metadata_for(Attributes(tier=13, score=42, sequence=7), media_base_url="https://cdn.example/m/")
    assert doc["name"] == "The Kraken"
    assert doc["image"] == "https://cdn.example/m/thekraken.png"
    assert doc["animation_url"].endswith("thekraken.mp4")
    traits = {a["trait_type"]: a["value"] for a in doc["attributes"]}
    assert traits == {"score": "42", "tier": "13", "sequence": "7"}


def test_tier_names():
    assert len(TIERS) == 13
    assert tier_name(1) == "Ikalgo"
    assert tier_name(14, "tier 14") == "tier 14"
    with pytest.raises(ValueError):
        tier_name(14)
    assert collection_info()["tiers"]["8"] == "Cthulhu"


def test_every_configurable_tier_has_a_name():
    longest = tuple(range(1, MAX_TIERS))
    TierConfig(thresholds=longest).validate()
    assert max_tier(longest) == MAX_TIERS
    assert all(tier_name(t) for t in range(1, MAX_TIERS + 1))


def test_pool_refuses_more_tiers_than_names(asset, registry, clock):
    cfg = LockPoolConfig(tiers=TierConfig(thresholds=tuple(range(1, MAX_TIERS + 1))))
    with pytest.raises(ValueError):
        DistributionPool(asset=asset, registry=registry, admin_owner=ADMIN, config=cfg, clock=clock)
