import pytest

from lockpool import queries
from lockpool.tests.conftest import ADMIN, DAY, units


@pytest.fixture
def three_positions(pool, asset):
    asset.transfer(ADMIN, "alice", units(2000), reason="faucet")
    # 1.0x, 1.2x and 1.5x over the same principal
    ids = [
        pool.lock("alice", units(1000), 0),
        pool.lock("alice", units(1000), DAY),
        pool.lock("alice", units(1000), 2 * DAY),
    ]
    pool.distribute(ADMIN, units(1000))
    return ids


def test_withdrawables_follow_bonus_weights(pool, three_positions):
    a, b, c = three_positions
    assert pool.withdrawable_of(a) == units(1270, add=270270270270270270)
    assert pool.withdrawable_of(b) == units(1324, add=324324324324324324)
    assert pool.withdrawable_of(c) == units(1405, add=405405405405405405)


def test_tokens_and_scores(pool, three_positions):
    ids, scores = queries.tokens_and_scores_of(pool, "alice")
    assert ids == three_positions
    assert scores == [0, units(1000) * DAY, units(1000) * 2 * DAY]
    assert queries.tokens_of(pool, "bob") == []


def test_locked_positions_skip_exited_ones(pool, three_positions):
    a, b, c = three_positions
    pool.unlock("alice", a)

    locked = queries.locked_positions_of(pool, "alice")
    assert locked.position_ids == [b, c]
    assert [v.bonus_multiplier for v in locked.positions] == [120, 150]
    assert locked.withdrawables == [pool.withdrawable_of(b), pool.withdrawable_of(c)]
    assert locked.to_dict()["withdrawables"][0] == str(units(1324, add=324324324324324324))

    locked2, scores = queries.locked_positions_and_scores_of(pool, "alice")
    assert locked2 == locked
    assert scores == [units(1000) * DAY, units(1000) * 2 * DAY]
