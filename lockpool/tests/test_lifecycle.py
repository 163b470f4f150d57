import pytest

from lockpool.errors import (IncorrectBonusMultiplier, InsufficientBalance,
                             InvalidAmount, InvalidBatch, PositionNotFound,
                             PositionNotLocked, PositionStillLocked,
                             Unauthorized, UnknownLockPeriod)
from lockpool.ptypes.events import EventType, PositionLocked, PositionUnlocked
from lockpool.tests.conftest import ADMIN, DAY, POOL, units


def test_enter_and_exit_returns_deposits(pool, asset):
    ids = [pool.lock(who, units(1000), 0) for who in ("alice", "bob", "carol")]
    assert ids == [1, 2, 3]
    assert asset.balance_of(POOL) == units(3000)
    assert pool.total_deposited() == units(3000)
    assert pool.total_units() == units(3000)
    for pid in ids:
        assert pool.withdrawable_of(pid) == units(1000)

    for pid, who in zip(ids, ("alice", "bob", "carol")):
        assert pool.unlock(who, pid) == units(1000)
        assert asset.balance_of(who) == units(1000)
        assert pool.position_of(pid).weight == 0

    assert asset.balance_of(POOL) == 0
    assert pool.total_deposited() == 0
    assert pool.total_units() == 0
    pool.check_conservation()


def test_lock_records_position_fields(pool, clock):
    pid = pool.lock("alice", units(1000), DAY, "bob")
    view = pool.position_of(pid)
    assert view.principal == units(1000)
    assert view.weight == units(1200)
    assert view.unlock_time == clock.now + DAY
    assert view.score == units(1000) * DAY
    assert view.sequence == 1
    assert view.bonus_multiplier == 120
    assert pool.owner_of(pid) == "bob"


def test_distribution_with_bonus(pool):
    p1 = pool.lock("alice", units(1000), 0)
    pool.distribute(ADMIN, units(200))
    assert pool.withdrawable_of(p1) == units(1200, sub=1)

    p2 = pool.lock("bob", units(1000), DAY)
    assert pool.withdrawable_of(p2) == units(1000)

    pool.distribute(ADMIN, units(300))
    assert pool.withdrawable_of(p1) == units(1336, add=363636363636363636)
    assert pool.withdrawable_of(p2) == units(1163, add=636363636363636363)
    pool.check_conservation()


def test_distribution_without_bonus(pool):
    p1 = pool.lock("alice", units(1000), 0)
    pool.distribute(ADMIN, units(200))
    p2 = pool.lock("bob", units(1000), 0)
    pool.distribute(ADMIN, units(300))
    assert pool.withdrawable_of(p1) == units(1350, sub=1)
    assert pool.withdrawable_of(p2) == units(1150, sub=1)


def test_raw_transfer_is_absorbed_by_update_distribution(pool, asset):
    pid = pool.lock("alice", units(1000), 0)
    asset.transfer(ADMIN, POOL, units(200))
    # not yet seen by the accumulator
    assert pool.withdrawable_of(pid) == units(1000)
    assert pool.update_distribution() == units(200)
    assert pool.update_distribution() == 0
    assert pool.withdrawable_of(pid) == units(1200, sub=1)


def test_unlock_pays_principal_plus_owed(pool, asset, clock):
    p1 = pool.lock("alice", units(1000), 0)
    pool.distribute(ADMIN, units(200))
    p2 = pool.lock("bob", units(1000), DAY)
    pool.distribute(ADMIN, units(300))

    with pytest.raises(PositionStillLocked):
        pool.unlock("bob", p2)

    clock.advance(DAY)
    paid1 = pool.unlock("alice", p1)
    paid2 = pool.unlock("bob", p2)
    assert paid1 == units(1336, add=363636363636363636)
    assert paid2 == units(1163, add=636363636363636363)
    assert asset.balance_of("alice") == paid1
    assert asset.balance_of("bob") == paid2

    # rounding dust is all that remains
    assert pool.total_deposited() == 0
    assert asset.balance_of(POOL) == pool.distributable() == units(500) - (paid1 + paid2 - units(2000))
    pool.check_conservation()


def test_unlocked_position_keeps_owner_and_score(pool, registry):
    pid = pool.lock("alice", units(100), DAY)
    pool.clock.advance(DAY)
    pool.unlock("alice", pid, "carol")
    view = pool.position_of(pid)
    assert (view.principal, view.weight) == (0, 0)
    assert view.score == units(100) * DAY
    assert registry.owner_of(pid) == "alice"
    with pytest.raises(PositionNotLocked):
        pool.unlock("alice", pid)


def test_unlock_destination_receives_funds(pool, asset):
    pid = pool.lock("alice", units(100), 0)
    pool.unlock("alice", pid, "carol")
    assert asset.balance_of("carol") == units(1100)


def test_batch_unlock_sums_into_one_transfer(pool, asset):
    a = pool.lock("alice", units(400), 0)
    b = pool.lock("alice", units(600), 0)
    pool.distribute(ADMIN, units(100))

    before = len(asset.journal())
    paid = pool.batch_unlock("alice", [a, b])
    outgoing = [e for e in asset.journal()[before:] if e.sender == POOL]
    assert len(outgoing) == 1 and outgoing[0].amount == paid
    assert units(1099) < paid <= units(1100)
    pool.check_conservation()


def test_batch_unlock_rejects_bad_batches(pool):
    a = pool.lock("alice", units(400), 0)
    with pytest.raises(InvalidBatch):
        pool.batch_unlock("alice", [])
    with pytest.raises(InvalidBatch):
        pool.batch_unlock("alice", [a, a])


def test_batch_unlock_is_all_or_nothing(pool, clock):
    a = pool.lock("alice", units(400), 0)
    b = pool.lock("alice", units(600), DAY)
    with pytest.raises(PositionStillLocked):
        pool.batch_unlock("alice", [a, b])
    assert pool.position_of(a).principal == units(400)
    assert pool.total_deposited() == units(1000)


def test_lock_preconditions_leave_state_untouched(pool, asset, registry):
    with pytest.raises(InvalidAmount):
        pool.lock("alice", 0, 0)
    with pytest.raises(InvalidAmount):
        pool.lock("alice", True, 0)
    with pytest.raises(UnknownLockPeriod):
        pool.lock("alice", units(1), 3 * DAY)
    with pytest.raises(IncorrectBonusMultiplier):
        pool.lock("alice", units(1), DAY, bonus_multiplier=150)
    with pytest.raises(InsufficientBalance):
        pool.lock("alice", units(1001), 0)

    assert registry.total_supply() == 0
    assert asset.balance_of("alice") == units(1000)
    assert pool.total_deposited() == 0


def test_lock_with_matching_bonus_multiplier(pool):
    pid = pool.lock("alice", units(10), 2 * DAY, bonus_multiplier=150)
    assert pool.position_of(pid).weight == units(15)


def test_unlock_authorization(pool, registry):
    pid = pool.lock("alice", units(100), 0)
    with pytest.raises(Unauthorized):
        pool.unlock("bob", pid)
    with pytest.raises(PositionNotFound):
        pool.unlock("alice", 999)

    registry.approve("alice", pid, "bob")
    assert pool.unlock("bob", pid) == units(100)


def test_transferred_position_exits_to_new_owner(pool, registry, asset):
    pid = pool.lock("alice", units(100), 0)
    registry.transfer("alice", pid, "bob")
    with pytest.raises(Unauthorized):
        pool.unlock("alice", pid)
    pool.unlock("bob", pid)
    assert asset.balance_of("bob") == units(1100)


def test_schedule_change_does_not_touch_existing_positions(pool):
    pid = pool.lock("alice", units(100), DAY)
    pool.set_lock_periods(ADMIN, [DAY], [200])
    assert pool.position_of(pid).weight == units(120)
    p2 = pool.lock("bob", units(100), DAY)
    assert pool.position_of(p2).weight == units(200)


def test_events_are_journaled_and_fanned_out(pool):
    seen = []
    pool.subscribe(seen.append)
    pool.lock("alice", units(100), 0)
    pool.distribute(ADMIN, units(10))
    kinds = [e.etype for e in pool.events()]
    assert kinds == [EventType.LOCKED, EventType.DISTRIBUTION]
    assert seen == list(pool.events())
    assert isinstance(seen[0], PositionLocked)
    assert seen[0].to_dict()["principal"] == str(units(100))


def test_failing_listener_does_not_interrupt_unlock(pool, asset):
    pid = pool.lock("alice", units(1000), 0)
    pool.distribute(ADMIN, units(100))
    expected = pool.withdrawable_of(pid)
    observed = []

    def listener(event):
        if isinstance(event, PositionUnlocked):
            # delivered after the payout, so the exit is already complete
            observed.append((pool.total_deposited(), asset.balance_of("alice")))
            raise RuntimeError("listener down")

    pool.subscribe(listener)
    assert pool.unlock("alice", pid) == expected

    assert asset.balance_of("alice") == expected
    assert observed == [(0, expected)]
    assert pool.position_of(pid).principal == 0
    assert pool.events()[-1].etype == EventType.UNLOCKED
    pool.check_conservation()
    with pytest.raises(PositionNotLocked):
        pool.unlock("alice", pid)
