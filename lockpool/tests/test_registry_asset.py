import pytest

from lockpool.errors import (InsufficientBalance, InvalidAmount,
                             LockPoolError, PositionNotFound, Unauthorized)
from lockpool.registry import InMemoryRegistry
from lockpool.treasury import InMemoryAsset


def test_registry_issues_sequential_ids():
    reg = InMemoryRegistry()
    assert [reg.create("a"), reg.create("b"), reg.create("a")] == [1, 2, 3]
    assert reg.tokens_of("a") == [1, 3]
    assert reg.total_supply() == 3
    with pytest.raises(ValueError):
        reg.create("")


def test_registry_transfer_and_approvals():
    reg = InMemoryRegistry()
    pid = reg.create("alice")

    with pytest.raises(Unauthorized):
        reg.transfer("bob", pid, "bob")

    reg.approve("alice", pid, "bob")
    assert reg.get_approved(pid) == "bob"
    assert reg.is_authorized(pid, "bob")
    reg.transfer("bob", pid, "carol")
    assert reg.owner_of(pid) == "carol"
    # approval is cleared on transfer
    assert reg.get_approved(pid) is None
    assert not reg.is_authorized(pid, "bob")


def test_registry_operator_approval():
    reg = InMemoryRegistry()
    pid = reg.create("alice")
    reg.set_approval_for_all("alice", "op", True)
    assert reg.is_authorized(pid, "op")
    reg.approve("op", pid, "spender")
    assert reg.is_authorized(pid, "spender")

    reg.set_approval_for_all("alice", "op", False)
    assert not reg.is_approved_for_all("alice", "op")
    with pytest.raises(ValueError):
        reg.set_approval_for_all("alice", "alice", True)


def test_registry_burn_never_reuses_ids():
    reg = InMemoryRegistry()
    pid = reg.create("alice")
    reg.burn(pid)
    assert not reg.exists(pid)
    with pytest.raises(PositionNotFound):
        reg.owner_of(pid)
    with pytest.raises(PositionNotFound):
        reg.burn(pid)
    assert reg.create("alice") == pid + 1


def test_registry_dump_load():
    reg = InMemoryRegistry()
    a = reg.create("alice")
    reg.create("bob")
    reg.approve("alice", a, "carol")
    reg.set_approval_for_all("bob", "op", True)

    restored = InMemoryRegistry.load(reg.dump())
    assert restored.dump() == reg.dump()
    assert restored.create("dave") == 3


def test_asset_transfer_is_atomic():
    asset = InMemoryAsset()
    asset.mint("a", 100)
    with pytest.raises(InsufficientBalance) as ei:
        asset.transfer("a", "b", 101)
    assert ei.value.details == {"account": "a", "required": "101", "available": "100"}
    assert asset.balance_of("a") == 100 and asset.balance_of("b") == 0

    with pytest.raises(InvalidAmount):
        asset.transfer("a", "b", -1)

    asset.transfer("a", "b", 40, reason="test")
    entry = asset.journal()[-1]
    assert (entry.sender, entry.recipient, entry.amount, entry.reason) == ("a", "b", 40, "test")
    assert asset.total_supply() == 100


def test_asset_dump_load():
    asset = InMemoryAsset(symbol="TKN", decimals=6)
    asset.mint("a", 10)
    restored = InMemoryAsset.load(asset.dump())
    assert restored.symbol == "TKN" and restored.decimals == 6
    assert restored.balance_of("a") == 10
    assert restored.total_supply() == 10


def test_errors_serialize():
    err = InsufficientBalance(account="a", required=5, available=1)
    assert isinstance(err, LockPoolError)
    d = err.to_dict()
    assert d["code"] == "LOCKPOOL_INSUFFICIENT_BALANCE"
    assert d["details"]["required"] == "5"
    assert str(err).startswith("LOCKPOOL_INSUFFICIENT_BALANCE: insufficient balance [")
