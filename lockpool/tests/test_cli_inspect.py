import json

import pytest
from typer.testing import CliRunner

from lockpool.cli.pool_inspect import app
from lockpool.store import SnapshotStore
from lockpool.tests.conftest import ADMIN, DAY, units

runner = CliRunner()


@pytest.fixture
def snapshot_path(tmp_path, pool, registry, asset):
    pool.lock("alice", units(1000), 0)
    pool.lock("bob", units(1000), DAY)
    pool.distribute(ADMIN, units(300))
    pool.unlock("alice", 1)
    path = tmp_path / "pool.json"
    SnapshotStore(str(path)).save(pool, registry, asset)
    return str(path)


def test_summary_json(snapshot_path):
    result = runner.invoke(app, ["summary", "--state", snapshot_path, "--json"])
    assert result.exit_code == 0, result.output
    body = json.loads(result.output)
    assert body["total_deposited"] == str(units(1000))
    assert body["conservation"] == "ok"
    assert body["positions"] == 2


def test_summary_table(snapshot_path):
    result = runner.invoke(app, ["summary", "--state", snapshot_path])
    assert result.exit_code == 0, result.output
    assert "total_deposited" in result.output
    assert result.output.strip().splitlines()[-1].split() == ["conservation", "ok"]


def test_position_json(snapshot_path):
    result = runner.invoke(app, ["position", "2", "--state", snapshot_path, "--json"])
    assert result.exit_code == 0, result.output
    row = json.loads(result.output)
    assert row["owner"] == "bob"
    assert row["bonus_multiplier"] == 120
    assert row["tier_name"] == "Kaurna"


def test_unknown_position_fails(snapshot_path):
    result = runner.invoke(app, ["position", "42", "--state", snapshot_path])
    assert result.exit_code == 1


def test_owner_listing(snapshot_path):
    result = runner.invoke(app, ["owner", "alice", "--state", snapshot_path, "--json"])
    assert [r["position_id"] for r in json.loads(result.output)] == [1]

    result = runner.invoke(app, ["owner", "alice", "--state", snapshot_path, "--locked"])
    assert result.exit_code == 0
    assert "No positions." in result.output

    result = runner.invoke(app, ["owner", "bob", "--state", snapshot_path])
    assert "Kaurna" in result.output


def test_missing_snapshot(tmp_path):
    result = runner.invoke(app, ["summary", "--state", str(tmp_path / "nope.json")])
    assert result.exit_code == 2


def test_tiers_from_config(monkeypatch):
    monkeypatch.delenv("LOCKPOOL_CONFIG_FILE", raising=False)
    monkeypatch.delenv("LOCKPOOL_TIER_THRESHOLDS", raising=False)
    monkeypatch.delenv("LOCKPOOL_STATE", raising=False)
    result = runner.invoke(app, ["tiers", "--json"])
    assert result.exit_code == 0, result.output
    rows = json.loads(result.output)
    assert len(rows) == 13
    assert rows[0]["min_score"] == "0"
    assert rows[-1]["max_score"] is None
    assert rows[-1]["name"] == "The Kraken"

    result = runner.invoke(app, ["tiers"])
    assert "150 .. 300 token-days" in result.output


def test_config_command(monkeypatch):
    monkeypatch.delenv("LOCKPOOL_CONFIG_FILE", raising=False)
    monkeypatch.setenv("LOCKPOOL_LOCK_PERIODS", "0:100,86400:120")
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["schedule"]["lock_periods"] == {"0": 100, "86400": 120}

    monkeypatch.setenv("LOCKPOOL_LOCK_PERIODS", "0:999")
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 2


def test_tiers_with_invalid_config(monkeypatch):
    monkeypatch.delenv("LOCKPOOL_CONFIG_FILE", raising=False)
    monkeypatch.delenv("LOCKPOOL_STATE", raising=False)
    monkeypatch.setenv("LOCKPOOL_TIER_THRESHOLDS", "20,10")
    result = runner.invoke(app, ["tiers"])
    assert result.exit_code == 2
