from __future__ import annotations

"""
lockpool.cli.pool_inspect
-------------------------

Inspect a lock pool snapshot file (written by `lockpool.store.SnapshotStore`):
- the effective configuration (file + environment)
- pool totals and the conservation check
- a single position, or every position held by one owner
- the tier table

Examples
--------
# Effective configuration as JSON
python -m lockpool.cli.pool_inspect config

# Pool totals from a snapshot
python -m lockpool.cli.pool_inspect summary --state pool.json

# One position, JSON
python -m lockpool.cli.pool_inspect position 7 --state pool.json --json

# Locked positions of an owner
python -m lockpool.cli.pool_inspect owner alice --state pool.json --locked
"""

import json
import logging
from typing import Any, Dict, List, Optional

import typer

from lockpool import config as lp_config
from lockpool.errors import LockPoolError
from lockpool.lifecycle.tiers import max_tier
from lockpool.metadata import tier_name
from lockpool.store import Snapshot, SnapshotStore

log = logging.getLogger(__name__)

app = typer.Typer(
    name="pool-inspect",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect lock pool configuration, snapshots, positions and tiers.",
)

STATE_OPTION = typer.Option(..., "--state", envvar="LOCKPOOL_STATE", help="Path to a pool snapshot (JSON).")

# -------------------- utils --------------------


def _fmt_amt(amount: int, decimals: int) -> str:
    whole, frac = divmod(int(amount), 10 ** decimals)
    if not frac:
        return str(whole)
    s = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{s[:6]}"


def _pad(s: str, n: int) -> str:
    if len(s) <= n:
        return s + " " * (n - len(s))
    return s[: n - 1] + "…"


def _open(state: str) -> Snapshot:
    store = SnapshotStore(state)
    if not store.exists():
        typer.echo(f"Snapshot not found: {state}", err=True)
        raise typer.Exit(2)
    try:
        return store.load()
    except (ValueError, KeyError) as e:
        typer.echo(f"Invalid snapshot {state}: {e}", err=True)
        raise typer.Exit(2) from e


def _position_row(snap: Snapshot, pid: int) -> Dict[str, Any]:
    pool = snap.pool
    view = pool.position_of(pid)
    attrs = pool.attributes_of(pid)
    row = view.to_dict()
    row.update(
        {
            "position_id": pid,
            "owner": pool.owner_of(pid) if pool.exists(pid) else None,
            "withdrawable": str(pool.withdrawable_of(pid)),
            "tier": attrs.tier,
            "tier_name": tier_name(attrs.tier, f"tier {attrs.tier}"),
        }
    )
    return row


def _print_rows(rows: List[Dict[str, Any]], decimals: int) -> None:
    if not rows:
        typer.echo("No positions.")
        return
    header = (
        _pad("ID", 6) + " " + _pad("OWNER", 14) + " " + _pad("PRINCIPAL", 16) + " "
        + _pad("WITHDRAWABLE", 16) + " " + _pad("MULT", 5) + " " + _pad("UNLOCK", 12) + " " + "TIER"
    )
    typer.echo(header)
    typer.echo("-" * len(header))
    for r in rows:
        typer.echo(
            _pad(str(r["position_id"]), 6) + " "
            + _pad(str(r["owner"] or "-"), 14) + " "
            + _pad(_fmt_amt(int(r["principal"]), decimals), 16) + " "
            + _pad(_fmt_amt(int(r["withdrawable"]), decimals), 16) + " "
            + _pad(str(r["bonus_multiplier"] or "-"), 5) + " "
            + _pad(str(r["unlock_time"]), 12) + " "
            + f"{r['tier']} ({r['tier_name']})"
        )


# -------------------- commands --------------------


@app.command("config")
def cmd_config() -> None:
    """Print the effective configuration ($LOCKPOOL_CONFIG_FILE + LOCKPOOL_* env)."""
    try:
        cfg = lp_config.load()
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(2) from e
    typer.echo(lp_config.pretty(cfg))


@app.command("summary")
def cmd_summary(
    state: str = STATE_OPTION,
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    snap = _open(state)
    pool = snap.pool
    summary = pool.summary()
    try:
        pool.check_conservation(refresh=False)
        summary["conservation"] = "ok"
    except LockPoolError as e:
        log.warning("pool-inspect: %s", e)
        summary["conservation"] = "violated"
    if json_out:
        typer.echo(json.dumps(summary, indent=2, sort_keys=True))
        return
    decimals = pool.config.ledger.asset_decimals
    for key in ("pool_balance", "total_deposited", "total_units", "distributable"):
        typer.echo(f"{_pad(key, 18)} {_fmt_amt(int(summary[key]), decimals)}")
    for key in ("positions", "emergency", "owner", "pending_owner", "conservation"):
        typer.echo(f"{_pad(key, 18)} {summary[key] if summary[key] is not None else '-'}")


@app.command("position")
def cmd_position(
    position_id: int = typer.Argument(..., help="Position id."),
    state: str = STATE_OPTION,
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    snap = _open(state)
    try:
        row = _position_row(snap, position_id)
    except LockPoolError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e
    if json_out:
        typer.echo(json.dumps(row, indent=2, sort_keys=True))
        return
    _print_rows([row], snap.pool.config.ledger.asset_decimals)


@app.command("owner")
def cmd_owner(
    owner: str = typer.Argument(..., help="Owner account."),
    state: str = STATE_OPTION,
    locked: bool = typer.Option(False, "--locked", help="Only positions still carrying weight."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    snap = _open(state)
    rows = [_position_row(snap, pid) for pid in snap.pool.tokens_of(owner)]
    if locked:
        rows = [r for r in rows if int(r["weight"]) > 0]
    if json_out:
        typer.echo(json.dumps(rows, indent=2, sort_keys=True))
        return
    _print_rows(rows, snap.pool.config.ledger.asset_decimals)


@app.command("tiers")
def cmd_tiers(
    state: Optional[str] = typer.Option(
        None, "--state", envvar="LOCKPOOL_STATE", help="Snapshot to read thresholds from (default: config)."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show the score range covered by every tier."""
    if state:
        pool = _open(state).pool
        thresholds, decimals = pool.thresholds, pool.config.ledger.asset_decimals
    else:
        try:
            cfg = lp_config.load()
        except (ValueError, FileNotFoundError) as e:
            typer.echo(f"Invalid configuration: {e}", err=True)
            raise typer.Exit(2) from e
        thresholds, decimals = cfg.tiers.thresholds, cfg.ledger.asset_decimals

    unit = (10 ** decimals) * lp_config.SECONDS_PER_DAY
    rows = []
    for tier in range(1, max_tier(thresholds) + 1):
        lo = thresholds[tier - 2] if tier > 1 else 0
        hi = thresholds[tier - 1] if tier <= len(thresholds) else None
        rows.append(
            {
                "tier": tier,
                "name": tier_name(tier, f"tier {tier}"),
                "min_score": str(lo),
                "max_score": None if hi is None else str(hi),
            }
        )
    if json_out:
        typer.echo(json.dumps(rows, indent=2, sort_keys=True))
        return
    for r in rows:
        lo_days = int(r["min_score"]) // unit
        hi_days = "∞" if r["max_score"] is None else str(int(r["max_score"]) // unit)
        typer.echo(f"{_pad(str(r['tier']), 3)} {_pad(r['name'], 12)} {lo_days} .. {hi_days} token-days")


if __name__ == "__main__":
    app()
