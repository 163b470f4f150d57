from __future__ import annotations
"""
lockpool.config - configuration for the lock pool

Covers:
- Bonus schedule (lock duration in seconds -> multiplier, basis 100 = 1.00x)
- Ledger parameters (multiplier base/maximum, accumulator scale)
- Tier thresholds used to classify position scores into 13 bands

Environment overrides (all optional; sensible defaults provided):

  # Bonus schedule as "duration:multiplier" pairs
  LOCKPOOL_LOCK_PERIODS=0:100,86400:120,172800:150

  # Ledger parameters
  LOCKPOOL_MULTIPLIER_BASE=100
  LOCKPOOL_MAX_BONUS_MULTIPLIER=255
  LOCKPOOL_POINTS_SCALE_BITS=128
  LOCKPOOL_ASSET_DECIMALS=18

  # Tier thresholds (12 ascending integers, score units)
  LOCKPOOL_TIER_THRESHOLDS=...

You can also load from a JSON or YAML file via `LOCKPOOL_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional, Tuple
import json
import os
from pathlib import Path

import yaml


SECONDS_PER_DAY = 86_400

# Tier bands in whole-token-days; scaled by asset decimals at use.
TIER_TOKEN_DAYS: Tuple[int, ...] = (
    150,
    300,
    750,
    1_500,
    3_000,
    7_000,
    15_000,
    30_000,
    60_000,
    120_000,
    250_000,
    500_000,
)


# Every tier has a display name, so the table tops out at 13 bands.
MAX_TIERS = 13


def default_tier_thresholds(asset_decimals: int = 18) -> Tuple[int, ...]:
    unit = (10 ** asset_decimals) * SECONDS_PER_DAY
    return tuple(days * unit for days in TIER_TOKEN_DAYS)


# -------------------------- Data classes --------------------------


@dataclass
class LedgerParams:
    """Fixed-point and multiplier parameters shared by ledger and lifecycle."""
    multiplier_base: int = 100          # 100 == 1.00x
    max_bonus_multiplier: int = 255     # 2.55x
    points_scale_bits: int = 128        # accumulator scale 2**128
    asset_decimals: int = 18            # informational + tier scaling

    def validate(self) -> None:
        if self.multiplier_base <= 0:
            raise ValueError("multiplier_base must be positive.")
        if self.max_bonus_multiplier < self.multiplier_base:
            raise ValueError(
                f"max_bonus_multiplier ({self.max_bonus_multiplier}) must be >= multiplier_base "
                f"({self.multiplier_base})."
            )
        if not (64 <= self.points_scale_bits <= 192):
            raise ValueError(f"points_scale_bits must be in [64, 192] (got {self.points_scale_bits}).")
        if self.asset_decimals < 0:
            raise ValueError("asset_decimals must be non-negative.")


@dataclass
class ScheduleConfig:
    """Initial bonus schedule; administrators may extend it at runtime."""
    lock_periods: Dict[int, int] = field(default_factory=dict)

    def validate(self, params: Optional[LedgerParams] = None) -> None:
        p = params or LedgerParams()
        for duration, multiplier in self.lock_periods.items():
            if int(duration) < 0:
                raise ValueError(f"lock duration must be non-negative (got {duration}).")
            if not (p.multiplier_base <= int(multiplier) <= p.max_bonus_multiplier):
                raise ValueError(
                    f"multiplier for duration {duration} must be in "
                    f"[{p.multiplier_base}, {p.max_bonus_multiplier}] (got {multiplier})."
                )


@dataclass
class TierConfig:
    """Ascending score thresholds; a score below thresholds[i] is tier i+1."""
    thresholds: Tuple[int, ...] = field(default_factory=default_tier_thresholds)

    def validate(self) -> None:
        if not self.thresholds:
            raise ValueError("tier thresholds must not be empty.")
        if len(self.thresholds) > MAX_TIERS - 1:
            raise ValueError(
                f"at most {MAX_TIERS - 1} tier thresholds are supported (got {len(self.thresholds)})."
            )
        prev = 0
        for t in self.thresholds:
            if int(t) <= prev:
                raise ValueError("tier thresholds must be strictly ascending positive integers.")
            prev = int(t)


@dataclass
class LockPoolConfig:
    """Top-level configuration container."""
    ledger: LedgerParams = field(default_factory=LedgerParams)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    tiers: TierConfig = field(default_factory=TierConfig)

    def validate(self) -> None:
        self.ledger.validate()
        self.schedule.validate(self.ledger)
        self.tiers.validate()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        # JSON object keys must be strings; big thresholds stay exact as strings.
        d["schedule"]["lock_periods"] = {str(k): v for k, v in sorted(self.schedule.lock_periods.items())}
        d["tiers"]["thresholds"] = [str(t) for t in self.tiers.thresholds]
        return d


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def parse_lock_periods(text: str) -> Dict[int, int]:
    """Parse "duration:multiplier,duration:multiplier" into a dict."""
    out: Dict[int, int] = {}
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            dur, mult = chunk.split(":", 1)
            out[int(dur.replace("_", ""))] = int(mult)
        except ValueError as e:
            raise ValueError(f"Invalid lock period entry {chunk!r} (want duration:multiplier)") from e
    return out


def _parse_thresholds(text: str) -> Tuple[int, ...]:
    try:
        return tuple(int(x.strip().replace("_", "")) for x in text.split(",") if x.strip())
    except ValueError as e:
        raise ValueError(f"Invalid tier thresholds: {text!r}") from e


def from_env(base: Optional[LockPoolConfig] = None, prefix: str = "LOCKPOOL_") -> LockPoolConfig:
    """
    Build a LockPoolConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or LockPoolConfig()

    ledger = LedgerParams(
        multiplier_base=_getenv_int(f"{prefix}MULTIPLIER_BASE", cfg.ledger.multiplier_base),
        max_bonus_multiplier=_getenv_int(f"{prefix}MAX_BONUS_MULTIPLIER", cfg.ledger.max_bonus_multiplier),
        points_scale_bits=_getenv_int(f"{prefix}POINTS_SCALE_BITS", cfg.ledger.points_scale_bits),
        asset_decimals=_getenv_int(f"{prefix}ASSET_DECIMALS", cfg.ledger.asset_decimals),
    )

    periods_env = os.getenv(f"{prefix}LOCK_PERIODS")
    periods = parse_lock_periods(periods_env) if periods_env else dict(cfg.schedule.lock_periods)

    thresholds_env = os.getenv(f"{prefix}TIER_THRESHOLDS")
    if thresholds_env:
        thresholds = _parse_thresholds(thresholds_env)
    elif ledger.asset_decimals != cfg.ledger.asset_decimals and cfg.tiers.thresholds == default_tier_thresholds(
        cfg.ledger.asset_decimals
    ):
        # Default bands follow the asset's decimals.
        thresholds = default_tier_thresholds(ledger.asset_decimals)
    else:
        thresholds = tuple(cfg.tiers.thresholds)

    new_cfg = LockPoolConfig(
        ledger=ledger,
        schedule=ScheduleConfig(lock_periods=periods),
        tiers=TierConfig(thresholds=thresholds),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> LockPoolConfig:
    """
    Load configuration from a JSON or YAML file.

    Shape:
        ledger:   {multiplier_base, max_bonus_multiplier, points_scale_bits, asset_decimals}
        schedule: {lock_periods: {<duration>: <multiplier>}}
        tiers:    {thresholds: [...]}
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")

    ledger_d = data.get("ledger", {}) or {}
    defaults = LedgerParams()
    ledger = LedgerParams(
        multiplier_base=int(ledger_d.get("multiplier_base", defaults.multiplier_base)),
        max_bonus_multiplier=int(ledger_d.get("max_bonus_multiplier", defaults.max_bonus_multiplier)),
        points_scale_bits=int(ledger_d.get("points_scale_bits", defaults.points_scale_bits)),
        asset_decimals=int(ledger_d.get("asset_decimals", defaults.asset_decimals)),
    )

    periods_d = (data.get("schedule", {}) or {}).get("lock_periods", {}) or {}
    periods = {int(k): int(v) for k, v in periods_d.items()}

    tiers_d = (data.get("tiers", {}) or {}).get("thresholds")
    thresholds = (
        tuple(int(t) for t in tiers_d) if tiers_d else default_tier_thresholds(ledger.asset_decimals)
    )

    cfg = LockPoolConfig(
        ledger=ledger,
        schedule=ScheduleConfig(lock_periods=periods),
        tiers=TierConfig(thresholds=thresholds),
    )
    cfg.validate()
    return cfg


def load() -> LockPoolConfig:
    """
    Load configuration using the following precedence:
      1) File at $LOCKPOOL_CONFIG_FILE (JSON/YAML)
      2) Environment variables (LOCKPOOL_*), applied on top of defaults or file values
    """
    file_path = os.getenv("LOCKPOOL_CONFIG_FILE")
    base = from_file(file_path) if file_path else LockPoolConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[LockPoolConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "SECONDS_PER_DAY",
    "TIER_TOKEN_DAYS",
    "default_tier_thresholds",
    "LedgerParams",
    "ScheduleConfig",
    "TierConfig",
    "LockPoolConfig",
    "parse_lock_periods",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
