from __future__ import annotations

"""
Prometheus metrics for the lock pool.

We expose counters, gauges and a histogram covering:
- locks: new positions by origin (lock / relock / merge / consume)
- exits: positions unlocked by kind (ordinary / emergency / relock)
- distributions: refreshes that absorbed new funds, and their size
- rejections: failed operations by error code
- pool totals: weight, principal and distributable (real-time snapshot)

This module is dependency-light and can be mounted into any ASGI app
or FastAPI app via the helpers at the bottom.
"""


from typing import Optional

from fastapi import Response
from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   origin: "lock" | "relock" | "merge" | "consume"
#   kind:   "ordinary" | "emergency" | "relock"
#   code:   LockPoolError.code
# ────────────────────────────────────────────────────────────────────────────────

# Counters
POSITIONS_CREATED = Counter(
    "lockpool_positions_created_total",
    "Total positions created by origin.",
    labelnames=("origin",),
    registry=REGISTRY,
)

POSITIONS_EXITED = Counter(
    "lockpool_positions_exited_total",
    "Total positions unlocked by exit kind.",
    labelnames=("kind",),
    registry=REGISTRY,
)

DISTRIBUTIONS = Counter(
    "lockpool_distributions_total",
    "Total refreshes that absorbed new funds.",
    labelnames=("attributed",),  # "yes" | "no" (no weight present)
    registry=REGISTRY,
)

REJECTIONS = Counter(
    "lockpool_rejections_total",
    "Total rejected operations by error code.",
    labelnames=("op", "code"),
    registry=REGISTRY,
)

# Monetary amounts are observed in whole tokens (float) to keep bucket scales reasonable.
INFLOW_AMOUNT_TOKENS = Histogram(
    "lockpool_inflow_amount_tokens",
    "Distribution of absorbed inflow sizes (in tokens).",
    buckets=(
        0.001,
        0.01,
        0.1,
        1,
        10,
        100,
        1_000,
        10_000,
        100_000,
        1_000_000,
        10_000_000,
    ),
    registry=REGISTRY,
)

# Gauges (real-time snapshots, in tokens)
TOTAL_WEIGHT = Gauge(
    "lockpool_total_weight_tokens",
    "Sum of bonus-weighted units across locked positions.",
    registry=REGISTRY,
)

TOTAL_PRINCIPAL = Gauge(
    "lockpool_total_principal_tokens",
    "Sum of principal across locked positions.",
    registry=REGISTRY,
)

DISTRIBUTABLE = Gauge(
    "lockpool_distributable_tokens",
    "Received inflows not yet paid out (includes rounding dust).",
    registry=REGISTRY,
)


# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────

def _tokens(amount: int, decimals: int) -> float:
    return amount / float(10 ** decimals)


def record_position_created(origin: str) -> None:
    POSITIONS_CREATED.labels(origin=origin).inc()


def record_exit(kind: str, count: int = 1) -> None:
    POSITIONS_EXITED.labels(kind=kind).inc(count)


def record_distribution(amount: int, *, attributed: bool, decimals: int = 18) -> None:
    """Record a refresh that absorbed `amount` base units."""
    DISTRIBUTIONS.labels(attributed="yes" if attributed else "no").inc()
    INFLOW_AMOUNT_TOKENS.observe(_tokens(amount, decimals))


def record_rejection(op: str, code: str) -> None:
    REJECTIONS.labels(op=op, code=code).inc()


def set_pool_totals(total_weight: int, total_principal: int, distributable: int, *, decimals: int = 18) -> None:
    TOTAL_WEIGHT.set(_tokens(total_weight, decimals))
    TOTAL_PRINCIPAL.set(_tokens(total_principal, decimals))
    DISTRIBUTABLE.set(_tokens(distributable, decimals))


# ────────────────────────────────────────────────────────────────────────────────
# FastAPI mounting helper
# ────────────────────────────────────────────────────────────────────────────────

def mount_fastapi(
    app, path: str = "/metrics", registry: Optional[CollectorRegistry] = None
) -> None:
    """
    Mount a GET {path} endpoint on a FastAPI app to serve metrics.

    Usage:
        from fastapi import FastAPI
        from lockpool.metrics import mount_fastapi
        app = FastAPI()
        mount_fastapi(app)
    """
    reg = registry or REGISTRY

    @app.get(path)
    def _metrics() -> Response:
        return Response(generate_latest(reg), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "POSITIONS_CREATED",
    "POSITIONS_EXITED",
    "DISTRIBUTIONS",
    "REJECTIONS",
    "INFLOW_AMOUNT_TOKENS",
    "TOTAL_WEIGHT",
    "TOTAL_PRINCIPAL",
    "DISTRIBUTABLE",
    "record_position_created",
    "record_exit",
    "record_distribution",
    "record_rejection",
    "set_pool_totals",
    "mount_fastapi",
]
