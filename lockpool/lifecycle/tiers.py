from __future__ import annotations

"""
Tier classification.

A position's tier is a pure function of its score against an ascending
threshold table: a score below thresholds[0] is tier 1, below thresholds[1]
tier 2, and so on; a score at or above the last threshold gets the top tier
(len(thresholds) + 1). Nothing is stored; tiers are recomputed on read.
"""

from bisect import bisect_right
from typing import Sequence

from lockpool.config import default_tier_thresholds

DEFAULT_THRESHOLDS = default_tier_thresholds()


def tier_of(score: int, thresholds: Sequence[int] = DEFAULT_THRESHOLDS) -> int:
    return bisect_right(thresholds, score) + 1


def max_tier(thresholds: Sequence[int] = DEFAULT_THRESHOLDS) -> int:
    return len(thresholds) + 1


__all__ = ["DEFAULT_THRESHOLDS", "tier_of", "max_tier"]
