"""
Position lifecycle: the pool facade, bonus schedule, admin controls and tiers.
"""

from .admin import AdminControl
from .pool import Clock, DistributionPool
from .schedule import BonusSchedule
from .tiers import DEFAULT_THRESHOLDS, max_tier, tier_of

__all__ = [
    "AdminControl",
    "BonusSchedule",
    "Clock",
    "DistributionPool",
    "DEFAULT_THRESHOLDS",
    "max_tier",
    "tier_of",
]
