from __future__ import annotations

"""
Presentation metadata for positions.

A position is displayed as a tiered badge. The badge is a pure function of
the position's `Attributes` (tier, score, sequence); nothing here touches
pool state. Media URLs are built from `media_base_url`, which deployments
point at wherever the artwork is hosted.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from lockpool.ptypes import Attributes

DEFAULT_MEDIA_BASE_URL = "http://localhost:8000/media"

# tier -> (display name, media file stem)
TIERS: Mapping[int, Tuple[str, str]] = {
    1: ("Ikalgo", "ikalgo"),
    2: ("Oxtopus", "oxtopus"),
    3: ("Nautilus", "nautilus"),
    4: ("Kaurna", "kaurna"),
    5: ("Haliphron", "haliphron"),
    6: ("Kanaloa", "kanaloa"),
    7: ("Taniwha", "taniwha"),
    8: ("Cthulhu", "cthulhu"),
    9: ("Yacumama", "yacumama"),
    10: ("Hafgufa", "hafgufa"),
    11: ("Akkorokamui", "akkorokamui"),
    12: ("Nessie", "nessie"),
    13: ("The Kraken", "thekraken"),
}


def tier_name(tier: int, default: Optional[str] = None) -> str:
    entry = TIERS.get(int(tier))
    if entry is not None:
        return entry[0]
    if default is None:
        raise ValueError(f"unknown tier {tier!r}")
    return default


def metadata_for(attrs: Attributes, *, media_base_url: str = DEFAULT_MEDIA_BASE_URL) -> Dict[str, Any]:
    """Badge metadata document for one position."""
    name = tier_name(attrs.tier)
    stem = TIERS[attrs.tier][1]
    base = media_base_url.rstrip("/")
    return {
        "name": name,
        "description": f"{name} is a tier {attrs.tier} lock pool badge.",
        "attributes": [
            {"display_type": "number", "trait_type": "score", "value": str(attrs.score)},
            {"display_type": "number", "trait_type": "tier", "value": str(attrs.tier)},
            {"display_type": "number", "trait_type": "sequence", "value": str(attrs.sequence)},
        ],
        "background_color": "2040DF",
        "image": f"{base}/{stem}.png",
        "animation_url": f"{base}/{stem}.mp4",
    }


def collection_info(*, media_base_url: str = DEFAULT_MEDIA_BASE_URL) -> Dict[str, Any]:
    return {
        "name": "Lock Pool Badges",
        "description": "Tiered badges born from the creation of lock pool positions.",
        "image": f"{media_base_url.rstrip('/')}/collection.png",
        "tiers": {str(t): name for t, (name, _) in sorted(TIERS.items())},
    }


__all__ = ["DEFAULT_MEDIA_BASE_URL", "TIERS", "tier_name", "metadata_for", "collection_info"]
