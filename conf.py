"""
Slabman configuration.

Usage in settings.py:
    SLABMAN = {
        "LOW_STOCK_THRESHOLD": 100,
        "AREA_EPSILON": 0.01,
        "REMNANT_MIN_WASTE": 1.0,
        "REMNANT_MIN_SIDE": 0.5,
        "LOCK_NOWAIT": False,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class SlabmanSettings:
    """Slabman configuration settings."""

    # Pool total (area) below which a shade is flagged LOW_STOCK
    LOW_STOCK_THRESHOLD: float = 100.0

    # Tolerance for area comparisons and exact-dimension matching
    AREA_EPSILON: float = 0.01

    # Minimum waste per cut slab before an offcut is kept as a remnant lot
    REMNANT_MIN_WASTE: float = 1.0

    # Minimum side (each axis) for an offcut to be kept as a remnant lot
    REMNANT_MIN_SIDE: float = 0.5

    # Fail fast with StorageConflict instead of waiting on a locked pool
    LOCK_NOWAIT: bool = False

    # Unit label for new material types
    DEFAULT_UNIT: str = "sq ft"


def get_slabman_settings() -> SlabmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "SLABMAN", {})
    return SlabmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in SlabmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_slabman_settings(), name)


slabman_settings = _LazySettings()
