"""Attribute level progression. Pure functions, no side effects."""

from __future__ import annotations

import math
from dataclasses import dataclass

XP_PER_BAND_STEP = 700
LEVELS_PER_BAND = 5
# XP to clear one whole band b (0-based) is BAND_XP_UNIT * (b + 1)
BAND_XP_UNIT = XP_PER_BAND_STEP * LEVELS_PER_BAND


@dataclass
class LevelInfo:
    level: int
    current_xp: float
    xp_to_next: float


def get_xp_to_next_level(level: int) -> int:
    """XP needed to clear a level. Step function: 700 for levels 1-5, 1400 for 6-10, ..."""
    level = max(1, level)
    band = (level - 1) // LEVELS_PER_BAND
    return XP_PER_BAND_STEP + band * XP_PER_BAND_STEP


def _xp_for_bands(bands: int) -> int:
    """Total XP to clear the first `bands` bands: 3500 * (1 + 2 + ... + bands)."""
    return BAND_XP_UNIT * bands * (bands + 1) // 2


def xp_to_reach_level(level: int) -> int:
    """Total XP from 0 to the start of this level (sum of all lower thresholds)."""
    if level <= 1:
        return 0
    full_bands, extra_levels = divmod(level - 1, LEVELS_PER_BAND)
    return _xp_for_bands(full_bands) + extra_levels * XP_PER_BAND_STEP * (full_bands + 1)


def _clamp_xp(total_xp: float) -> float:
    """Negative, NaN and infinite XP are treated as 0."""
    if not math.isfinite(total_xp):
        return 0.0
    return max(0.0, total_xp)


def get_level_from_xp(total_xp: float) -> LevelInfo:
    """Given cumulative XP, return the level, XP into it and XP still needed.

    Whole bands are skipped with a closed form so the work stays bounded for
    huge inputs; at most LEVELS_PER_BAND single-level steps follow.
    """
    remaining = _clamp_xp(total_xp)

    # Largest b with 1750 * b * (b + 1) <= remaining, in exact integer math
    whole = int(remaining)
    fraction = remaining - whole
    bands = (math.isqrt(4 * (whole // (BAND_XP_UNIT // 2)) + 1) - 1) // 2

    level = bands * LEVELS_PER_BAND + 1
    remaining = (whole - _xp_for_bands(bands)) + fraction

    while remaining >= get_xp_to_next_level(level):
        remaining -= get_xp_to_next_level(level)
        level += 1

    return LevelInfo(
        level=level,
        current_xp=remaining,
        xp_to_next=get_xp_to_next_level(level) - remaining,
    )


def apply_xp(level: int, current_xp: float, xp: float) -> LevelInfo:
    """Award XP on top of a level/progress pair. Overflow rolls into level-ups."""
    cumulative = xp_to_reach_level(level) + _clamp_xp(current_xp) + _clamp_xp(xp)
    return get_level_from_xp(cumulative)
