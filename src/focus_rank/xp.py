"""XP calculation engine for focus-rank.

Pure functions that convert focus time into XP points.
Results are floats; rounding is left to the display layer.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from focus_rank.models import StreakSegment

# Base XP values
XP_PER_FOCUS_MINUTE = 10
BASE_XP_PER_HOUR = XP_PER_FOCUS_MINUTE * 60

# Streak bonus: flat per completed hour, for the first hours of a segment
STREAK_BONUS_PER_HOUR = 100
FLAT_BONUS_HOURS = 3

# Accelerated bonus: per-hour total grows by this factor from hour 4 on
ACCELERATION_MULTIPLIER = 1.5
# Per-hour total of the last flat hour (600 base + 100 bonus)
ACCELERATION_SEED = BASE_XP_PER_HOUR + STREAK_BONUS_PER_HOUR


@dataclass
class XPBreakdown:
    base_focus_xp: float
    streak_bonus_xp: float
    accelerated_bonus_xp: float


@dataclass
class SessionXP:
    """XP earned by a single session."""

    base_xp: float
    bonus_xp: float
    total_xp: float
    breakdown: XPBreakdown


@dataclass
class SegmentBonus:
    streak_bonus: float
    accelerated_bonus: float

    @property
    def total(self) -> float:
        return self.streak_bonus + self.accelerated_bonus


def _clamp_non_negative(value: float) -> float:
    """Treat negative and non-finite values as 0."""
    if not math.isfinite(value):
        return 0.0
    return max(0.0, value)


def _segment_minutes(segment: StreakSegment | float) -> float:
    if isinstance(segment, StreakSegment):
        return segment.minutes
    return float(segment)


def calculate_segment_bonus(segment_minutes: float) -> SegmentBonus:
    """Calculate bonus XP for one streak segment.

    1. Hours 1-3: flat STREAK_BONUS_PER_HOUR per completed hour.
    2. Hours 4+: the per-hour total (base + bonus) is multiplied by 1.5 each
       hour, starting from ACCELERATION_SEED. The bonus is that total minus
       the hour's base XP, which is already counted in base_xp.
    3. A trailing partial hour earns its hour's bonus rate pro-rated.
    """
    segment_minutes = _clamp_non_negative(segment_minutes)
    completed_hours = math.floor(segment_minutes / 60)
    partial_minutes = segment_minutes % 60

    streak_bonus = min(FLAT_BONUS_HOURS, completed_hours) * STREAK_BONUS_PER_HOUR
    accelerated_bonus = 0.0

    per_hour_total = float(ACCELERATION_SEED)
    for _hour in range(FLAT_BONUS_HOURS + 1, completed_hours + 1):
        per_hour_total *= ACCELERATION_MULTIPLIER
        accelerated_bonus += per_hour_total - BASE_XP_PER_HOUR

    if partial_minutes > 0:
        hour_number = completed_hours + 1
        partial_ratio = partial_minutes / 60
        if hour_number <= FLAT_BONUS_HOURS:
            streak_bonus += STREAK_BONUS_PER_HOUR * partial_ratio
        else:
            previous_total = ACCELERATION_SEED * ACCELERATION_MULTIPLIER ** (
                hour_number - FLAT_BONUS_HOURS - 1
            )
            current_total = previous_total * ACCELERATION_MULTIPLIER
            accelerated_bonus += (current_total - BASE_XP_PER_HOUR) * partial_ratio

    return SegmentBonus(streak_bonus=float(streak_bonus), accelerated_bonus=accelerated_bonus)


def calculate_session_xp(
    focus_minutes_total: float,
    streak_segments: Iterable[StreakSegment | float],
) -> SessionXP:
    """Calculate XP for a session.

    Base XP is a flat rate on all focus minutes. Bonus XP is computed for
    each streak segment on its own and summed, so a broken streak restarts
    the bonus curve.
    """
    base_xp = float(XP_PER_FOCUS_MINUTE * _clamp_non_negative(focus_minutes_total))

    streak_bonus_xp = 0.0
    accelerated_bonus_xp = 0.0
    for segment in streak_segments:
        bonus = calculate_segment_bonus(_segment_minutes(segment))
        streak_bonus_xp += bonus.streak_bonus
        accelerated_bonus_xp += bonus.accelerated_bonus

    bonus_xp = streak_bonus_xp + accelerated_bonus_xp

    return SessionXP(
        base_xp=base_xp,
        bonus_xp=bonus_xp,
        total_xp=base_xp + bonus_xp,
        breakdown=XPBreakdown(
            base_focus_xp=base_xp,
            streak_bonus_xp=streak_bonus_xp,
            accelerated_bonus_xp=accelerated_bonus_xp,
        ),
    )


def project_session_xp(focus_minutes: float) -> SessionXP:
    """XP an open session would earn if stopped now (one unbroken segment)."""
    return calculate_session_xp(focus_minutes, [StreakSegment(minutes=focus_minutes)])
