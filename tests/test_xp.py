"""Tests for XP calculation engine."""

import pytest

from focus_rank.models import StreakSegment
from focus_rank.xp import (
    ACCELERATION_SEED,
    STREAK_BONUS_PER_HOUR,
    SessionXP,
    calculate_segment_bonus,
    calculate_session_xp,
    project_session_xp,
)


class TestBaseXP:
    """Base XP is a flat 10 XP per focus minute."""

    def test_base_is_ten_per_minute(self) -> None:
        result = calculate_session_xp(25, [])
        assert result.base_xp == 250
        assert result.bonus_xp == 0
        assert result.total_xp == 250

    def test_base_ignores_segments(self) -> None:
        """Segments only drive the bonus, never the base."""
        result = calculate_session_xp(60, [StreakSegment(10)])
        assert result.base_xp == 600
        assert result.breakdown.base_focus_xp == 600

    def test_returns_session_xp(self) -> None:
        assert isinstance(calculate_session_xp(10, [10]), SessionXP)


class TestStreakBonus:
    """Hours 1-3 of a segment earn a flat 100 XP each."""

    def test_under_an_hour_pro_rated(self) -> None:
        # 30 minutes into hour 1: 100 * 0.5
        result = calculate_session_xp(30, [StreakSegment(30)])
        assert result.breakdown.streak_bonus_xp == pytest.approx(50)
        assert result.breakdown.accelerated_bonus_xp == 0

    def test_one_hour(self) -> None:
        result = calculate_session_xp(60, [StreakSegment(60)])
        assert result.breakdown.streak_bonus_xp == 100
        assert result.total_xp == 700

    def test_ninety_minutes(self) -> None:
        # 1 full hour + half of hour 2: 100 + 50
        result = calculate_session_xp(90, [StreakSegment(90)])
        assert result.breakdown.streak_bonus_xp == pytest.approx(150)
        assert result.total_xp == pytest.approx(1050)

    def test_three_hours(self) -> None:
        """180 minutes -> base 1800, streak 300, accelerated 0, total 2100."""
        result = calculate_session_xp(180, [StreakSegment(180)])
        assert result.base_xp == 1800
        assert result.breakdown.streak_bonus_xp == 300
        assert result.breakdown.accelerated_bonus_xp == 0
        assert result.total_xp == 2100


class TestAcceleratedBonus:
    """From hour 4 the per-hour total grows by 1.5x."""

    def test_four_hours(self) -> None:
        """240 minutes -> accelerated = 700 * 1.5 - 600 = 450, total 3150."""
        result = calculate_session_xp(240, [StreakSegment(240)])
        assert result.base_xp == 2400
        assert result.breakdown.streak_bonus_xp == 300
        assert result.breakdown.accelerated_bonus_xp == pytest.approx(450)
        assert result.total_xp == pytest.approx(3150)

    def test_five_hours(self) -> None:
        # hour 4: 1050 - 600 = 450; hour 5: 1575 - 600 = 975
        result = calculate_session_xp(300, [StreakSegment(300)])
        assert result.breakdown.accelerated_bonus_xp == pytest.approx(1425)
        assert result.total_xp == pytest.approx(3000 + 300 + 1425)

    def test_partial_fourth_hour(self) -> None:
        # 3.5h: half of hour 4's bonus rate (450 * 0.5)
        result = calculate_session_xp(210, [StreakSegment(210)])
        assert result.breakdown.streak_bonus_xp == 300
        assert result.breakdown.accelerated_bonus_xp == pytest.approx(225)

    def test_partial_fifth_hour(self) -> None:
        # 4.5h: hour 4 full (450) + half of hour 5 (975 * 0.5)
        result = calculate_session_xp(270, [StreakSegment(270)])
        assert result.breakdown.accelerated_bonus_xp == pytest.approx(450 + 487.5)
        assert result.total_xp == pytest.approx(2700 + 300 + 937.5)

    def test_partial_rate_matches_full_hour_rate(self) -> None:
        """A partial hour earns its full hour's bonus pro-rated."""
        full = calculate_segment_bonus(360).accelerated_bonus - calculate_segment_bonus(300).accelerated_bonus
        half = calculate_segment_bonus(330).accelerated_bonus - calculate_segment_bonus(300).accelerated_bonus
        assert half == pytest.approx(full / 2)

    def test_bonus_is_uncapped(self) -> None:
        ten = calculate_segment_bonus(600).total
        twelve = calculate_segment_bonus(720).total
        assert twelve > ten * 2

    def test_seed_constant(self) -> None:
        assert ACCELERATION_SEED == 700
        assert STREAK_BONUS_PER_HOUR == 100


class TestSegments:
    """Each segment restarts the bonus curve."""

    def test_broken_streak_earns_less(self) -> None:
        whole = calculate_session_xp(240, [StreakSegment(240)])
        split = calculate_session_xp(240, [StreakSegment(120), StreakSegment(120)])
        assert split.base_xp == whole.base_xp
        assert split.breakdown.streak_bonus_xp == 400
        assert split.breakdown.accelerated_bonus_xp == 0
        assert split.total_xp == 2800
        assert split.total_xp < whole.total_xp

    def test_segments_are_summed(self) -> None:
        result = calculate_session_xp(300, [StreakSegment(60), StreakSegment(240)])
        assert result.breakdown.streak_bonus_xp == 100 + 300
        assert result.breakdown.accelerated_bonus_xp == pytest.approx(450)

    def test_plain_numbers_accepted(self) -> None:
        assert calculate_session_xp(180, [180]).total_xp == 2100

    def test_bonus_total_matches_breakdown(self) -> None:
        result = calculate_session_xp(275, [StreakSegment(200), StreakSegment(75)])
        assert result.bonus_xp == pytest.approx(
            result.breakdown.streak_bonus_xp + result.breakdown.accelerated_bonus_xp
        )
        assert result.total_xp == pytest.approx(result.base_xp + result.bonus_xp)


class TestDegenerateInput:
    def test_zero_minutes(self) -> None:
        result = calculate_session_xp(0, [StreakSegment(0)])
        assert result.total_xp == 0
        assert result.bonus_xp == 0

    def test_negative_minutes(self) -> None:
        result = calculate_session_xp(-30, [StreakSegment(-30)])
        assert result.base_xp == 0
        assert result.bonus_xp == 0

    def test_no_segments(self) -> None:
        assert calculate_session_xp(0, []).total_xp == 0

    def test_non_finite_segment(self) -> None:
        bonus = calculate_segment_bonus(float("nan"))
        assert bonus.total == 0


class TestProjectSessionXP:
    def test_matches_single_segment(self) -> None:
        projected = project_session_xp(240)
        assert projected.total_xp == pytest.approx(3150)

    def test_zero(self) -> None:
        assert project_session_xp(0).total_xp == 0
