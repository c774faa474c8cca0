"""Tests for the MCP server tool functions."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from focus_rank.mcp_server import get_profile, get_sessions, get_skills, preview_session_xp
from focus_rank.models import Session, Skill, SkillTier, StreakSegment, default_user

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _user_with_history():
    user = default_user(NOW)
    user.attributes[0].level = 4
    user.attributes[0].current_xp = 100.0
    user.skills.append(Skill(id="skill_1", name="Guitar", total_hours=42.0, tier=SkillTier.SKILL))
    for i in range(3):
        user.sessions.append(Session(
            id=f"s{i}", start_time=NOW + timedelta(hours=i),
            end_time=NOW + timedelta(hours=i, minutes=60),
            focus_minutes_total=60, completed_focus_blocks=2,
            streak_segments=(StreakSegment(60),), total_xp=700,
        ))
    return user


def _mock_storage(user):
    storage = MagicMock()
    storage.load_user.return_value = user
    return storage


class TestGetProfile:
    @patch("focus_rank.mcp_server._get_storage")
    def test_returns_attributes_and_totals(self, mock_get_storage):
        storage = _mock_storage(_user_with_history())
        mock_get_storage.return_value = storage
        result = get_profile()
        assert result["name"] == "Solo Leveler"
        assert result["attributes"][0]["level"] == 4
        assert result["attributes"][0]["lifetime_xp"] == 2200.0
        assert result["total_focus_hours"] == 3.0
        assert result["total_xp_earned"] == 2100.0
        assert result["session_count"] == 3
        storage.close.assert_called_once()

    @patch("focus_rank.mcp_server._get_storage")
    def test_no_data_returns_error(self, mock_get_storage):
        storage = _mock_storage(None)
        mock_get_storage.return_value = storage
        assert "error" in get_profile()
        storage.close.assert_called_once()


class TestGetSkills:
    @patch("focus_rank.mcp_server._get_storage")
    def test_lists_skills(self, mock_get_storage):
        mock_get_storage.return_value = _mock_storage(_user_with_history())
        result = get_skills()
        assert result["count"] == 1
        skill = result["skills"][0]
        assert skill["tier"] == "Skill"
        assert skill["next_tier_hours"] == 100

    @patch("focus_rank.mcp_server._get_storage")
    def test_no_data_returns_error(self, mock_get_storage):
        mock_get_storage.return_value = _mock_storage(None)
        assert "error" in get_skills()


class TestGetSessions:
    @patch("focus_rank.mcp_server._get_storage")
    def test_newest_first_with_limit(self, mock_get_storage):
        mock_get_storage.return_value = _mock_storage(_user_with_history())
        result = get_sessions(limit=2)
        assert [s["id"] for s in result["sessions"]] == ["s2", "s1"]
        assert result["count"] == 2
        assert result["total_count"] == 3

    @patch("focus_rank.mcp_server._get_storage")
    def test_negative_limit_returns_nothing(self, mock_get_storage):
        mock_get_storage.return_value = _mock_storage(_user_with_history())
        assert get_sessions(limit=-1)["sessions"] == []


class TestPreviewSessionXp:
    def test_one_hour_from_zero(self):
        result = preview_session_xp(60)
        assert result["total_xp"] == 700
        assert result["resulting_level"] == 2
        assert result["xp_to_next_level"] == 700

    def test_builds_on_current_total(self):
        result = preview_session_xp(180, current_total_xp=1400)
        assert result["total_xp"] == 2100
        assert result["resulting_level"] == 6

    def test_negative_minutes(self):
        assert "error" in preview_session_xp(-5)


class TestServer:
    def test_uses_fastmcp(self):
        from mcp.server.fastmcp import FastMCP

        from focus_rank.mcp_server import mcp

        assert isinstance(mcp, FastMCP)
        assert mcp.name == "focus-rank"
