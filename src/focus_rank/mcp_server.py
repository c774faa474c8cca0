"""MCP server for focus-rank.

Exposes focus-rank progress as MCP tools so an assistant can query it mid-conversation.
Run via: python3 -m focus_rank.mcp_server
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from focus_rank.levels import get_level_from_xp, xp_to_reach_level
from focus_rank.skills import get_next_tier_threshold
from focus_rank.xp import project_session_xp

mcp = FastMCP(name="focus-rank")


def _get_storage():
    from focus_rank.config import get_db_path
    from focus_rank.storage import Storage
    return Storage.open(get_db_path())


@mcp.tool()
def get_profile() -> dict[str, Any]:
    """Get the user's attributes with level and XP progress, plus lifetime totals."""
    storage = _get_storage()
    try:
        user = storage.load_user()
        if user is None:
            return {"error": "No data yet. Run focus-rank timer start first."}
        return {
            "name": user.name,
            "attributes": [
                {
                    "id": a.id, "name": a.name, "level": a.level,
                    "current_xp": round(a.current_xp, 1),
                    "xp_to_next_level": a.xp_to_next_level,
                    "lifetime_xp": round(xp_to_reach_level(a.level) + a.current_xp, 1),
                }
                for a in user.attributes
            ],
            "total_focus_hours": round(sum(s.focus_minutes_total for s in user.sessions) / 60, 2),
            "total_xp_earned": round(sum(s.total_xp for s in user.sessions), 1),
            "session_count": len(user.sessions),
        }
    finally:
        storage.close()


@mcp.tool()
def get_skills() -> dict[str, Any]:
    """Get all skills with tier, hours and the next tier threshold."""
    storage = _get_storage()
    try:
        user = storage.load_user()
        if user is None:
            return {"error": "No data yet."}
        skills = [
            {
                "id": s.id, "name": s.name, "tier": s.tier.value,
                "total_hours": round(s.total_hours, 2),
                "next_tier_hours": get_next_tier_threshold(s.total_hours),
                "attribute_ids": s.attribute_ids,
            }
            for s in user.skills
        ]
        return {"skills": skills, "count": len(skills)}
    finally:
        storage.close()


@mcp.tool()
def get_sessions(limit: int = 10) -> dict[str, Any]:
    """Get the most recent completed sessions, newest first."""
    storage = _get_storage()
    try:
        user = storage.load_user()
        if user is None:
            return {"error": "No data yet."}
        recent = list(reversed(user.sessions))[:max(0, limit)]
        return {
            "sessions": [s.to_dict() for s in recent],
            "count": len(recent),
            "total_count": len(user.sessions),
        }
    finally:
        storage.close()


@mcp.tool()
def preview_session_xp(minutes: float, current_total_xp: float = 0.0) -> dict[str, Any]:
    """Preview XP for an unbroken focus session and the level it would lead to."""
    if minutes < 0:
        return {"error": "minutes must be >= 0"}
    xp = project_session_xp(minutes)
    level_info = get_level_from_xp(current_total_xp + xp.total_xp)
    return {
        "minutes": minutes,
        "base_xp": xp.base_xp,
        "streak_bonus_xp": xp.breakdown.streak_bonus_xp,
        "accelerated_bonus_xp": xp.breakdown.accelerated_bonus_xp,
        "total_xp": xp.total_xp,
        "resulting_level": level_info.level,
        "xp_to_next_level": level_info.xp_to_next,
    }


def main() -> None:
    from focus_rank.logging_setup import setup_logger
    setup_logger()
    mcp.run()


if __name__ == "__main__":
    main()
