"""Persistence boundary for focus-rank.

Storage turns domain records into database rows and back. Every failure is
caught here, logged, and turned into "nothing stored" so the rest of the
app keeps working in memory.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from focus_rank.db import Database
from focus_rank.models import (
    Attribute,
    NotificationSettings,
    Session,
    Skill,
    TimerState,
    User,
    decode_timestamp,
    encode_timestamp,
)

logger = logging.getLogger(__name__)

USER_KEYS = ("user_id", "user_name", "user_avatar_url", "user_created_at")
SETTINGS_KEY = "settings"
TIMER_STATE_KEY = "timer_state"

STORAGE_ERRORS = (sqlite3.Error, ValueError, TypeError, KeyError)


def _attribute_row(attr: Attribute) -> dict:
    return {
        "id": attr.id,
        "name": attr.name,
        "level": attr.level,
        "current_xp": attr.current_xp,
        "xp_to_next_level": attr.xp_to_next_level,
        "created_at": encode_timestamp(attr.created_at),
    }


def _skill_row(skill: Skill) -> dict:
    return {
        "id": skill.id,
        "name": skill.name,
        "image_url": skill.image_url,
        "attribute_ids": json.dumps(list(skill.attribute_ids)),
        "total_hours": skill.total_hours,
        "tier": skill.tier.value,
        "created_at": encode_timestamp(skill.created_at),
    }


def _session_row(session: Session) -> dict:
    return {
        "id": session.id,
        "start_time": encode_timestamp(session.start_time),
        "end_time": encode_timestamp(session.end_time),
        "focus_minutes_total": session.focus_minutes_total,
        "completed_focus_blocks": session.completed_focus_blocks,
        "short_breaks": session.breaks_used.short_breaks,
        "long_breaks": session.breaks_used.long_breaks,
        "over_limit": session.breaks_used.over_limit,
        "streak_segments": json.dumps([{"minutes": s.minutes} for s in session.streak_segments]),
        "total_xp": session.total_xp,
        "attribute_ids": json.dumps(list(session.attribute_ids_awarded_to)),
        "skill_id": session.skill_id,
    }


def _attribute_from_row(row: dict) -> Attribute:
    return Attribute.from_dict({
        "id": row["id"],
        "name": row["name"],
        "level": row["level"],
        "currentXp": row["current_xp"],
        "xpToNextLevel": row["xp_to_next_level"],
        "createdAt": row["created_at"],
    })


def _skill_from_row(row: dict) -> Skill:
    return Skill.from_dict({
        "id": row["id"],
        "name": row["name"],
        "imageUrl": row["image_url"] or "",
        "attributeIds": json.loads(row["attribute_ids"] or "[]"),
        "totalHours": row["total_hours"],
        "tier": row["tier"],
        "createdAt": row["created_at"],
    })


def _session_from_row(row: dict) -> Session:
    return Session.from_dict({
        "id": row["id"],
        "startTime": row["start_time"],
        "endTime": row["end_time"],
        "focusMinutesTotal": row["focus_minutes_total"],
        "completedFocusBlocks": row["completed_focus_blocks"],
        "breaksUsed": {
            "shortBreaks": row["short_breaks"],
            "longBreaks": row["long_breaks"],
            "overLimit": bool(row["over_limit"]),
        },
        "streakSegments": json.loads(row["streak_segments"] or "[]"),
        "totalXp": row["total_xp"],
        "attributeIdsAwardedTo": json.loads(row["attribute_ids"] or "[]"),
        "skillId": row["skill_id"],
    })


class Storage:
    """Fail-safe store for the user aggregate, settings and timer snapshot.

    With db=None every save is a no-op and every load returns nothing.
    """

    def __init__(self, db: Database | None) -> None:
        self.db = db

    @classmethod
    def open(cls, db_path: Path | None = None) -> Storage:
        """Open the SQLite store, falling back to memory-only on failure."""
        try:
            return cls(Database(db_path=db_path))
        except (sqlite3.Error, OSError):
            logger.exception("Could not open database at %s; running in memory only", db_path)
            return cls(None)

    @property
    def is_persistent(self) -> bool:
        return self.db is not None

    # ── User aggregate ───────────────────────────────────────────────────────

    def save_user(self, user: User) -> bool:
        """Write the user, their attributes and skills, and any new sessions."""
        if self.db is None:
            return False
        try:
            self.db.set_profile("user_id", user.id)
            self.db.set_profile("user_name", user.name)
            self.db.set_profile("user_created_at", encode_timestamp(user.created_at))
            if user.avatar_url:
                self.db.set_profile("user_avatar_url", user.avatar_url)
            else:
                self.db.delete_profile("user_avatar_url")
            self.db.replace_attributes([_attribute_row(a) for a in user.attributes])
            self.db.replace_skills([_skill_row(s) for s in user.skills])
            for session in user.sessions:
                self.db.insert_session(_session_row(session))
            return True
        except STORAGE_ERRORS:
            logger.exception("Failed to save user data")
            return False

    def load_user(self) -> User | None:
        """Load the stored user, or None on first run or on error.

        A stored user that cannot be read switches this Storage to memory-only
        so the unreadable rows are never overwritten with defaults.
        """
        if self.db is None:
            return None
        try:
            profile = self.db.get_all_profile()
            if "user_id" not in profile:
                return None
            return User(
                id=profile["user_id"],
                name=profile.get("user_name", ""),
                avatar_url=profile.get("user_avatar_url"),
                attributes=[_attribute_from_row(r) for r in self.db.get_attributes()],
                skills=[_skill_from_row(r) for r in self.db.get_skills()],
                sessions=[_session_from_row(r) for r in self.db.get_sessions()],
                created_at=decode_timestamp(profile["user_created_at"]),
            )
        except STORAGE_ERRORS:
            logger.exception("Failed to load user data; running in memory only")
            self._detach()
            return None

    # ── Settings ─────────────────────────────────────────────────────────────

    def save_settings(self, settings: NotificationSettings) -> bool:
        if self.db is None:
            return False
        try:
            self.db.set_profile(SETTINGS_KEY, json.dumps(settings.to_dict()))
            return True
        except STORAGE_ERRORS:
            logger.exception("Failed to save settings")
            return False

    def load_settings(self) -> NotificationSettings:
        """Load settings. Missing or unreadable settings give the defaults."""
        if self.db is None:
            return NotificationSettings()
        try:
            raw = self.db.get_profile(SETTINGS_KEY)
            if raw is None:
                return NotificationSettings()
            return NotificationSettings.from_dict(json.loads(raw))
        except STORAGE_ERRORS:
            logger.exception("Failed to load settings")
            return NotificationSettings()

    # ── Timer snapshot ───────────────────────────────────────────────────────

    def save_timer_state(self, state: TimerState) -> bool:
        if self.db is None:
            return False
        try:
            self.db.set_profile(TIMER_STATE_KEY, json.dumps(state.to_dict()))
            return True
        except STORAGE_ERRORS:
            logger.exception("Failed to save timer state")
            return False

    def load_timer_state(self) -> TimerState | None:
        if self.db is None:
            return None
        try:
            raw = self.db.get_profile(TIMER_STATE_KEY)
            if raw is None:
                return None
            return TimerState.from_dict(json.loads(raw))
        except STORAGE_ERRORS:
            logger.exception("Failed to load timer state")
            return None

    def clear_all(self) -> None:
        if self.db is None:
            return
        try:
            self.db.clear_all()
        except sqlite3.Error:
            logger.exception("Failed to clear storage")

    def _detach(self) -> None:
        if self.db is not None:
            self.db.close()
            self.db = None

    def close(self) -> None:
        if self.db is not None:
            self.db.close()
