"""Application state for focus-rank.

AppState owns the user aggregate and the settings record. It wires the timer
engine's completion observer to the XP engine and writes every change
through Storage.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime

from focus_rank.levels import apply_xp, get_xp_to_next_level
from focus_rank.models import (
    DEFAULT_ATTRIBUTE_IDS,
    Attribute,
    NotificationSettings,
    Session,
    Skill,
    SkillTier,
    User,
    default_user,
    utc_now,
)
from focus_rank.skills import get_skill_tier
from focus_rank.storage import Storage
from focus_rank.timer import Scheduler, TimerEngine
from focus_rank.xp import SessionXP, calculate_session_xp

logger = logging.getLogger(__name__)


@dataclass
class LevelUp:
    attribute_id: str
    name: str
    old_level: int
    new_level: int


@dataclass
class SessionAward:
    """What a completed session earned."""

    session: Session
    xp: SessionXP
    level_ups: list[LevelUp] = field(default_factory=list)
    skill_hours: float = 0.0
    new_tier: SkillTier | None = None


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class AppState:
    def __init__(
        self,
        storage: Storage,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.storage = storage
        self._clock = clock

        user = storage.load_user()
        if user is None:
            logger.info("No stored user found, creating default user")
            user = default_user(clock())
            storage.save_user(user)
        self.user: User = user
        self.settings: NotificationSettings = storage.load_settings()
        self.last_award: SessionAward | None = None

        self.timer = TimerEngine(storage=storage, scheduler=scheduler, clock=clock)
        self.timer.set_callbacks(on_complete=self.handle_session_complete)

    def _refresh(self) -> None:
        """Re-read the stored user so changes saved by another process survive."""
        stored = self.storage.load_user()
        if stored is not None:
            self.user = stored

    def _save(self) -> None:
        self.storage.save_user(self.user)

    # ── Lookups ──────────────────────────────────────────────────────────────

    def find_attribute(self, attribute_id: str) -> Attribute | None:
        return next((a for a in self.user.attributes if a.id == attribute_id), None)

    def find_skill(self, skill_id: str) -> Skill | None:
        return next((s for s in self.user.skills if s.id == skill_id), None)

    def total_focus_hours(self) -> float:
        return sum(s.focus_minutes_total for s in self.user.sessions) / 60

    def total_xp_earned(self) -> float:
        return sum(s.total_xp for s in self.user.sessions)

    def set_timer_selection(
        self, skill_id: str | None = None, attribute_ids: list[str] | None = None
    ) -> list[str]:
        """Point the timer at a skill and attributes. No attributes means all of them."""
        chosen = list(attribute_ids) if attribute_ids else [a.id for a in self.user.attributes]
        self.timer.set_selection(skill_id, chosen)
        return chosen

    # ── Session completion ───────────────────────────────────────────────────

    def handle_session_complete(self, session: Session) -> SessionAward:
        """Award XP to the selected attributes and hours to the selected skill.

        1. Re-read the stored user; the run may have outlived other edits.
        2. Compute the session XP from its streak segments.
        3. Append the session, with its XP filled in, to the history.
        4. Fold the XP into each selected attribute that still exists.
        5. Add the focus hours to the selected skill and re-derive its tier.
        """
        self._refresh()
        xp = calculate_session_xp(session.focus_minutes_total, session.streak_segments)
        awarded = replace(session, total_xp=xp.total_xp)
        self.user.sessions.append(awarded)

        level_ups: list[LevelUp] = []
        for attribute_id in awarded.attribute_ids_awarded_to:
            attr = self.find_attribute(attribute_id)
            if attr is None:
                continue
            info = apply_xp(attr.level, attr.current_xp, xp.total_xp)
            if info.level > attr.level:
                level_ups.append(LevelUp(attr.id, attr.name, attr.level, info.level))
            attr.level = info.level
            attr.current_xp = info.current_xp
            attr.xp_to_next_level = get_xp_to_next_level(info.level)

        skill_hours = 0.0
        new_tier = None
        if awarded.skill_id:
            skill = self.find_skill(awarded.skill_id)
            if skill is not None:
                skill_hours = awarded.focus_minutes_total / 60
                skill.total_hours += skill_hours
                tier = get_skill_tier(skill.total_hours)
                if tier != skill.tier:
                    new_tier = tier
                skill.tier = tier

        self._save()
        logger.info(
            "Awarded %.0f XP for session %s (%d level-ups)",
            xp.total_xp, awarded.id, len(level_ups),
        )
        self.last_award = SessionAward(
            session=awarded, xp=xp, level_ups=level_ups,
            skill_hours=skill_hours, new_tier=new_tier,
        )
        return self.last_award

    # ── Attributes ───────────────────────────────────────────────────────────

    def create_attribute(self, name: str) -> Attribute:
        self._refresh()
        attr = Attribute(id=_new_id("attr"), name=name, created_at=self._clock())
        self.user.attributes.append(attr)
        self._save()
        return attr

    def delete_attribute(self, attribute_id: str) -> bool:
        """Delete a custom attribute and unlink it from every skill.

        The permanent defaults are silently kept; returns False for them.
        """
        if attribute_id in DEFAULT_ATTRIBUTE_IDS:
            return False
        self._refresh()
        before = len(self.user.attributes)
        self.user.attributes = [a for a in self.user.attributes if a.id != attribute_id]
        for skill in self.user.skills:
            skill.attribute_ids = [i for i in skill.attribute_ids if i != attribute_id]
        self._save()
        return len(self.user.attributes) < before

    # ── Skills ───────────────────────────────────────────────────────────────

    def create_skill(
        self, name: str, image_url: str = "", attribute_ids: list[str] | None = None
    ) -> Skill:
        self._refresh()
        skill = Skill(
            id=_new_id("skill"),
            name=name,
            image_url=image_url,
            attribute_ids=list(attribute_ids or []),
            created_at=self._clock(),
        )
        self.user.skills.append(skill)
        self._save()
        return skill

    def delete_skill(self, skill_id: str) -> bool:
        self._refresh()
        before = len(self.user.skills)
        self.user.skills = [s for s in self.user.skills if s.id != skill_id]
        self._save()
        return len(self.user.skills) < before

    # ── Profile and settings ─────────────────────────────────────────────────

    def update_profile(self, name: str | None = None, avatar_url: str | None = None) -> User:
        self._refresh()
        if name is not None:
            self.user.name = name
        if avatar_url is not None:
            self.user.avatar_url = avatar_url or None
        self._save()
        return self.user

    def update_settings(
        self, audio_enabled: bool | None = None, volume: float | None = None
    ) -> NotificationSettings:
        if self.storage.is_persistent:
            self.settings = self.storage.load_settings()
        self.settings = NotificationSettings(
            audio_enabled=self.settings.audio_enabled if audio_enabled is None else audio_enabled,
            volume=self.settings.volume if volume is None else volume,
        )
        self.storage.save_settings(self.settings)
        return self.settings

    def close(self) -> None:
        self.timer.pause()
        self.storage.close()
