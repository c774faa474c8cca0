"""Domain records for focus-rank.

All timestamps are timezone-aware datetimes in memory and ISO-8601 strings
on disk. Each record converts itself with to_dict()/from_dict(); from_dict()
fills the documented defaults for optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

DEFAULT_USER_ID = "default-user"
DEFAULT_USER_NAME = "Solo Leveler"
DEFAULT_ATTRIBUTE_IDS: tuple[str, ...] = ("strength", "intelligence")
STARTING_XP_THRESHOLD = 700


class SkillTier(str, Enum):
    NONE = "None"
    SKILL = "Skill"
    EXPERTISE = "Expertise"
    MASTERY = "Mastery"


class Phase(str, Enum):
    FOCUS = "focus"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def encode_timestamp(value: datetime) -> str:
    """Serialize a datetime as ISO-8601. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def decode_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 string back into an aware datetime.

    Accepts the trailing 'Z' that JavaScript's toISOString() writes.
    """
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _decode_optional(raw: str | None) -> datetime | None:
    return decode_timestamp(raw) if raw else None


@dataclass
class Attribute:
    id: str
    name: str
    level: int = 1
    current_xp: float = 0.0
    xp_to_next_level: float = STARTING_XP_THRESHOLD
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "currentXp": self.current_xp,
            "xpToNextLevel": self.xp_to_next_level,
            "createdAt": encode_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Attribute:
        return cls(
            id=data["id"],
            name=data["name"],
            level=int(data.get("level", 1)),
            current_xp=float(data.get("currentXp", 0.0)),
            xp_to_next_level=float(data.get("xpToNextLevel", STARTING_XP_THRESHOLD)),
            created_at=_decode_optional(data.get("createdAt")) or utc_now(),
        )


@dataclass
class Skill:
    id: str
    name: str
    image_url: str = ""
    attribute_ids: list[str] = field(default_factory=list)
    total_hours: float = 0.0
    tier: SkillTier = SkillTier.NONE
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "imageUrl": self.image_url,
            "attributeIds": list(self.attribute_ids),
            "totalHours": self.total_hours,
            "tier": self.tier.value,
            "createdAt": encode_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Skill:
        return cls(
            id=data["id"],
            name=data["name"],
            image_url=data.get("imageUrl", ""),
            attribute_ids=list(data.get("attributeIds", [])),
            total_hours=float(data.get("totalHours", 0.0)),
            tier=SkillTier(data.get("tier", SkillTier.NONE.value)),
            created_at=_decode_optional(data.get("createdAt")) or utc_now(),
        )


@dataclass(frozen=True)
class StreakSegment:
    """A contiguous span of focus minutes, the unit of bonus XP."""

    minutes: float


@dataclass(frozen=True)
class BreaksUsed:
    short_breaks: int = 0
    long_breaks: int = 0
    over_limit: bool = False


@dataclass(frozen=True)
class Session:
    """One completed timer run. Never mutated after creation."""

    id: str
    start_time: datetime
    end_time: datetime
    focus_minutes_total: float
    completed_focus_blocks: int
    breaks_used: BreaksUsed = BreaksUsed()
    streak_segments: tuple[StreakSegment, ...] = ()
    total_xp: float = 0.0
    attribute_ids_awarded_to: tuple[str, ...] = ()
    skill_id: str | None = None

    @property
    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "startTime": encode_timestamp(self.start_time),
            "endTime": encode_timestamp(self.end_time),
            "focusMinutesTotal": self.focus_minutes_total,
            "completedFocusBlocks": self.completed_focus_blocks,
            "breaksUsed": {
                "shortBreaks": self.breaks_used.short_breaks,
                "longBreaks": self.breaks_used.long_breaks,
                "overLimit": self.breaks_used.over_limit,
            },
            "streakSegments": [{"minutes": s.minutes} for s in self.streak_segments],
            "totalXp": self.total_xp,
            "attributeIdsAwardedTo": list(self.attribute_ids_awarded_to),
            "skillId": self.skill_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Session:
        breaks = data.get("breaksUsed") or {}
        return cls(
            id=data["id"],
            start_time=decode_timestamp(data["startTime"]),
            end_time=decode_timestamp(data["endTime"]),
            focus_minutes_total=float(data.get("focusMinutesTotal", 0.0)),
            completed_focus_blocks=int(data.get("completedFocusBlocks", 0)),
            breaks_used=BreaksUsed(
                short_breaks=int(breaks.get("shortBreaks", 0)),
                long_breaks=int(breaks.get("longBreaks", 0)),
                over_limit=bool(breaks.get("overLimit", False)),
            ),
            streak_segments=tuple(
                StreakSegment(minutes=float(s["minutes"])) for s in data.get("streakSegments", [])
            ),
            total_xp=float(data.get("totalXp", 0.0)),
            attribute_ids_awarded_to=tuple(data.get("attributeIdsAwardedTo", [])),
            skill_id=data.get("skillId"),
        )


@dataclass
class User:
    id: str
    name: str
    avatar_url: str | None = None
    attributes: list[Attribute] = field(default_factory=list)
    skills: list[Skill] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatarUrl": self.avatar_url,
            "attributes": [a.to_dict() for a in self.attributes],
            "skills": [s.to_dict() for s in self.skills],
            "sessions": [s.to_dict() for s in self.sessions],
            "createdAt": encode_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> User:
        return cls(
            id=data["id"],
            name=data["name"],
            avatar_url=data.get("avatarUrl"),
            attributes=[Attribute.from_dict(a) for a in data.get("attributes", [])],
            skills=[Skill.from_dict(s) for s in data.get("skills", [])],
            sessions=[Session.from_dict(s) for s in data.get("sessions", [])],
            created_at=_decode_optional(data.get("createdAt")) or utc_now(),
        )


@dataclass
class NotificationSettings:
    audio_enabled: bool = True
    volume: float = 0.5

    def __post_init__(self) -> None:
        self.volume = max(0.0, min(float(self.volume), 1.0))

    def to_dict(self) -> dict:
        return {"audioEnabled": self.audio_enabled, "volume": self.volume}

    @classmethod
    def from_dict(cls, data: dict) -> NotificationSettings:
        return cls(
            audio_enabled=bool(data.get("audioEnabled", True)),
            volume=float(data.get("volume", 0.5)),
        )


@dataclass
class TimerState:
    """Live state of the Pomodoro machine. Owned by TimerEngine."""

    is_running: bool = False
    is_paused: bool = False
    phase: Phase = Phase.FOCUS
    time_remaining: int = 1500
    focus_blocks_completed: int = 0
    session_start_time: datetime | None = None
    total_focus_minutes: float = 0.0
    current_streak: float = 0.0  # hours
    streak_broken: bool = False
    selected_skill_id: str | None = None
    selected_attribute_ids: list[str] = field(default_factory=list)

    def copy(self) -> TimerState:
        return TimerState(
            is_running=self.is_running,
            is_paused=self.is_paused,
            phase=self.phase,
            time_remaining=self.time_remaining,
            focus_blocks_completed=self.focus_blocks_completed,
            session_start_time=self.session_start_time,
            total_focus_minutes=self.total_focus_minutes,
            current_streak=self.current_streak,
            streak_broken=self.streak_broken,
            selected_skill_id=self.selected_skill_id,
            selected_attribute_ids=list(self.selected_attribute_ids),
        )

    def to_dict(self) -> dict:
        return {
            "isRunning": self.is_running,
            "isPaused": self.is_paused,
            "phase": self.phase.value,
            "timeRemaining": self.time_remaining,
            "focusBlocksCompleted": self.focus_blocks_completed,
            "sessionStartTime": (
                encode_timestamp(self.session_start_time) if self.session_start_time else None
            ),
            "totalFocusMinutes": self.total_focus_minutes,
            "currentStreak": self.current_streak,
            "streakBroken": self.streak_broken,
            "selectedSkillId": self.selected_skill_id,
            "selectedAttributeIds": list(self.selected_attribute_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> TimerState:
        return cls(
            is_running=bool(data.get("isRunning", False)),
            is_paused=bool(data.get("isPaused", False)),
            phase=Phase(data.get("phase", Phase.FOCUS.value)),
            time_remaining=int(data.get("timeRemaining", 1500)),
            focus_blocks_completed=int(data.get("focusBlocksCompleted", 0)),
            session_start_time=_decode_optional(data.get("sessionStartTime")),
            total_focus_minutes=float(data.get("totalFocusMinutes", 0.0)),
            current_streak=float(data.get("currentStreak", 0.0)),
            streak_broken=bool(data.get("streakBroken", False)),
            selected_skill_id=data.get("selectedSkillId"),
            selected_attribute_ids=list(data.get("selectedAttributeIds", [])),
        )


def default_user(now: datetime | None = None) -> User:
    """Build the first-run user with the two permanent attributes."""
    now = now or utc_now()
    return User(
        id=DEFAULT_USER_ID,
        name=DEFAULT_USER_NAME,
        attributes=[
            Attribute(id="strength", name="Strength", created_at=now),
            Attribute(id="intelligence", name="Intelligence", created_at=now),
        ],
        created_at=now,
    )
