"""Skill tier progression. Pure functions, no side effects."""

from __future__ import annotations

from dataclasses import dataclass

from focus_rank.models import SkillTier

# Lower bound (hours, inclusive) of each tier, highest first
TIER_THRESHOLDS: list[tuple[float, SkillTier]] = [
    (1000, SkillTier.MASTERY),
    (100, SkillTier.EXPERTISE),
    (20, SkillTier.SKILL),
]

SKILL_CATEGORY_IMAGES: dict[str, str] = {
    "fitness": "https://cdn.abacus.ai/images/e7ad7ef8-0d5a-477d-97c5-84ca684e28a3.png",
    "learning": "https://cdn.abacus.ai/images/9b2b9c39-0e21-4d32-82da-fdb9afd2d986.png",
    "music": "https://cdn.abacus.ai/images/0ef35513-af3f-46ab-a7f1-2aa922fe3c3f.png",
    "coding": "https://cdn.abacus.ai/images/ebd852b0-12dd-4b1d-b262-58d97efec0d2.png",
    "art": "https://cdn.abacus.ai/images/32c9346b-aa46-4624-9cc2-358e9abe0ded.png",
    "cooking": "https://cdn.abacus.ai/images/ebbcc7b7-6b13-47fa-8083-a3265446ce44.png",
    "meditation": "https://cdn.abacus.ai/images/b0ed4704-c63e-4ae6-9149-673723c166cc.png",
    "writing": "https://cdn.abacus.ai/images/a1816ae6-df6a-4d87-a106-118013d6b08e.png",
    "sports": "https://cdn.abacus.ai/images/b0804bd4-9b8a-4d15-8e11-e1cc5f21aa3a.png",
    "reading": "https://cdn.abacus.ai/images/9326b09c-b188-4b42-8925-6d51db11d403.png",
}


@dataclass
class TierProgress:
    current: float
    target: float
    percentage: float


def get_skill_tier(total_hours: float) -> SkillTier:
    """Return the tier for accumulated hours. Lower bounds are inclusive."""
    for threshold, tier in TIER_THRESHOLDS:
        if total_hours >= threshold:
            return tier
    return SkillTier.NONE


def get_next_tier_threshold(total_hours: float) -> float | None:
    """Return the next tier boundary not yet reached, or None once mastered."""
    for threshold, _tier in reversed(TIER_THRESHOLDS):
        if total_hours < threshold:
            return threshold
    return None


def get_tier_progress(total_hours: float) -> TierProgress | None:
    """Progress through the current tier band, or None at Mastery."""
    next_threshold = get_next_tier_threshold(total_hours)
    if next_threshold is None:
        return None

    previous_threshold = 0
    for threshold, _tier in reversed(TIER_THRESHOLDS):
        if threshold >= next_threshold:
            break
        previous_threshold = threshold

    current = total_hours - previous_threshold
    target = next_threshold - previous_threshold
    return TierProgress(current=current, target=target, percentage=current / target * 100)


def image_for_category(category: str) -> str:
    """Default image URL for a skill category. Unknown categories get ''."""
    return SKILL_CATEGORY_IMAGES.get(category.lower(), "")
