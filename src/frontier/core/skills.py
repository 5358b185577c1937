"""
Skill levels and experience.

Reaching level N+1 from level N costs (N+1)^2 XP; surplus XP carries over,
so one large grant can cross several levels at once.  Level 0 means the
player has not joined the guild for that skill.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

EXPLORATION = "Exploration"


@dataclass(frozen=True)
class SkillState:
    """Level plus XP progress towards the next level."""

    level: int = 1
    xp: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"level": self.level, "xp": self.xp}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SkillState:
        return cls(level=d.get("level", 1), xp=d.get("xp", 0))


@dataclass(frozen=True)
class LevelUp:
    skill: str
    from_level: int
    to_level: int

    def to_dict(self) -> dict[str, Any]:
        return {"skill": self.skill, "from_level": self.from_level, "to_level": self.to_level}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> LevelUp:
        return cls(skill=d["skill"], from_level=d["from_level"], to_level=d["to_level"])


def xp_threshold_for_next_level(level: int) -> int:
    return (level + 1) ** 2


def add_xp(
    skill: SkillState,
    amount: int,
    skill_name: str = EXPLORATION,
) -> tuple[SkillState, list[LevelUp]]:
    """Grant *amount* XP; returns the new state and every level crossed."""
    if amount < 0:
        raise ValueError(f"XP grant must be non-negative, got {amount}")
    level, xp = skill.level, skill.xp + amount
    level_ups: list[LevelUp] = []

    threshold = xp_threshold_for_next_level(level)
    while xp >= threshold:
        xp -= threshold
        level_ups.append(LevelUp(skill_name, level, level + 1))
        level += 1
        threshold = xp_threshold_for_next_level(level)

    return SkillState(level=level, xp=xp), level_ups


def total_xp(skill: SkillState) -> int:
    """XP earned since level 1: every threshold passed plus current progress."""
    return skill.xp + sum(xp_threshold_for_next_level(lvl) for lvl in range(1, skill.level))


def enroll(skill: SkillState) -> SkillState:
    """Join the guild: level 0 becomes level 1; enrolled skills are unchanged."""
    if skill.level > 0:
        return skill
    return SkillState(level=1, xp=0)
