"""
Action requests and the structured outcome every action returns.

Gameplay failures are never raised: each carries a ``FailureCode`` and the
ticks actually spent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from frontier.core.rng import RngRoll
from frontier.core.skills import LevelUp


class ActionType(str, Enum):
    SURVEY = "survey"
    EXPLORE = "explore"
    TRAVEL = "travel"


class FailureCode(str, Enum):
    """Why an action did not succeed."""

    NOT_ENROLLED = "not_enrolled"
    SESSION_ENDED = "session_ended"
    TIME_EXHAUSTED = "time_exhausted"
    NO_UNDISCOVERED_AREAS = "no_undiscovered_areas"
    AREA_FULLY_EXPLORED = "area_fully_explored"
    AREA_NOT_KNOWN = "area_not_known"
    NO_KNOWN_PATH = "no_known_path"
    ALREADY_AT_DESTINATION = "already_at_destination"
    INSUFFICIENT_TIME = "insufficient_time"


@dataclass(frozen=True)
class LuckInfo:
    """Actual vs expected ticks for one discovery."""

    actual_ticks: int
    expected_ticks: int
    luck_delta: int
    total_luck_delta: int
    current_streak: int

    def to_dict(self) -> dict[str, int]:
        return {
            "actual_ticks": self.actual_ticks,
            "expected_ticks": self.expected_ticks,
            "luck_delta": self.luck_delta,
            "total_luck_delta": self.total_luck_delta,
            "current_streak": self.current_streak,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> LuckInfo:
        return cls(
            actual_ticks=d["actual_ticks"],
            expected_ticks=d["expected_ticks"],
            luck_delta=d["luck_delta"],
            total_luck_delta=d["total_luck_delta"],
            current_streak=d["current_streak"],
        )


@dataclass
class ActionOutcome:
    """Result of one Survey, Explore or Travel call.

    Attributes:
        action_type: Which action ran.
        tick_before: Session tick when the action started.
        success: Whether a discovery or move happened.
        failure_code: Set when ``success`` is False.
        ticks_consumed: Ticks charged to the session clock.
        rolls: Every probability roll made, in order.
        discovered_area_id: Area learned by a Survey.
        discovered_location_id: Location learned by an Explore.
        discovered_connection_id: Edge learned by a Survey or Explore.
        area_fully_explored: Explore only; True when nothing is left to find.
        destination_area_id: Travel target.
        path: Travel route including both endpoints.
        xp_gained: Exploration XP granted.
        level_ups: Levels crossed by that grant.
        luck: Luck accounting for a successful discovery.
        summary: Human-readable one-liner.
    """

    action_type: ActionType
    tick_before: int
    success: bool
    failure_code: FailureCode | None = None
    ticks_consumed: int = 0
    rolls: list[RngRoll] = field(default_factory=list)
    discovered_area_id: str | None = None
    discovered_location_id: str | None = None
    discovered_connection_id: str | None = None
    area_fully_explored: bool | None = None
    destination_area_id: str | None = None
    path: list[str] = field(default_factory=list)
    scavenge: bool = False
    xp_gained: int = 0
    level_ups: list[LevelUp] = field(default_factory=list)
    luck: LuckInfo | None = None
    summary: str = ""

    @classmethod
    def failure(
        cls,
        action_type: ActionType,
        tick_before: int,
        code: FailureCode,
        **kwargs: Any,
    ) -> ActionOutcome:
        """A zero-cost precondition failure."""
        kwargs.setdefault("summary", f"Failed: {code.value}")
        return cls(
            action_type=action_type,
            tick_before=tick_before,
            success=False,
            failure_code=code,
            **kwargs,
        )

    @property
    def discovered_ids(self) -> list[str]:
        return [
            i for i in (
                self.discovered_area_id,
                self.discovered_location_id,
                self.discovered_connection_id,
            ) if i is not None
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_type": self.action_type.value,
            "tick_before": self.tick_before,
            "success": self.success,
            "failure_code": self.failure_code.value if self.failure_code else None,
            "ticks_consumed": self.ticks_consumed,
            "rolls": [r.to_dict() for r in self.rolls],
            "discovered_area_id": self.discovered_area_id,
            "discovered_location_id": self.discovered_location_id,
            "discovered_connection_id": self.discovered_connection_id,
            "area_fully_explored": self.area_fully_explored,
            "destination_area_id": self.destination_area_id,
            "path": list(self.path),
            "scavenge": self.scavenge,
            "xp_gained": self.xp_gained,
            "level_ups": [lu.to_dict() for lu in self.level_ups],
            "luck": self.luck.to_dict() if self.luck else None,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ActionOutcome:
        code = d.get("failure_code")
        luck = d.get("luck")
        return cls(
            action_type=ActionType(d["action_type"]),
            tick_before=d["tick_before"],
            success=d["success"],
            failure_code=FailureCode(code) if code else None,
            ticks_consumed=d.get("ticks_consumed", 0),
            rolls=[RngRoll.from_dict(r) for r in d.get("rolls", [])],
            discovered_area_id=d.get("discovered_area_id"),
            discovered_location_id=d.get("discovered_location_id"),
            discovered_connection_id=d.get("discovered_connection_id"),
            area_fully_explored=d.get("area_fully_explored"),
            destination_area_id=d.get("destination_area_id"),
            path=list(d.get("path", [])),
            scavenge=d.get("scavenge", False),
            xp_gained=d.get("xp_gained", 0),
            level_ups=[LevelUp.from_dict(lu) for lu in d.get("level_ups", [])],
            luck=LuckInfo.from_dict(luck) if luck else None,
            summary=d.get("summary", ""),
        )


# ---------------------------------------------------------------------------
# Action requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SurveyAction:
    type: ActionType = ActionType.SURVEY


@dataclass(frozen=True)
class ExploreAction:
    type: ActionType = ActionType.EXPLORE


@dataclass(frozen=True)
class TravelAction:
    destination_area_id: str
    scavenge: bool = False
    type: ActionType = ActionType.TRAVEL


Action = Union[SurveyAction, ExploreAction, TravelAction]


def action_from_dict(d: dict[str, Any]) -> Action:
    """Parse ``{"type": "survey" | "explore" | "travel", ...}``.

    Raises ValueError for unknown types or a travel without a destination.
    """
    raw = str(d.get("type", "")).lower()
    try:
        action_type = ActionType(raw)
    except ValueError:
        raise ValueError(f"Unknown action type: {d.get('type')!r}") from None

    if action_type is ActionType.SURVEY:
        return SurveyAction()
    if action_type is ActionType.EXPLORE:
        return ExploreAction()

    destination = d.get("destination_area_id") or d.get("destination")
    if not destination:
        raise ValueError("Travel requires a destination_area_id")
    return TravelAction(destination_area_id=destination, scavenge=bool(d.get("scavenge", False)))
