"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any


# === Sessions ===

class CreateSessionRequest(BaseModel):
    config: dict[str, Any] | None = None
    preset: str | None = None
    name: str | None = None
    seed: int | str | None = None


class SessionSummary(BaseModel):
    id: str
    name: str
    status: str
    current_tick: int
    session_ticks: int
    known_area_count: int


class SessionResponse(SessionSummary):
    seed: int | str
    session_remaining_ticks: int
    current_area_id: str
    exploration_level: int
    exploration_xp: int
    total_luck_delta: int
    current_streak: int
    config: dict[str, Any]


# === Actions ===

class TravelRequest(BaseModel):
    destination_area_id: str
    scavenge: bool = False


class ActionRequest(BaseModel):
    type: str
    destination_area_id: str | None = None
    scavenge: bool = False


class RollResponse(BaseModel):
    label: str
    probability: float
    result: bool
    rng_counter: int


class LuckResponse(BaseModel):
    actual_ticks: int
    expected_ticks: int
    luck_delta: int
    total_luck_delta: int
    current_streak: int


class LevelUpResponse(BaseModel):
    skill: str
    from_level: int
    to_level: int


class ActionOutcomeResponse(BaseModel):
    action_type: str
    tick_before: int
    success: bool
    failure_code: str | None = None
    ticks_consumed: int
    rolls: list[RollResponse] = Field(default_factory=list)
    discovered_area_id: str | None = None
    discovered_location_id: str | None = None
    discovered_connection_id: str | None = None
    area_fully_explored: bool | None = None
    destination_area_id: str | None = None
    path: list[str] = Field(default_factory=list)
    scavenge: bool = False
    xp_gained: int = 0
    level_ups: list[LevelUpResponse] = Field(default_factory=list)
    luck: LuckResponse | None = None
    summary: str = ""


class ActionResultResponse(BaseModel):
    outcome: ActionOutcomeResponse
    session: SessionResponse


class EnrollResponse(BaseModel):
    level: int
    xp: int


# === World (known content only) ===

class LocationResponse(BaseModel):
    id: str
    area_id: str
    location_type: str
    gathering_skill: str | None = None
    difficulty: int | None = None
    creature_type: str | None = None


class AreaResponse(BaseModel):
    id: str
    name: str
    distance: int
    is_current: bool
    known_locations: list[LocationResponse] = Field(default_factory=list)


class ConnectionResponse(BaseModel):
    id: str
    from_area_id: str
    to_area_id: str
    travel_time_multiplier: int


class RenameAreaRequest(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class ChanceResponse(BaseModel):
    area_id: str
    level: int
    success_chance: float
    roll_interval: float
    expected_ticks: float | None
    connected_known_areas: int
    non_connected_known_areas: int
    total_areas_at_distance: int


class PathPreviewResponse(BaseModel):
    destination_area_id: str
    reachable: bool
    path: list[str] = Field(default_factory=list)
    travel_time: int | None = None
    scavenge: bool = False
