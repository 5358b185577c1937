"""
Discovery probability model.

Pure functions shared by Survey and Explore: how often the player rolls,
how likely each roll is to succeed, and how long a discovery is expected to
take.  The knowledge query reads only the player's known subgraph, so a
player's chance improves as they learn more about their surroundings.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from frontier.core.config import DEFAULT_DISCOVERY_CONFIG
from frontier.core.world import Area, area_count_for_distance

if TYPE_CHECKING:
    from frontier.core.state import PlayerExplorationState
    from frontier.core.world import WorldGraph

DEFAULT_DISCOVERY_PARAMS: dict[str, float] = DEFAULT_DISCOVERY_CONFIG


def _params(overrides: dict[str, Any] | None) -> dict[str, Any]:
    if not overrides:
        return DEFAULT_DISCOVERY_PARAMS
    return {**DEFAULT_DISCOVERY_PARAMS, **overrides}


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def roll_interval(level: int, params: dict[str, Any] | None = None) -> float:
    """Ticks between successive discovery rolls.

    ``max(1, 2 - floor(level / 10) * 0.1)`` with the default parameters.
    Level 0 uses the same formula; only its success chance is special.
    """
    p = _params(params)
    steps = math.floor(level / p["roll_interval_level_step"])
    interval = p["base_roll_interval"] - steps * p["roll_interval_reduction"]
    return max(p["min_roll_interval"], round(interval, 9))


def success_chance(
    level: int,
    distance: int,
    connected_known_areas: int = 0,
    non_connected_known_areas: int = 0,
    total_areas_at_distance: int = 0,
    params: dict[str, Any] | None = None,
) -> float:
    """Probability that a single roll succeeds.

    A player outside the Exploration guild (level 0) gets a flat 1% no
    matter where they are or what they know.
    """
    p = _params(params)
    if level == 0:
        return p["non_guild_chance"]

    ratio = 0.0
    if total_areas_at_distance > 0:
        ratio = non_connected_known_areas / total_areas_at_distance

    chance = (
        p["base_rate"]
        + (level - 1) * p["level_bonus"]
        - (distance - 1) * p["distance_penalty"]
        + connected_known_areas * p["connected_bonus"]
        + p["non_connected_weight"] * ratio
    )
    # 0.05 + 0.05 * 6 sums to 0.35000000000000003; round off float noise first.
    return clamp01(round(chance, 12))


def expected_ticks(chance: float, interval: float) -> float:
    """Mean ticks to the first success; infinite when nothing can succeed."""
    if chance <= 0:
        return math.inf
    return interval / chance


# ---------------------------------------------------------------------------
# Knowledge query
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KnowledgeParams:
    """What the player knows around an area, as the model consumes it."""

    connected_known_areas: int
    non_connected_known_areas: int
    total_areas_at_distance: int

    def to_dict(self) -> dict[str, int]:
        return {
            "connected_known_areas": self.connected_known_areas,
            "non_connected_known_areas": self.non_connected_known_areas,
            "total_areas_at_distance": self.total_areas_at_distance,
        }


def knowledge_params(
    world: WorldGraph,
    player: PlayerExplorationState,
    area: Area,
) -> KnowledgeParams:
    """Count known neighbours of *area*.

    Connected: edges touching the area that are known and whose far end is
    known.  Non-connected: known areas in the same distance band with no
    known edge to the area.  Areas in adjacent bands never count.
    """
    connected = 0
    known_neighbours: set[str] = set()
    for conn in world.connections_touching(area.id):
        if not player.knows_connection(conn.id):
            continue
        other = conn.other_end(area.id)
        known_neighbours.add(other)
        if player.knows_area(other):
            connected += 1

    non_connected = 0
    for area_id in player.known_area_ids:
        if area_id == area.id or area_id in known_neighbours:
            continue
        other = world.find_area(area_id)
        if other is not None and other.distance == area.distance:
            non_connected += 1

    return KnowledgeParams(
        connected_known_areas=connected,
        non_connected_known_areas=non_connected,
        total_areas_at_distance=area_count_for_distance(area.distance),
    )


def chance_for_area(
    world: WorldGraph,
    player: PlayerExplorationState,
    area: Area,
    level: int,
    params: dict[str, Any] | None = None,
) -> tuple[float, float, KnowledgeParams]:
    """Return ``(success_chance, roll_interval, knowledge)`` for *area*."""
    knowledge = knowledge_params(world, player, area)
    chance = success_chance(
        level,
        area.distance,
        knowledge.connected_known_areas,
        knowledge.non_connected_known_areas,
        knowledge.total_areas_at_distance,
        params=params,
    )
    return chance, roll_interval(level, params), knowledge
