"""
Exploration engine.

Owns one session's worth of state (draw source, world graph, clock, skills
and player knowledge) and dispatches Survey, Explore and Travel to the
resolvers.  Engines share nothing, so many can run side by side.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from frontier.core.config import ExperimentConfig
from frontier.core.discovery import DiscoveryResolver
from frontier.core.outcomes import (
    Action,
    ActionOutcome,
    ExploreAction,
    SurveyAction,
    TravelAction,
    action_from_dict,
)
from frontier.core.rng import DrawSource
from frontier.core.skills import EXPLORATION, SkillState, enroll
from frontier.core.state import PlayerExplorationState, SessionClock
from frontier.core.travel import TravelPath, TravelResolver, known_connections, reachable_areas
from frontier.core.world import TOWN_ID, Area, Connection, Location, WorldGraph, world_draws

logger = logging.getLogger(__name__)


class ExplorationEngine:
    """
    One player discovering one world.

    A config without a seed gets a generated one, recorded on
    ``self.config``, so the run can always be replayed.
    """

    def __init__(self, config: ExperimentConfig | None = None, *, _restore: bool = False):
        config = config or ExperimentConfig()
        if config.random_seed is None:
            config = config.with_overrides(random_seed=uuid4().hex[:8])
        self.config = config
        self.seed = config.random_seed

        self.draws = DrawSource(self.seed)
        self.world = WorldGraph(world_draws(self.seed), config)
        self.clock = SessionClock(current_tick=0, session_remaining_ticks=config.session_ticks)
        self.skills: dict[str, SkillState] = {
            EXPLORATION: SkillState(level=config.starting_exploration_level, xp=0),
        }
        self.player = PlayerExplorationState.starting_at(TOWN_ID)
        self.history: list[ActionOutcome] = []

        if not _restore:
            self.world.initialize()
        self._build_resolvers()

    def _build_resolvers(self) -> None:
        self.discovery = DiscoveryResolver(
            self.world, self.player, self.clock, self.skills, self.draws,
            params=self.config.discovery_config,
        )
        self.travel_resolver = TravelResolver(
            self.world, self.player, self.clock,
            base_travel_time=self.config.base_travel_time,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _record(self, outcome: ActionOutcome) -> ActionOutcome:
        # A newly known area may sit one band further out.
        furthest = max(self.world.get_area(a).distance for a in self.player.known_area_ids)
        self.world.finalize_through(furthest)
        self.history.append(outcome)
        return outcome

    def survey(self) -> ActionOutcome:
        return self._record(self.discovery.survey())

    def explore(self) -> ActionOutcome:
        return self._record(self.discovery.explore())

    def travel(self, destination_area_id: str, scavenge: bool = False) -> ActionOutcome:
        action = TravelAction(destination_area_id=destination_area_id, scavenge=scavenge)
        return self._record(self.travel_resolver.travel(action))

    def execute(self, action: Action | dict[str, Any]) -> ActionOutcome:
        """Run an action request (or its dict form)."""
        if isinstance(action, dict):
            action = action_from_dict(action)
        if isinstance(action, SurveyAction):
            return self.survey()
        if isinstance(action, ExploreAction):
            return self.explore()
        if isinstance(action, TravelAction):
            return self.travel(action.destination_area_id, action.scavenge)
        raise ValueError(f"Unsupported action: {action!r}")

    def enroll(self) -> SkillState:
        """Join the Exploration guild (no-op when already a member)."""
        self.skills[EXPLORATION] = enroll(self.skills[EXPLORATION])
        return self.skills[EXPLORATION]

    # ------------------------------------------------------------------
    # Read-only views (known content only)
    # ------------------------------------------------------------------

    @property
    def exploration_skill(self) -> SkillState:
        return self.skills[EXPLORATION]

    @property
    def current_area(self) -> Area:
        return self.world.get_area(self.player.current_area_id)

    @property
    def session_over(self) -> bool:
        return self.clock.exhausted

    def known_areas(self) -> list[Area]:
        return [self.world.get_area(a) for a in self.player.known_area_ids]

    def known_locations(self) -> list[Location]:
        by_id = {
            loc.id: loc
            for area in self.known_areas()
            for loc in area.locations
        }
        return [by_id[lid] for lid in self.player.known_location_ids if lid in by_id]

    def known_connections(self) -> list[Connection]:
        return known_connections(self.world, self.player)

    def reachable_areas(self, start: str | None = None) -> dict[str, int]:
        return reachable_areas(self.world, self.player, start or self.player.current_area_id)

    def preview_travel(self, destination_area_id: str, scavenge: bool = False) -> tuple[TravelPath, int] | None:
        return self.travel_resolver.preview(destination_area_id, scavenge)

    def is_area_fully_explored(self, area_id: str | None = None) -> bool:
        area = self.world.get_area(area_id or self.player.current_area_id)
        return self.discovery.is_fully_explored(area)

    def snapshot(self) -> dict[str, Any]:
        """Player-facing summary of the session."""
        skill = self.exploration_skill
        return {
            "seed": self.seed,
            "current_tick": self.clock.current_tick,
            "session_remaining_ticks": self.clock.session_remaining_ticks,
            "current_area_id": self.player.current_area_id,
            "exploration_level": skill.level,
            "exploration_xp": skill.xp,
            "known_area_count": len(self.player.known_area_ids),
            "known_location_count": len(self.player.known_location_ids),
            "known_connection_count": len(self.player.known_connection_ids),
            "total_luck_delta": self.player.total_luck_delta,
            "current_streak": self.player.current_streak,
            "actions_taken": len(self.history),
        }

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "draws": self.draws.to_dict(),
            "world": self.world.to_dict(),
            "clock": self.clock.to_dict(),
            "skills": {name: s.to_dict() for name, s in self.skills.items()},
            "player": self.player.to_dict(),
            "history": [o.to_dict() for o in self.history],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ExplorationEngine:
        """Rebuild an engine; the draw counter resumes where it stopped."""
        config = ExperimentConfig.from_dict(d["config"])
        engine = cls(config, _restore=True)
        engine.draws = DrawSource.from_dict(d["draws"])
        engine.world = WorldGraph.from_dict(d["world"], config=config)
        engine.clock = SessionClock.from_dict(d["clock"])
        engine.skills = {
            name: SkillState.from_dict(s) for name, s in d.get("skills", {}).items()
        }
        engine.skills.setdefault(EXPLORATION, SkillState(level=config.starting_exploration_level))
        engine.player = PlayerExplorationState.from_dict(d["player"])
        engine.history = [ActionOutcome.from_dict(o) for o in d.get("history", [])]
        engine._build_resolvers()
        return engine
