"""
Survey and Explore resolution.

Both actions share one shape: check preconditions (free), then spend the
session budget one roll interval at a time, rolling against the discovery
chance until something is found or the budget runs out.  Intervals can be
fractional (1.9 ticks at level 10), so a carried accumulator decides how
many whole ticks each roll costs.

Survey looks for a new area along an edge leaving the current area.
Explore looks for an undiscovered location or edge inside the current area.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from frontier.core.outcomes import ActionOutcome, ActionType, FailureCode, LuckInfo
from frontier.core.probability import chance_for_area, expected_ticks
from frontier.core.rng import DrawSource, RngRoll, round_half_up
from frontier.core.skills import EXPLORATION, LevelUp, SkillState, add_xp
from frontier.core.state import PlayerExplorationState, SessionClock
from frontier.core.world import Area, Connection, WorldGraph

logger = logging.getLogger(__name__)

# Accumulator precision; keeps 1.9 + 1.9 + ... from drifting below a whole tick.
_ACCUMULATOR_DIGITS = 9


@dataclass(frozen=True)
class Discoverable:
    """One entry in a roll loop's candidate pool."""

    kind: str  # "area" | "location" | "connection"
    id: str
    connection: Connection | None = None


@dataclass
class RollLoopResult:
    ticks_consumed: int
    rolls: list[RngRoll]
    picked: Discoverable | None


class DiscoveryResolver:
    """Resolves Survey and Explore against the world and the player.

    Parameters
    ----------
    world : WorldGraph
        Generated ground truth; read only.
    player : PlayerExplorationState
        Knowledge that the resolver appends to.
    clock : SessionClock
        Budget the roll loop draws down.
    skills : dict[str, SkillState]
        Skill table shared with the owner; the Exploration entry is replaced
        when XP is granted.
    draws : DrawSource
        The session's single draw source.
    params : dict | None
        Discovery-model overrides (``ExperimentConfig.discovery_config``).
    """

    def __init__(
        self,
        world: WorldGraph,
        player: PlayerExplorationState,
        clock: SessionClock,
        skills: dict[str, SkillState],
        draws: DrawSource,
        params: dict[str, Any] | None = None,
    ) -> None:
        self.world = world
        self.player = player
        self.clock = clock
        self.skills = skills
        self.draws = draws
        self.params = params

    @property
    def level(self) -> int:
        return self.skills.get(EXPLORATION, SkillState(level=0)).level

    @property
    def current_area(self) -> Area:
        return self.world.get_area(self.player.current_area_id)

    # ------------------------------------------------------------------
    # Candidate pools
    # ------------------------------------------------------------------

    def survey_candidates(self, area: Area) -> list[Discoverable]:
        """Edges leaving *area* whose far end the player does not know."""
        pool = []
        for conn in self.world.connections_touching(area.id):
            target = conn.other_end(area.id)
            if not self.player.knows_area(target):
                pool.append(Discoverable("area", target, conn))
        return pool

    def explore_candidates(self, area: Area) -> list[Discoverable]:
        """Undiscovered locations first, then undiscovered edges."""
        pool = [
            Discoverable("location", loc.id)
            for loc in area.locations
            if not self.player.knows_location(loc.id)
        ]
        pool.extend(
            Discoverable("connection", conn.id, conn)
            for conn in self.world.connections_touching(area.id)
            if not self.player.knows_connection(conn.id)
        )
        return pool

    def is_fully_explored(self, area: Area) -> bool:
        return not self.explore_candidates(area)

    # ------------------------------------------------------------------
    # Shared machinery
    # ------------------------------------------------------------------

    def _precondition_failure(self, action_type: ActionType) -> ActionOutcome | None:
        tick = self.clock.current_tick
        if self.level <= 0:
            return ActionOutcome.failure(action_type, tick, FailureCode.NOT_ENROLLED)
        if self.clock.exhausted:
            return ActionOutcome.failure(action_type, tick, FailureCode.SESSION_ENDED)
        return None

    def _roll_loop(
        self,
        prefix: str,
        chance: float,
        interval: float,
        pool: list[Discoverable],
    ) -> RollLoopResult:
        """Spend ticks and roll until a hit or until the budget runs out."""
        rolls: list[RngRoll] = []
        spent = 0
        accumulator = 0.0

        while not self.clock.exhausted:
            accumulator = round(accumulator + interval, _ACCUMULATOR_DIGITS)
            ticks = math.floor(accumulator)
            accumulator = round(accumulator - ticks, _ACCUMULATOR_DIGITS)

            if ticks > 0:
                if self.clock.session_remaining_ticks < ticks:
                    spent += self.clock.consume(self.clock.session_remaining_ticks)
                    break
                spent += self.clock.consume(ticks)

            if self.draws.roll(chance, f"{prefix}_roll_{spent}", rolls):
                pick = self.draws.index(len(pool), f"{prefix}_pick_{spent}")
                return RollLoopResult(spent, rolls, pool[pick])

        return RollLoopResult(spent, rolls, None)

    def _settle(
        self,
        outcome: ActionOutcome,
        area: Area,
        chance: float,
        interval: float,
    ) -> None:
        """Grant XP and record luck for a successful discovery."""
        xp = outcome.ticks_consumed * (area.distance + 1)
        level_ups: list[LevelUp] = []
        if xp > 0:
            new_state, level_ups = add_xp(self.skills[EXPLORATION], xp, EXPLORATION)
            self.skills[EXPLORATION] = new_state

        expected = expected_ticks(chance, interval)
        luck_delta = round_half_up(expected - outcome.ticks_consumed)
        self.player.record_luck(luck_delta)

        outcome.xp_gained = xp
        outcome.level_ups = level_ups
        outcome.luck = LuckInfo(
            actual_ticks=outcome.ticks_consumed,
            expected_ticks=round_half_up(expected),
            luck_delta=luck_delta,
            total_luck_delta=self.player.total_luck_delta,
            current_streak=self.player.current_streak,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def survey(self) -> ActionOutcome:
        """Look for a new area connected to the current one."""
        failed = self._precondition_failure(ActionType.SURVEY)
        if failed is not None:
            return failed

        tick_before = self.clock.current_tick
        area = self.current_area
        pool = self.survey_candidates(area)
        if not pool:
            return ActionOutcome.failure(
                ActionType.SURVEY, tick_before, FailureCode.NO_UNDISCOVERED_AREAS,
            )

        chance, interval, _ = chance_for_area(
            self.world, self.player, area, self.level, self.params,
        )
        result = self._roll_loop("survey", chance, interval, pool)

        if result.picked is None:
            return ActionOutcome(
                action_type=ActionType.SURVEY,
                tick_before=tick_before,
                success=False,
                failure_code=FailureCode.TIME_EXHAUSTED,
                ticks_consumed=result.ticks_consumed,
                rolls=result.rolls,
                summary="Survey interrupted: session time ran out",
            )

        conn = result.picked.connection
        self.player.learn_area(result.picked.id)
        self.player.learn_connection(conn.id)

        outcome = ActionOutcome(
            action_type=ActionType.SURVEY,
            tick_before=tick_before,
            success=True,
            ticks_consumed=result.ticks_consumed,
            rolls=result.rolls,
            discovered_area_id=result.picked.id,
            discovered_connection_id=conn.id,
            summary=f"Discovered area {result.picked.id}",
        )
        self._settle(outcome, area, chance, interval)
        logger.debug(
            "Survey from %s found %s after %d ticks (%d rolls)",
            area.id, result.picked.id, result.ticks_consumed, len(result.rolls),
        )
        return outcome

    def explore(self) -> ActionOutcome:
        """Look for an undiscovered location or edge in the current area."""
        failed = self._precondition_failure(ActionType.EXPLORE)
        if failed is not None:
            return failed

        tick_before = self.clock.current_tick
        area = self.current_area
        pool = self.explore_candidates(area)
        if not pool:
            return ActionOutcome.failure(
                ActionType.EXPLORE, tick_before, FailureCode.AREA_FULLY_EXPLORED,
                area_fully_explored=True,
            )

        chance, interval, _ = chance_for_area(
            self.world, self.player, area, self.level, self.params,
        )
        result = self._roll_loop("explore", chance, interval, pool)

        if result.picked is None:
            return ActionOutcome(
                action_type=ActionType.EXPLORE,
                tick_before=tick_before,
                success=False,
                failure_code=FailureCode.TIME_EXHAUSTED,
                ticks_consumed=result.ticks_consumed,
                rolls=result.rolls,
                area_fully_explored=False,
                summary="Explore interrupted: session time ran out",
            )

        picked = result.picked
        outcome = ActionOutcome(
            action_type=ActionType.EXPLORE,
            tick_before=tick_before,
            success=True,
            ticks_consumed=result.ticks_consumed,
            rolls=result.rolls,
        )
        if picked.kind == "location":
            self.player.learn_location(picked.id)
            outcome.discovered_location_id = picked.id
            outcome.summary = f"Discovered location {picked.id}"
        else:
            self.player.learn_connection(picked.id)
            outcome.discovered_connection_id = picked.id
            outcome.summary = f"Discovered connection {picked.id}"

        self._settle(outcome, area, chance, interval)
        outcome.area_fully_explored = self.is_fully_explored(area)
        logger.debug(
            "Explore in %s found %s after %d ticks",
            area.id, picked.id, result.ticks_consumed,
        )
        return outcome
