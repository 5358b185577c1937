"""
Exploration policies for batch runs.

A policy picks the next action from what the player can see: the known
subgraph, the clock, and the outcomes of earlier actions.  It never peeks at
the generated world beyond the known sets, so an area is only treated as
finished once an action has reported it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from frontier.core.outcomes import (
    Action,
    ActionOutcome,
    ExploreAction,
    FailureCode,
    SurveyAction,
    TravelAction,
)

if TYPE_CHECKING:
    from frontier.core.engine import ExplorationEngine


@dataclass
class PolicyMemory:
    """What earlier outcomes revealed about each area."""

    fully_explored: set[str] = field(default_factory=set)
    surveyed_out: set[str] = field(default_factory=set)
    unaffordable: set[str] = field(default_factory=set)

    def observe(self, area_id: str, outcome: ActionOutcome) -> None:
        """Update from an outcome of an action taken in *area_id*."""
        if outcome.area_fully_explored:
            self.fully_explored.add(area_id)
        code = outcome.failure_code
        if code is FailureCode.NO_UNDISCOVERED_AREAS:
            self.surveyed_out.add(area_id)
        elif code in (
            FailureCode.INSUFFICIENT_TIME,
            FailureCode.NO_KNOWN_PATH,
            FailureCode.AREA_NOT_KNOWN,
        ):
            if outcome.destination_area_id:
                self.unaffordable.add(outcome.destination_area_id)
        elif outcome.success and outcome.destination_area_id:
            self.unaffordable.clear()

    def finished(self, area_id: str) -> bool:
        return area_id in self.fully_explored and area_id in self.surveyed_out


Policy = Callable[["ExplorationEngine", PolicyMemory], "Action | None"]


def _nearest_unfinished(engine: ExplorationEngine, memory: PolicyMemory) -> str | None:
    here = engine.player.current_area_id
    order = {aid: i for i, aid in enumerate(engine.player.known_area_ids)}
    hops = engine.reachable_areas(here)
    candidates = [
        aid for aid in hops
        if aid != here and not memory.finished(aid) and aid not in memory.unaffordable
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda aid: (hops[aid], order.get(aid, len(order))))


def frontier_policy(engine: ExplorationEngine, memory: PolicyMemory) -> Action | None:
    """Explore the current area dry, then survey it, then move on.

    Returns None when no known area is left unfinished.
    """
    here = engine.player.current_area_id
    if here not in memory.fully_explored:
        return ExploreAction()
    if here not in memory.surveyed_out:
        return SurveyAction()
    target = _nearest_unfinished(engine, memory)
    return TravelAction(destination_area_id=target) if target else None


def survey_first_policy(engine: ExplorationEngine, memory: PolicyMemory) -> Action | None:
    """Push outwards: survey before exploring, travel to the nearest unfinished area."""
    here = engine.player.current_area_id
    if here not in memory.surveyed_out:
        return SurveyAction()
    if here not in memory.fully_explored:
        return ExploreAction()
    target = _nearest_unfinished(engine, memory)
    return TravelAction(destination_area_id=target) if target else None


POLICIES: dict[str, Policy] = {
    "frontier": frontier_policy,
    "survey_first": survey_first_policy,
}


def get_policy(name: str) -> Policy:
    if name not in POLICIES:
        raise KeyError(f"Unknown policy: '{name}'. Available: {list(POLICIES.keys())}")
    return POLICIES[name]
