"""
Travel over the player's known subgraph.

Path finding never looks at edges the player has not discovered, even when
they exist in the generated world.  No randomness is involved.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from frontier.core.outcomes import ActionOutcome, ActionType, FailureCode, TravelAction
from frontier.core.state import PlayerExplorationState, SessionClock
from frontier.core.world import Connection, WorldGraph

logger = logging.getLogger(__name__)

BASE_TRAVEL_TIME = 10


@dataclass(frozen=True)
class TravelPath:
    """Areas visited (both endpoints included) and the edges between them."""

    areas: list[str]
    connections: list[Connection]

    @property
    def hops(self) -> int:
        return len(self.connections)


def known_connections(world: WorldGraph, player: PlayerExplorationState) -> list[Connection]:
    """Known edges resolved against the world, in discovery order."""
    result: list[Connection] = []
    seen: set[frozenset[str]] = set()
    for conn_id in player.known_connection_ids:
        conn = world.connection_by_id(conn_id)
        if conn is None or conn.pair in seen:
            continue
        seen.add(conn.pair)
        result.append(conn)
    return result


def find_path(
    world: WorldGraph,
    player: PlayerExplorationState,
    from_area_id: str,
    to_area_id: str,
) -> TravelPath | None:
    """Breadth-first shortest path by hop count over known edges.

    Edges are scanned in discovery order, so among equally short paths the
    one reached first in visitation order wins.
    """
    edges = known_connections(world, player)
    queue: deque[TravelPath] = deque([TravelPath([from_area_id], [])])
    visited = {from_area_id}

    while queue:
        current = queue.popleft()
        here = current.areas[-1]
        if here == to_area_id:
            return current
        for conn in edges:
            if not conn.touches(here):
                continue
            nxt = conn.other_end(here)
            if nxt in visited:
                continue
            visited.add(nxt)
            queue.append(TravelPath(current.areas + [nxt], current.connections + [conn]))

    return None


def reachable_areas(
    world: WorldGraph,
    player: PlayerExplorationState,
    start: str,
) -> dict[str, int]:
    """Hop count to every known area reachable from *start* through known edges."""
    edges = known_connections(world, player)
    hops = {start: 0}
    queue = deque([start])
    while queue:
        here = queue.popleft()
        for conn in edges:
            if not conn.touches(here):
                continue
            nxt = conn.other_end(here)
            if nxt not in hops:
                hops[nxt] = hops[here] + 1
                queue.append(nxt)
    return {aid: h for aid, h in hops.items() if player.knows_area(aid)}


def travel_time(
    connections: list[Connection],
    scavenge: bool = False,
    base_travel_time: int = BASE_TRAVEL_TIME,
) -> int:
    """Sum of ``base * multiplier`` over the path; doubled when scavenging."""
    total = sum(base_travel_time * c.travel_time_multiplier for c in connections)
    return total * 2 if scavenge else total


class TravelResolver:
    """Moves the player between known areas."""

    def __init__(
        self,
        world: WorldGraph,
        player: PlayerExplorationState,
        clock: SessionClock,
        base_travel_time: int = BASE_TRAVEL_TIME,
    ) -> None:
        self.world = world
        self.player = player
        self.clock = clock
        self.base_travel_time = base_travel_time

    def preview(self, destination_area_id: str, scavenge: bool = False) -> tuple[TravelPath, int] | None:
        path = find_path(self.world, self.player, self.player.current_area_id, destination_area_id)
        if path is None:
            return None
        return path, travel_time(path.connections, scavenge, self.base_travel_time)

    def travel(self, action: TravelAction) -> ActionOutcome:
        tick_before = self.clock.current_tick
        destination = action.destination_area_id

        def fail(code: FailureCode) -> ActionOutcome:
            return ActionOutcome.failure(
                ActionType.TRAVEL, tick_before, code,
                destination_area_id=destination, scavenge=action.scavenge,
            )

        if destination == self.player.current_area_id:
            return fail(FailureCode.ALREADY_AT_DESTINATION)
        if not self.player.knows_area(destination):
            return fail(FailureCode.AREA_NOT_KNOWN)
        if self.clock.exhausted:
            return fail(FailureCode.SESSION_ENDED)

        found = self.preview(destination, action.scavenge)
        if found is None:
            return fail(FailureCode.NO_KNOWN_PATH)
        path, ticks = found
        if ticks > self.clock.session_remaining_ticks:
            return fail(FailureCode.INSUFFICIENT_TIME)

        self.clock.consume(ticks)
        self.player.move_to(destination)
        logger.debug("Travelled %s in %d ticks", " -> ".join(path.areas), ticks)

        return ActionOutcome(
            action_type=ActionType.TRAVEL,
            tick_before=tick_before,
            success=True,
            ticks_consumed=ticks,
            destination_area_id=destination,
            path=list(path.areas),
            scavenge=action.scavenge,
            summary=f"Traveled to {destination} ({path.hops} hops, {ticks} ticks)",
        )
