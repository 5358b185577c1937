"""
World graph generation for the Frontier discovery engine.

The world is an abstract graph: areas are nodes grouped into distance bands
around a single root area (the town), connections are weighted edges.

Bands are materialised lazily but always in ascending order: band d's areas
are created first, then band d-1's connections are rolled (its candidates
span d-2..d, so they all exist by then).  Edges touching band d come only
from the rolls of bands d-1, d and d+1, so once band d+1 has been rolled
nothing touching band d ever changes again.  ``finalize_through(d)`` gives
that guarantee for every band up to d; the engine calls it before an area
can be reached by the player.

World generation owns its own ``DrawSource`` derived from the seed, so the
generated graph never depends on how many discovery rolls were made.

Storage is an index-stable arena: areas live in a list in creation order with
an id -> index lookup, and connections are a flat list with a pair index for
duplicate suppression.  After generation only area display names change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from frontier.core.config import ExperimentConfig
from frontier.core.rng import DrawSource, round_half_up

logger = logging.getLogger(__name__)

TOWN_ID = "town"


class LocationType(str, Enum):
    """Kinds of points of interest inside an area."""

    GATHERING_NODE = "gathering_node"
    CREATURE_CAMP = "creature_camp"


class GatheringSkill(str, Enum):
    """Gathering skills a node can be worked with."""

    MINING = "Mining"
    WOODCUTTING = "Woodcutting"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Location:
    """A point of interest inside an area.

    Attributes:
        id: ``{area_id}-loc-{n}``.
        area_id: Owning area.
        location_type: Gathering node or creature camp.
        gathering_skill: Skill for gathering nodes, else None.
        difficulty: Camp difficulty (area distance plus a signed offset).
        creature_type: Placeholder creature kind for camps.
    """

    id: str
    area_id: str
    location_type: LocationType
    gathering_skill: GatheringSkill | None = None
    difficulty: int | None = None
    creature_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "area_id": self.area_id,
            "location_type": self.location_type.value,
            "gathering_skill": self.gathering_skill.value if self.gathering_skill else None,
            "difficulty": self.difficulty,
            "creature_type": self.creature_type,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Location:
        skill = d.get("gathering_skill")
        return cls(
            id=d["id"],
            area_id=d["area_id"],
            location_type=LocationType(d["location_type"]),
            gathering_skill=GatheringSkill(skill) if skill else None,
            difficulty=d.get("difficulty"),
            creature_type=d.get("creature_type"),
        )


@dataclass
class Area:
    """A node of the world graph.

    Attributes:
        id: ``area-d{distance}-i{index}``, or ``"town"`` for the root.
        distance: Hop count from the root.
        index_in_distance: Ordinal among areas of the same distance.
        locations: Points of interest, fixed at creation.
        name: Display name assigned by a naming collaborator, if any.
        generated: True once this area's own connections have been rolled.
    """

    id: str
    distance: int
    index_in_distance: int
    locations: list[Location] = field(default_factory=list)
    name: str | None = None
    generated: bool = False

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return "Town" if self.id == TOWN_ID else self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "distance": self.distance,
            "index_in_distance": self.index_in_distance,
            "locations": [loc.to_dict() for loc in self.locations],
            "name": self.name,
            "generated": self.generated,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Area:
        return cls(
            id=d["id"],
            distance=d["distance"],
            index_in_distance=d["index_in_distance"],
            locations=[Location.from_dict(ld) for ld in d.get("locations", [])],
            name=d.get("name"),
            generated=d.get("generated", False),
        )


@dataclass(frozen=True)
class Connection:
    """A bidirectional travel link stored as one directed record."""

    from_area_id: str
    to_area_id: str
    travel_time_multiplier: int

    @property
    def id(self) -> str:
        return f"{self.from_area_id}->{self.to_area_id}"

    @property
    def reverse_id(self) -> str:
        return f"{self.to_area_id}->{self.from_area_id}"

    @property
    def pair(self) -> frozenset[str]:
        return frozenset((self.from_area_id, self.to_area_id))

    def touches(self, area_id: str) -> bool:
        return area_id in (self.from_area_id, self.to_area_id)

    def other_end(self, area_id: str) -> str:
        """Return the endpoint opposite *area_id*."""
        if area_id == self.from_area_id:
            return self.to_area_id
        if area_id == self.to_area_id:
            return self.from_area_id
        raise ValueError(f"Connection {self.id} does not touch {area_id}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_area_id": self.from_area_id,
            "to_area_id": self.to_area_id,
            "travel_time_multiplier": self.travel_time_multiplier,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Connection:
        return cls(
            from_area_id=d["from_area_id"],
            to_area_id=d["to_area_id"],
            travel_time_multiplier=d["travel_time_multiplier"],
        )


# ---------------------------------------------------------------------------
# Band sizes
# ---------------------------------------------------------------------------

def fibonacci(n: int) -> int:
    """Fibonacci number with fib(0) = 0, fib(1) = 1."""
    if n <= 1:
        return n
    a, b = 0, 1
    for _ in range(2, n + 1):
        a, b = b, a + b
    return b


def area_count_for_distance(distance: int) -> int:
    """Number of areas in a distance band: 1 for the town, else Fib(d + 4)."""
    if distance < 0:
        raise ValueError(f"Distance must be non-negative, got {distance}")
    if distance == 0:
        return 1
    return fibonacci(distance + 4)


def area_id_for(distance: int, index: int) -> str:
    if distance == 0:
        return TOWN_ID
    return f"area-d{distance}-i{index}"


def world_draws(seed: int | str) -> DrawSource:
    """The generation stream for *seed*, independent of the discovery stream."""
    return DrawSource(f"{seed}:world")


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def generate_town() -> Area:
    """The root area: distance 0, no locations."""
    return Area(id=TOWN_ID, distance=0, index_in_distance=0, locations=[])


def generate_area(
    draws: DrawSource,
    distance: int,
    index_in_distance: int,
    config: ExperimentConfig | None = None,
) -> Area:
    """Generate an area and its locations.

    Each candidate location type rolls independently for existence, so most
    areas are sparse.  A creature camp consumes one extra draw for its
    difficulty offset.
    """
    lc = (config or ExperimentConfig()).location_config
    area_id = area_id_for(distance, index_in_distance)
    locations: list[Location] = []

    def next_location_id() -> str:
        return f"{area_id}-loc-{len(locations)}"

    if draws.draw(f"loc_mining_{area_id}") < lc["mining_chance"]:
        locations.append(Location(
            id=next_location_id(),
            area_id=area_id,
            location_type=LocationType.GATHERING_NODE,
            gathering_skill=GatheringSkill.MINING,
        ))

    if draws.draw(f"loc_woodcutting_{area_id}") < lc["woodcutting_chance"]:
        locations.append(Location(
            id=next_location_id(),
            area_id=area_id,
            location_type=LocationType.GATHERING_NODE,
            gathering_skill=GatheringSkill.WOODCUTTING,
        ))

    if draws.draw(f"loc_mob_{area_id}") < lc["creature_camp_chance"]:
        spread = lc["difficulty_spread"]
        offset = round_half_up(draws.uniform(-spread, spread, f"mob_difficulty_{area_id}"))
        locations.append(Location(
            id=next_location_id(),
            area_id=area_id,
            location_type=LocationType.CREATURE_CAMP,
            difficulty=distance + offset,
            creature_type="creature",
        ))

    return Area(
        id=area_id,
        distance=distance,
        index_in_distance=index_in_distance,
        locations=locations,
    )


def generate_area_connections(
    draws: DrawSource,
    area: Area,
    all_areas: Iterable[Area],
    existing: Iterable[Connection] = (),
    config: ExperimentConfig | None = None,
) -> list[Connection]:
    """Roll the connections leaving *area*.

    The town connects to every distance-1 area and only rolls the travel
    multiplier.  Any other area rolls a connection count for each of the
    bands d-1, d and d+1, shuffles that band's candidates (never itself, never
    the town) and links the first ``count`` of them, skipping pairs that are
    already connected in either direction.
    """
    config = config or ExperimentConfig()
    all_areas = list(all_areas)
    taken: set[frozenset[str]] = {c.pair for c in existing}
    connections: list[Connection] = []

    def link(target: Area) -> None:
        multiplier = draws.weighted(
            config.travel_multiplier_weights, f"travel_{area.id}_{target.id}",
        ) + 1
        conn = Connection(area.id, target.id, multiplier)
        connections.append(conn)
        taken.add(conn.pair)

    if area.id == TOWN_ID:
        for target in all_areas:
            if target.distance == 1 and frozenset((area.id, target.id)) not in taken:
                link(target)
        return connections

    bands = [d for d in (area.distance - 1, area.distance, area.distance + 1) if d >= 0]
    for band in bands:
        candidates = [
            a for a in all_areas
            if a.distance == band and a.id != area.id and a.id != TOWN_ID
        ]
        if not candidates:
            continue

        count = draws.weighted(
            config.connection_count_weights, f"conn_count_{area.id}_d{band}",
        )
        shuffled = draws.shuffled(candidates, f"shuffle_{area.id}_d{band}")
        for target in shuffled[:count]:
            if frozenset((area.id, target.id)) in taken:
                continue
            link(target)

    return connections


# ---------------------------------------------------------------------------
# WorldGraph
# ---------------------------------------------------------------------------

class WorldGraph:
    """Arena of areas plus a flat connection list.

    Attributes:
        draws: The generation stream (see ``world_draws``).
        areas: Areas in creation order; an area's index never changes.
        connections: Every generated edge, in generation order.
    """

    def __init__(
        self,
        draws: DrawSource,
        config: ExperimentConfig | None = None,
    ) -> None:
        self.draws = draws
        self.config = config or ExperimentConfig()
        self.areas: list[Area] = []
        self.connections: list[Connection] = []
        self._area_index: dict[str, int] = {}
        self._connection_index: dict[str, int] = {}
        self._pairs: dict[frozenset[str], int] = {}
        self._bands: set[int] = set()
        self._rolled: set[int] = set()

    # ---- Arena ----

    def _add_area(self, area: Area) -> None:
        if area.id in self._area_index:
            raise ValueError(f"Area '{area.id}' already exists")
        self._area_index[area.id] = len(self.areas)
        self.areas.append(area)

    def _add_connection(self, conn: Connection) -> None:
        if conn.pair in self._pairs:
            raise ValueError(f"Areas of {conn.id} are already connected")
        idx = len(self.connections)
        self._connection_index[conn.id] = idx
        self._pairs[conn.pair] = idx
        self.connections.append(conn)

    def __len__(self) -> int:
        return len(self.areas)

    def __contains__(self, area_id: object) -> bool:
        return area_id in self._area_index

    # ---- Generation (ascending bands only) ----

    def _create_band(self, distance: int) -> None:
        self._bands.add(distance)
        if distance == 0:
            self._add_area(generate_town())
            return
        count = area_count_for_distance(distance)
        for i in range(count):
            self._add_area(generate_area(self.draws, distance, i, self.config))
        logger.debug("Generated distance band %d (%d areas)", distance, count)

    def _roll_band(self, distance: int) -> None:
        """Roll the connections of every area in *distance*, in index order."""
        self._rolled.add(distance)
        rolled = 0
        for area in self.areas_at_distance(distance):
            new = generate_area_connections(
                self.draws, area, self.areas, self.connections, self.config,
            )
            for conn in new:
                self._add_connection(conn)
            area.generated = True
            rolled += len(new)
        logger.debug("Rolled %d connections for distance band %d", rolled, distance)

    def ensure_band(self, distance: int) -> list[Area]:
        """Materialise every band up to *distance*.

        Creates bands 0..distance and rolls bands 0..distance-1, in the
        order create(0), create(1), roll(0), create(2), roll(1), ...  The
        draw sequence is therefore the same whenever the call happens.
        """
        if distance < 0:
            return []
        for band in range(distance + 1):
            if band not in self._bands:
                self._create_band(band)
            if band > 0 and band - 1 not in self._rolled:
                self._roll_band(band - 1)
        return self.areas_at_distance(distance)

    def finalize_through(self, distance: int) -> None:
        """Fix every edge touching bands 0..*distance*.

        Rolls bands up to ``distance + 1``; later generation only adds edges
        between bands further out.
        """
        self.ensure_band(distance + 2)

    def initialize(self) -> Area:
        """Create the town and distance-1 band, with their edges final."""
        self.finalize_through(1)
        return self.get_area(TOWN_ID)

    # ---- Mutation ----

    def rename_area(self, area_id: str, name: str) -> Area:
        """Set an area's display name, the only mutable part of the graph."""
        area = self.get_area(area_id)
        area.name = name
        return area

    # ---- Queries ----

    def get_area(self, area_id: str) -> Area:
        """Return an area by id; raises KeyError if it was never generated."""
        try:
            return self.areas[self._area_index[area_id]]
        except KeyError:
            raise KeyError(f"Area '{area_id}' not found") from None

    def find_area(self, area_id: str) -> Area | None:
        idx = self._area_index.get(area_id)
        return self.areas[idx] if idx is not None else None

    def areas_at_distance(self, distance: int) -> list[Area]:
        return [a for a in self.areas if a.distance == distance]

    @property
    def generated_bands(self) -> list[int]:
        return sorted(self._bands)

    @property
    def rolled_bands(self) -> list[int]:
        return sorted(self._rolled)

    def connection_by_id(self, connection_id: str) -> Connection | None:
        """Look up a connection by either directional id."""
        idx = self._connection_index.get(connection_id)
        if idx is None:
            from_id, sep, to_id = connection_id.partition("->")
            if not sep:
                return None
            idx = self._connection_index.get(f"{to_id}->{from_id}")
        return self.connections[idx] if idx is not None else None

    def find_connection(self, a: str, b: str) -> Connection | None:
        idx = self._pairs.get(frozenset((a, b)))
        return self.connections[idx] if idx is not None else None

    def connections_touching(self, area_id: str) -> list[Connection]:
        return [c for c in self.connections if c.touches(area_id)]

    # ---- Serialization ----

    def to_dict(self) -> dict[str, Any]:
        """Serialize with areas as an ordered list of ``[id, record]`` pairs."""
        return {
            "areas": [[area.id, area.to_dict()] for area in self.areas],
            "connections": [c.to_dict() for c in self.connections],
            "bands": self.generated_bands,
            "rolled_bands": self.rolled_bands,
            "draws": self.draws.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        d: dict[str, Any],
        draws: DrawSource | None = None,
        config: ExperimentConfig | None = None,
    ) -> WorldGraph:
        """Rebuild the keyed arena from the serialized pair list.

        The generation stream resumes from the stored counter unless *draws*
        is given.
        """
        if draws is None:
            draws = DrawSource.from_dict(d["draws"])
        world = cls(draws, config)
        for area_id, record in d["areas"]:
            area = Area.from_dict(record)
            if area.id != area_id:
                raise ValueError(f"Area key '{area_id}' does not match record '{area.id}'")
            world._add_area(area)
        for cd in d.get("connections", []):
            world._add_connection(Connection.from_dict(cd))
        world._bands = set(d.get("bands", {a.distance for a in world.areas}))
        world._rolled = set(d.get(
            "rolled_bands", {a.distance for a in world.areas if a.generated},
        ))
        return world
