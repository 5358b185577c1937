"""
Session clock and the player's exploration knowledge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _reverse_id(connection_id: str) -> str:
    from_id, sep, to_id = connection_id.partition("->")
    return f"{to_id}->{from_id}" if sep else connection_id


@dataclass
class SessionClock:
    """Ticks elapsed and ticks left in the session."""

    current_tick: int = 0
    session_remaining_ticks: int = 0

    @property
    def exhausted(self) -> bool:
        return self.session_remaining_ticks <= 0

    def consume(self, ticks: int) -> int:
        """Spend *ticks*, capped at what remains; returns ticks actually spent."""
        if ticks < 0:
            raise ValueError(f"Cannot consume negative ticks ({ticks})")
        spent = min(ticks, max(self.session_remaining_ticks, 0))
        self.current_tick += spent
        self.session_remaining_ticks -= spent
        return spent

    def to_dict(self) -> dict[str, int]:
        return {
            "current_tick": self.current_tick,
            "session_remaining_ticks": self.session_remaining_ticks,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SessionClock:
        return cls(
            current_tick=d.get("current_tick", 0),
            session_remaining_ticks=d.get("session_remaining_ticks", 0),
        )


@dataclass
class PlayerExplorationState:
    """Where the player is and what they have discovered.

    The ``known_*`` lists keep discovery order; the parallel sets back the
    membership tests.  Nothing is ever removed: the ``learn_*`` methods are
    the only mutators and they only append.

    Attributes:
        current_area_id: Area the player stands in.
        known_area_ids: Areas in discovery order.
        known_location_ids: Locations in discovery order.
        known_connection_ids: Connection ids in discovery order, as
            discovered (either direction may be stored).
        total_luck_delta: Sum of per-discovery luck deltas.
        current_streak: Positive for consecutive lucky discoveries,
            negative for consecutive unlucky ones.
    """

    current_area_id: str
    known_area_ids: list[str] = field(default_factory=list)
    known_location_ids: list[str] = field(default_factory=list)
    known_connection_ids: list[str] = field(default_factory=list)
    total_luck_delta: int = 0
    current_streak: int = 0

    def __post_init__(self) -> None:
        self._areas: set[str] = set(self.known_area_ids)
        self._locations: set[str] = set(self.known_location_ids)
        self._connections: set[str] = set(self.known_connection_ids)

    @classmethod
    def starting_at(cls, area_id: str) -> PlayerExplorationState:
        return cls(current_area_id=area_id, known_area_ids=[area_id])

    # ---- Queries ----

    def knows_area(self, area_id: str) -> bool:
        return area_id in self._areas

    def knows_location(self, location_id: str) -> bool:
        return location_id in self._locations

    def knows_connection(self, connection_id: str) -> bool:
        """Direction-agnostic: ``a->b`` is known if either id was learned."""
        return (
            connection_id in self._connections
            or _reverse_id(connection_id) in self._connections
        )

    # ---- Mutators (append-only) ----

    def learn_area(self, area_id: str) -> bool:
        if area_id in self._areas:
            return False
        self._areas.add(area_id)
        self.known_area_ids.append(area_id)
        return True

    def learn_location(self, location_id: str) -> bool:
        if location_id in self._locations:
            return False
        self._locations.add(location_id)
        self.known_location_ids.append(location_id)
        return True

    def learn_connection(self, connection_id: str) -> bool:
        if self.knows_connection(connection_id):
            return False
        self._connections.add(connection_id)
        self.known_connection_ids.append(connection_id)
        return True

    def move_to(self, area_id: str) -> None:
        if not self.knows_area(area_id):
            raise ValueError(f"Cannot move to unknown area '{area_id}'")
        self.current_area_id = area_id

    def record_luck(self, luck_delta: int) -> None:
        """Add a discovery's luck delta and update the streak.

        Positive deltas extend a lucky streak or start one at +1; negative
        deltas mirror that; zero leaves the streak alone.
        """
        self.total_luck_delta += luck_delta
        if luck_delta > 0:
            self.current_streak = self.current_streak + 1 if self.current_streak > 0 else 1
        elif luck_delta < 0:
            self.current_streak = self.current_streak - 1 if self.current_streak < 0 else -1

    # ---- Serialization ----

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_area_id": self.current_area_id,
            "known_area_ids": list(self.known_area_ids),
            "known_location_ids": list(self.known_location_ids),
            "known_connection_ids": list(self.known_connection_ids),
            "total_luck_delta": self.total_luck_delta,
            "current_streak": self.current_streak,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PlayerExplorationState:
        return cls(
            current_area_id=d["current_area_id"],
            known_area_ids=list(d.get("known_area_ids", [])),
            known_location_ids=list(d.get("known_location_ids", [])),
            known_connection_ids=list(d.get("known_connection_ids", [])),
            total_luck_delta=d.get("total_luck_delta", 0),
            current_streak=d.get("current_streak", 0),
        )
