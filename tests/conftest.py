"""
Shared test configuration.

Sets FRONTIER_DB_PATH to a temporary file for each test session to
prevent SQLite database accumulation and cross-test contamination, and
provides helpers for building worlds and scripting draws.
"""

import os

import pytest

from frontier.core.rng import DrawSource
from frontier.core.world import Area, WorldGraph


@pytest.fixture(autouse=True, scope="session")
def _isolate_db(tmp_path_factory):
    """Use a temp DB path for all tests to avoid polluting the project dir."""
    tmp_dir = tmp_path_factory.mktemp("frontier_test_data")
    db_path = str(tmp_dir / "test_frontier.db")
    os.environ["FRONTIER_DB_PATH"] = db_path
    yield
    os.environ.pop("FRONTIER_DB_PATH", None)


class ScriptedDraws(DrawSource):
    """Draw source that replays fixed values; the last value repeats."""

    def __init__(self, values, seed="scripted"):
        super().__init__(seed)
        self.values = list(values)

    def value_at(self, counter: int) -> float:
        if counter < len(self.values):
            return self.values[counter]
        return self.values[-1]


def build_world(areas, connections, draws=None) -> WorldGraph:
    """Build a world from ``(id, distance, index)`` and ``(from, to, mult)`` tuples."""
    records = [
        [aid, Area(id=aid, distance=d, index_in_distance=i, generated=True).to_dict()]
        for aid, d, i in areas
    ]
    conns = [
        {"from_area_id": a, "to_area_id": b, "travel_time_multiplier": m}
        for a, b, m in connections
    ]
    return WorldGraph.from_dict(
        {"areas": records, "connections": conns},
        draws or DrawSource(0),
    )


@pytest.fixture
def scripted_draws():
    return ScriptedDraws


@pytest.fixture
def make_world():
    return build_world
