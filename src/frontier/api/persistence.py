"""
SQLite persistence for exploration sessions.

A session is saved as one row.  The columns hold what a listing needs (tick,
budget, level, knowledge counts, draw counter, last action), and the engine
and metrics state are kept as a zlib-compressed JSON blob.  Blobs are only
inflated when a session is opened.

A database that cannot be opened or written is logged and otherwise
ignored; the application keeps running on its in-memory sessions.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import zlib
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import numpy as np

from frontier.core.engine import ExplorationEngine
from frontier.metrics.collector import DiscoveryMetricsCollector

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------

def _json_fallback(obj: Any) -> Any:
    """Handle numpy types, enums and sets."""
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


# ---------------------------------------------------------------------------
# State blob compress / decompress
# ---------------------------------------------------------------------------

def compress_state(state: dict[str, Any]) -> bytes:
    """Serialize state dict to zlib-compressed JSON bytes."""
    json_bytes = json.dumps(state, default=_json_fallback).encode("utf-8")
    return zlib.compress(json_bytes, level=6)


def decompress_state(blob: bytes) -> dict[str, Any]:
    """Decompress zlib blob and parse JSON."""
    json_bytes = zlib.decompress(blob)
    return json.loads(json_bytes.decode("utf-8"))


def build_state_blob(
    engine: ExplorationEngine,
    collector: DiscoveryMetricsCollector | None = None,
) -> bytes:
    """Build and compress the full session state blob."""
    state: dict[str, Any] = {"engine": engine.to_dict()}
    if collector is not None:
        state["metrics"] = collector.to_dict()
    return compress_state(state)


def restore_engine(
    blob: bytes,
) -> tuple[ExplorationEngine, DiscoveryMetricsCollector]:
    """Decompress a blob into a live engine and its metrics collector.

    The world's areas come back from their ``[id, record]`` pair list and the
    draw counter resumes where it was saved.
    """
    raw = decompress_state(blob)
    engine = ExplorationEngine.from_dict(raw["engine"])
    if "metrics" in raw:
        collector = DiscoveryMetricsCollector.from_dict(engine.config, raw["metrics"])
    else:
        collector = DiscoveryMetricsCollector(engine.config)
    return engine, collector


# ---------------------------------------------------------------------------
# SQLite SessionStore
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS exploration_sessions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    status TEXT NOT NULL,
    seed TEXT NOT NULL,
    current_tick INTEGER NOT NULL,
    session_remaining_ticks INTEGER NOT NULL,
    exploration_level INTEGER NOT NULL,
    known_areas INTEGER NOT NULL,
    known_locations INTEGER NOT NULL,
    known_connections INTEGER NOT NULL,
    draw_counter INTEGER NOT NULL,
    last_action TEXT,
    last_failure TEXT,
    saved_at TEXT NOT NULL,
    state_blob BLOB NOT NULL
);
"""

_ROW_COLUMNS = (
    "id", "name", "status", "seed", "current_tick", "session_remaining_ticks",
    "exploration_level", "known_areas", "known_locations", "known_connections",
    "draw_counter", "last_action", "last_failure", "saved_at",
)


@dataclass(frozen=True)
class StoredSession:
    """Listing columns of a persisted session; the state blob stays on disk."""

    id: str
    name: str
    status: str
    seed: str
    current_tick: int
    session_remaining_ticks: int
    exploration_level: int
    known_areas: int
    known_locations: int
    known_connections: int
    draw_counter: int
    last_action: str | None
    last_failure: str | None
    saved_at: str

    @property
    def session_ticks(self) -> int:
        # The clock only moves ticks from remaining to current.
        return self.current_tick + self.session_remaining_ticks

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> StoredSession:
        return cls(**{k: row[k] for k in _ROW_COLUMNS})

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "current_tick": self.current_tick,
            "session_ticks": self.session_ticks,
            "known_area_count": self.known_areas,
        }


def _engine_columns(engine: ExplorationEngine) -> dict[str, Any]:
    last = engine.history[-1] if engine.history else None
    return {
        "seed": str(engine.seed),
        "current_tick": engine.clock.current_tick,
        "session_remaining_ticks": engine.clock.session_remaining_ticks,
        "exploration_level": engine.exploration_skill.level,
        "known_areas": len(engine.player.known_area_ids),
        "known_locations": len(engine.player.known_location_ids),
        "known_connections": len(engine.player.known_connection_ids),
        "draw_counter": engine.draws.counter,
        "last_action": last.action_type.value if last else None,
        "last_failure": last.failure_code.value if last and last.failure_code else None,
    }


class SessionStore:
    """SQLite-backed storage for exploration sessions.

    One row per session: the engine's headline numbers as columns, so
    sessions can be listed without inflating their state, plus the state
    blob.  A store-level lock serializes statements on the shared
    connection.  Any SQLite error is logged and the store behaves as if
    the row were absent, leaving the sessions in memory authoritative.
    """

    def __init__(self, db_path: str = "data/frontier.db"):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None
        try:
            conn = sqlite3.connect(db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                conn.execute(_SCHEMA)
            self._conn = conn
        except sqlite3.Error:
            logger.warning(
                "Cannot open session database %s; sessions will live in memory only",
                db_path, exc_info=True,
            )

    @property
    def available(self) -> bool:
        return self._conn is not None

    def _run(self, what: str, sql: str, params: tuple = ()) -> tuple[list[sqlite3.Row], int] | None:
        """Run one statement in its own transaction.

        Returns ``(rows, rowcount)``, or ``None`` when the store is closed
        or SQLite refused the statement.
        """
        with self._lock:
            if self._conn is None:
                return None
            try:
                with self._conn:
                    cur = self._conn.execute(sql, params)
                    return cur.fetchall(), cur.rowcount
            except sqlite3.Error:
                logger.warning("Session database could not %s", what, exc_info=True)
                return None

    # ---- Writes ----

    def save(self, session_id: str, name: str, status: str, engine: ExplorationEngine, state_blob: bytes) -> bool:
        """Upsert one session row; columns are read off *engine*."""
        columns = {
            "id": session_id,
            "name": name,
            "status": status,
            **_engine_columns(engine),
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "state_blob": state_blob,
        }
        names = ", ".join(columns)
        marks = ", ".join("?" for _ in columns)
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != "id")
        result = self._run(
            f"save session {session_id}",
            f"INSERT INTO exploration_sessions ({names}) VALUES ({marks}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            tuple(columns.values()),
        )
        return result is not None

    def delete(self, session_id: str) -> bool:
        """Remove a session row.  True if a row was deleted."""
        result = self._run(
            f"delete session {session_id}",
            "DELETE FROM exploration_sessions WHERE id = ?",
            (session_id,),
        )
        return result is not None and result[1] > 0

    # ---- Reads ----

    def list_sessions(self) -> list[StoredSession]:
        """All persisted sessions, most recently saved first."""
        result = self._run(
            "list sessions",
            f"SELECT {', '.join(_ROW_COLUMNS)} FROM exploration_sessions ORDER BY saved_at DESC",
        )
        return [StoredSession.from_row(r) for r in result[0]] if result else []

    def load(self, session_id: str) -> tuple[StoredSession, bytes] | None:
        """Return ``(row, state_blob)`` or ``None`` if the session is absent."""
        result = self._run(
            f"load session {session_id}",
            f"SELECT {', '.join(_ROW_COLUMNS)}, state_blob FROM exploration_sessions WHERE id = ?",
            (session_id,),
        )
        if not result or not result[0]:
            return None
        row = result[0][0]
        return StoredSession.from_row(row), row["state_blob"]

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
