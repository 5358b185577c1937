"""
Session manager for exploration sessions with SQLite persistence.

Each session wraps an ExplorationEngine + DiscoveryMetricsCollector.
Sessions are auto-saved to SQLite after every mutation (create, action,
enroll, rename, reset).  On startup only the row columns are loaded; full state is
deserialized lazily on first access.
"""

from __future__ import annotations

import logging
import threading
import uuid
import zlib
from dataclasses import dataclass, field
from typing import Any

from frontier.api.persistence import SessionStore, StoredSession, build_state_blob, restore_engine
from frontier.core.config import ExperimentConfig
from frontier.core.engine import ExplorationEngine
from frontier.core.outcomes import Action, ActionOutcome, action_from_dict
from frontier.core.skills import SkillState
from frontier.metrics.collector import DiscoveryMetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class ExplorationSession:
    """A live exploration session."""

    id: str
    name: str
    config: ExperimentConfig
    engine: ExplorationEngine
    collector: DiscoveryMetricsCollector
    status: str = "active"  # active | completed
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def refresh_status(self) -> None:
        self.status = "completed" if self.engine.session_over else "active"


class SessionManager:
    """Manages multiple exploration sessions with optional SQLite persistence.

    Parameters
    ----------
    db_path : str | None
        Path to the SQLite database file.  ``None`` disables persistence
        (pure in-memory mode).  Default ``"data/frontier.db"``.
    """

    def __init__(self, db_path: str | None = "data/frontier.db"):
        self.sessions: dict[str, ExplorationSession] = {}

        # Sessions persisted but not yet loaded into memory.
        self._session_index: dict[str, StoredSession] = {}
        self._registry_lock = threading.Lock()

        self._store: SessionStore | None = None
        if db_path is not None:
            self._store = SessionStore(db_path)
            self._load_index()

    def _load_index(self) -> None:
        """Populate _session_index from the database (row columns only)."""
        if self._store is None:
            return
        for row in self._store.list_sessions():
            if row.id not in self.sessions:
                self._session_index[row.id] = row

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _persist_session(self, session: ExplorationSession) -> None:
        """Save a session to the database (best-effort).

        Callers hold ``session.lock``, so the saved blob is the state the
        mutation just produced and saves of one session land in order.
        """
        if self._store is None or not self._store.available:
            return
        # Deleted while this mutation was running.
        if self.sessions.get(session.id) is not session:
            return
        blob = build_state_blob(session.engine, session.collector)
        if self._store.save(session.id, session.name, session.status, session.engine, blob):
            self._session_index.pop(session.id, None)

    def _load_session_from_db(self, session_id: str) -> ExplorationSession | None:
        """Fully load a session from the database into memory."""
        if self._store is None:
            return None
        record = self._store.load(session_id)
        if record is None:
            return None
        row, blob = record
        try:
            engine, collector = restore_engine(blob)
        except (ValueError, KeyError, TypeError, zlib.error):
            logger.warning("Stored state of session %s is unreadable", session_id, exc_info=True)
            return None
        return ExplorationSession(
            id=row.id,
            name=row.name,
            config=engine.config,
            engine=engine,
            collector=collector,
            status=row.status,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_session(
        self,
        config: ExperimentConfig | None = None,
        name: str | None = None,
    ) -> ExplorationSession:
        """Create a new session; a missing seed is generated and recorded."""
        engine = ExplorationEngine(config or ExperimentConfig())
        session = ExplorationSession(
            id=uuid.uuid4().hex[:8],
            name=name or engine.config.experiment_name,
            config=engine.config,
            engine=engine,
            collector=DiscoveryMetricsCollector(engine.config),
        )
        session.refresh_status()
        with session.lock:
            with self._registry_lock:
                self.sessions[session.id] = session
            self._persist_session(session)
        logger.info("Created session %s (seed=%s)", session.id, engine.seed)
        return session

    def get_session(self, session_id: str) -> ExplorationSession:
        """Get a session by ID. Lazy-loads from DB if needed.

        Raises KeyError if not found in memory or database.
        """
        if session_id in self.sessions:
            return self.sessions[session_id]

        session = self._load_session_from_db(session_id)
        if session is None:
            raise KeyError(f"Session '{session_id}' not found")
        with self._registry_lock:
            session = self.sessions.setdefault(session_id, session)
        self._session_index.pop(session_id, None)
        return session

    def act(
        self,
        session_id: str,
        action: Action | dict[str, Any],
    ) -> tuple[ExplorationSession, ActionOutcome]:
        """Resolve one action in a session.

        Raises KeyError for unknown sessions and ValueError for malformed
        actions.  Gameplay failures come back inside the outcome.
        """
        if isinstance(action, dict):
            action = action_from_dict(action)
        session = self.get_session(session_id)
        with session.lock:
            outcome = session.engine.execute(action)
            session.collector.collect(outcome, session.engine)
            session.refresh_status()
            self._persist_session(session)
        return session, outcome

    def enroll(self, session_id: str) -> SkillState:
        """Enroll the session's player in the Exploration guild."""
        session = self.get_session(session_id)
        with session.lock:
            skill = session.engine.enroll()
            self._persist_session(session)
        return skill

    def rename_area(self, session_id: str, area_id: str, name: str) -> ExplorationSession:
        """Attach a display name to a known area.

        Raises KeyError if the player does not know the area.
        """
        session = self.get_session(session_id)
        with session.lock:
            if not session.engine.player.knows_area(area_id):
                raise KeyError(f"Area '{area_id}' not known")
            session.engine.world.rename_area(area_id, name)
            self._persist_session(session)
        return session

    def reset_session(self, session_id: str) -> ExplorationSession:
        """Restart a session from tick 0 with the same config and seed."""
        session = self.get_session(session_id)
        with session.lock:
            session.engine = ExplorationEngine(session.config)
            session.collector = DiscoveryMetricsCollector(session.config)
            session.refresh_status()
            self._persist_session(session)
        logger.info("Reset session %s", session_id)
        return session

    def delete_session(self, session_id: str) -> None:
        """Delete a session from memory and database."""
        with self._registry_lock:
            in_memory = self.sessions.pop(session_id, None) is not None
        in_index = self._session_index.pop(session_id, None) is not None
        in_db = self._store is not None and self._store.delete(session_id)

        if not in_memory and not in_index and not in_db:
            raise KeyError(f"Session '{session_id}' not found")

    def list_sessions(self) -> list[dict[str, Any]]:
        """List all sessions as summary dicts (in-memory + persisted)."""
        result = [session_summary(s) for s in self.sessions.values()]
        result.extend(
            row.summary() for sid, row in self._session_index.items()
            if sid not in self.sessions
        )
        return result

    def close(self) -> None:
        """Close the persistence store."""
        if self._store is not None:
            self._store.close()


def session_summary(session: ExplorationSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "name": session.name,
        "status": session.status,
        "current_tick": session.engine.clock.current_tick,
        "session_ticks": session.config.session_ticks,
        "known_area_count": len(session.engine.player.known_area_ids),
    }
