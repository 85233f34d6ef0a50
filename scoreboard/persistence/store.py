"""
SQLite-backed match store: the persistence adapter MatchService pushes to
after every command. Opens a short-lived connection per call so it can be used
from any thread.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from scoreboard.engine.schemas import MatchState, PersistedMatch
from scoreboard.models import MatchRecord, ScoreboardSettings

from .db import get_connection, init_db
from .repositories import MatchRecordRepository, MatchSessionRepository, SettingsRepository

logger = logging.getLogger(__name__)


class SqliteMatchStore:
    def __init__(self, db_path: str | Path | None = None) -> None:
        self.db_path = Path(db_path) if db_path else None
        self._sessions = MatchSessionRepository()
        self._records = MatchRecordRepository()
        self._settings = SettingsRepository()
        init_db(self.db_path)

    @contextmanager
    def _conn(self) -> Generator:
        conn = get_connection(self.db_path)
        try:
            yield conn
        finally:
            conn.close()

    # ---------- Sessions ----------

    def save_session(self, persisted: PersistedMatch) -> None:
        with self._conn() as conn:
            self._sessions.save(conn, persisted)

    def load_active_session(self) -> PersistedMatch | None:
        """Raises MalformedPersistedStateError if the stored row cannot be trusted."""
        with self._conn() as conn:
            return self._sessions.get_active(conn)

    def active_session_id(self) -> str | None:
        with self._conn() as conn:
            return self._sessions.get_active_id(conn)

    def deactivate_session(self, session_id: str) -> None:
        with self._conn() as conn:
            self._sessions.deactivate(conn, session_id)

    # ---------- History ----------

    def archive(self, state: MatchState, settings: ScoreboardSettings) -> MatchRecord:
        """Mirror a finished match. Idempotent per session."""
        if state.winner is None:
            raise ValueError(f"Session {state.session_id} has no winner yet")
        with self._conn() as conn:
            existing = self._records.get_by_session(conn, state.session_id)
            if existing is not None:
                return existing
            record = self._records.create(
                conn,
                session_id=state.session_id,
                player1_name=settings.player1_name,
                player2_name=settings.player2_name,
                winner=int(state.winner),
                sets=[list(r.as_tuple()) for r in state.set_results],
                started_at=self._sessions.get_created_at(conn, state.session_id),
            )
        logger.info("Archived match %s as record %s", state.session_id, record.id)
        return record

    def list_records(self, limit: int = 50) -> list[MatchRecord]:
        with self._conn() as conn:
            return self._records.list_recent(conn, limit=limit)

    def get_record(self, record_id: str) -> MatchRecord | None:
        with self._conn() as conn:
            return self._records.get(conn, record_id)

    # ---------- Settings ----------

    def load_settings(self) -> ScoreboardSettings:
        with self._conn() as conn:
            return self._settings.load(conn)

    def save_settings(self, settings: ScoreboardSettings) -> None:
        with self._conn() as conn:
            self._settings.save(conn, settings)
