"""
Repository interfaces for scoreboard data.
No business logic, only read/write operations.
"""
from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime
from typing import Any

from scoreboard.engine.errors import MalformedPersistedStateError
from scoreboard.engine.reconstructor import persisted_from_dict, persisted_to_dict
from scoreboard.engine.schemas import PersistedMatch
from scoreboard.models import MatchRecord, ScoreboardSettings


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _now() -> str:
    return datetime.utcnow().isoformat()


# ---------- MatchSessionRepository ----------


class MatchSessionRepository:
    """Persisted primitives of live match sessions. At most one active row."""

    def save(self, conn: sqlite3.Connection, persisted: PersistedMatch) -> None:
        """Upsert the session and mark it as the only active one."""
        now = _now()
        state_json = json.dumps(persisted_to_dict(persisted))
        conn.execute(
            "UPDATE match_sessions SET active = 0 WHERE active = 1 AND id != ?",
            (persisted.session_id,),
        )
        conn.execute(
            """INSERT INTO match_sessions (id, state_json, active, created_at, updated_at)
               VALUES (?, ?, 1, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   state_json = excluded.state_json,
                   active = 1,
                   updated_at = excluded.updated_at""",
            (persisted.session_id, state_json, now, now),
        )
        conn.commit()

    def get(self, conn: sqlite3.Connection, session_id: str) -> PersistedMatch | None:
        row = conn.execute(
            "SELECT state_json FROM match_sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            return None
        return _decode_state(row["state_json"])

    def get_active(self, conn: sqlite3.Connection) -> PersistedMatch | None:
        """Most recently updated active session, or None."""
        row = conn.execute(
            """SELECT id, state_json FROM match_sessions
               WHERE active = 1 ORDER BY updated_at DESC LIMIT 1"""
        ).fetchone()
        if row is None:
            return None
        return _decode_state(row["state_json"], session_id=row["id"])

    def get_active_id(self, conn: sqlite3.Connection) -> str | None:
        row = conn.execute(
            "SELECT id FROM match_sessions WHERE active = 1 ORDER BY updated_at DESC LIMIT 1"
        ).fetchone()
        return row["id"] if row else None

    def get_created_at(self, conn: sqlite3.Connection, session_id: str) -> datetime | None:
        row = conn.execute(
            "SELECT created_at FROM match_sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            return None
        return _parse_datetime(row["created_at"])

    def deactivate(self, conn: sqlite3.Connection, session_id: str) -> None:
        conn.execute(
            "UPDATE match_sessions SET active = 0, updated_at = ? WHERE id = ?",
            (_now(), session_id),
        )
        conn.commit()


def _decode_state(raw: str, session_id: str | None = None) -> PersistedMatch:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedPersistedStateError(
            f"Session {session_id or '?'} state is not valid JSON: {e}"
        ) from e
    return persisted_from_dict(data)


# ---------- MatchRecordRepository ----------


class MatchRecordRepository:
    """Finished matches. Insert once per session; read for history views."""

    def create(
        self,
        conn: sqlite3.Connection,
        session_id: str,
        player1_name: str,
        player2_name: str,
        winner: int,
        sets: list[list[int]],
        started_at: datetime | None = None,
        id: str | None = None,
    ) -> MatchRecord:
        rid = id or str(uuid.uuid4())
        now = _now()
        conn.execute(
            """INSERT INTO match_records (
                id, session_id, player1_name, player2_name, winner,
                sets_json, started_at, finished_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                rid,
                session_id,
                player1_name,
                player2_name,
                winner,
                json.dumps(sets),
                started_at.isoformat() if started_at else None,
                now,
            ),
        )
        conn.commit()
        return MatchRecord(
            id=rid,
            session_id=session_id,
            player1_name=player1_name,
            player2_name=player2_name,
            winner=winner,
            sets=[list(s) for s in sets],
            started_at=started_at,
            finished_at=datetime.fromisoformat(now),
        )

    def get(self, conn: sqlite3.Connection, record_id: str) -> MatchRecord | None:
        row = conn.execute(
            """SELECT id, session_id, player1_name, player2_name, winner,
                      sets_json, started_at, finished_at
               FROM match_records WHERE id = ?""",
            (record_id,),
        ).fetchone()
        return _row_to_record(row) if row else None

    def get_by_session(self, conn: sqlite3.Connection, session_id: str) -> MatchRecord | None:
        row = conn.execute(
            """SELECT id, session_id, player1_name, player2_name, winner,
                      sets_json, started_at, finished_at
               FROM match_records WHERE session_id = ?""",
            (session_id,),
        ).fetchone()
        return _row_to_record(row) if row else None

    def list_recent(self, conn: sqlite3.Connection, limit: int = 50) -> list[MatchRecord]:
        rows = conn.execute(
            """SELECT id, session_id, player1_name, player2_name, winner,
                      sets_json, started_at, finished_at
               FROM match_records ORDER BY finished_at DESC LIMIT ?""",
            (limit,),
        ).fetchall()
        return [_row_to_record(r) for r in rows]


def _row_to_record(row: sqlite3.Row) -> MatchRecord:
    return MatchRecord(
        id=row["id"],
        session_id=row["session_id"],
        player1_name=row["player1_name"],
        player2_name=row["player2_name"],
        winner=row["winner"],
        sets=json.loads(row["sets_json"]),
        started_at=_parse_datetime(row["started_at"]) if row["started_at"] else None,
        finished_at=_parse_datetime(row["finished_at"]),
    )


# ---------- SettingsRepository ----------

_BOOL_KEYS = {"change_sides", "change_sides_anim"}
_STR_KEYS = {"player1_name", "player2_name"}


class SettingsRepository:
    """Key/value display settings."""

    def get(self, conn: sqlite3.Connection, key: str) -> str | None:
        row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            """INSERT INTO settings (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
            (key, value),
        )
        conn.commit()

    def load(self, conn: sqlite3.Connection) -> ScoreboardSettings:
        """Settings with defaults for missing keys."""
        rows = conn.execute("SELECT key, value FROM settings").fetchall()
        values: dict[str, Any] = {}
        for r in rows:
            if r["key"] in _BOOL_KEYS:
                values[r["key"]] = r["value"] == "1"
            elif r["key"] in _STR_KEYS:
                values[r["key"]] = r["value"]
        return ScoreboardSettings(**values)

    def save(self, conn: sqlite3.Connection, settings: ScoreboardSettings) -> None:
        for key, value in settings.to_dict().items():
            if key in _BOOL_KEYS:
                value = "1" if value else "0"
            conn.execute(
                """INSERT INTO settings (key, value) VALUES (?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
                (key, value),
            )
        conn.commit()
