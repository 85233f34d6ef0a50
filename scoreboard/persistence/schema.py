"""
SQLite schema for scoreboard entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def match_sessions_schema() -> str:
    """One row per match session. state_json holds primitives only (see PersistedMatch)."""
    return """
    CREATE TABLE IF NOT EXISTS match_sessions (
        id TEXT PRIMARY KEY,
        state_json TEXT NOT NULL,
        active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_match_sessions_active ON match_sessions(active, updated_at);
    """


def match_records_schema() -> str:
    """Finished matches mirrored for history. sets_json: [[p1, p2], ...] absolute."""
    return """
    CREATE TABLE IF NOT EXISTS match_records (
        id TEXT PRIMARY KEY,
        session_id TEXT NOT NULL UNIQUE,
        player1_name TEXT NOT NULL,
        player2_name TEXT NOT NULL,
        winner INTEGER NOT NULL,
        sets_json TEXT NOT NULL,
        started_at TEXT,
        finished_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_match_records_finished_at ON match_records(finished_at);
    """


def settings_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution."""
    return "\n".join([
        match_sessions_schema(),
        match_records_schema(),
        settings_schema(),
    ])
