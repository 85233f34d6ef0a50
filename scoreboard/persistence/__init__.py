"""
Persistence layer for the scoreboard.
No scoring logic, only read/write interfaces.
"""
from .db import get_connection, init_db, set_db_path, get_db_path
from .repositories import (
    MatchSessionRepository,
    MatchRecordRepository,
    SettingsRepository,
)
from .store import SqliteMatchStore

__all__ = [
    "get_connection",
    "init_db",
    "set_db_path",
    "get_db_path",
    "MatchSessionRepository",
    "MatchRecordRepository",
    "SettingsRepository",
    "SqliteMatchStore",
]
