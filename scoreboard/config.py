"""
Configuration: environment-driven settings and scoring rule defaults.
"""
from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ---------- Scoring rules ----------
SETS_TO_WIN = 3
POINTS_TO_WIN_SET = 11
# House rule: the deciding set is played to 6 (win by 2).
POINTS_TO_WIN_FINAL_SET = 6
WIN_BY = 2
DEUCE_THRESHOLD = 10
FINAL_SET_DEUCE_THRESHOLD = 5
SET_SLOTS = 5

# ---------- Display defaults ----------
DEFAULT_PLAYER1_NAME = "Player 1"
DEFAULT_PLAYER2_NAME = "Player 2"
DEFAULT_CHANGE_SIDES = True
DEFAULT_CHANGE_SIDES_ANIM = True


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------- Runtime ----------
DB_PATH = Path(os.environ.get("SCOREBOARD_DB_PATH", str(PROJECT_ROOT / "data" / "scoreboard.db")))
TELEMETRY_INTERVAL_SECONDS = _float_env("SCOREBOARD_TELEMETRY_INTERVAL", 0.5)
LOG_LEVEL = os.environ.get("SCOREBOARD_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get(
        "SCOREBOARD_CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    if o.strip()
]
