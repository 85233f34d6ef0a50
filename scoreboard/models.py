"""
Data models for the scoreboard backend.
Domain records only; no persistence or API logic. The live match itself is
owned by scoreboard.engine; these are the display settings and the archived
record of a finished match.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from scoreboard import config


# ---------- Settings ----------
@dataclass
class ScoreboardSettings:
    """
    Display settings, stored as key/value rows.
    change_sides: swap players' display sides after every odd set.
    change_sides_anim: echo only; the engine never reads it.
    """
    change_sides: bool = config.DEFAULT_CHANGE_SIDES
    change_sides_anim: bool = config.DEFAULT_CHANGE_SIDES_ANIM
    player1_name: str = config.DEFAULT_PLAYER1_NAME
    player2_name: str = config.DEFAULT_PLAYER2_NAME

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_sides": self.change_sides,
            "change_sides_anim": self.change_sides_anim,
            "player1_name": self.player1_name,
            "player2_name": self.player2_name,
        }


# ---------- MatchRecord ----------
@dataclass
class MatchRecord:
    """
    A finished match mirrored into the relational store.
    sets: list of [player1_points, player2_points] in absolute player terms.
    Immutable after creation.
    """
    id: str
    session_id: str
    player1_name: str
    player2_name: str
    winner: int
    sets: list[list[int]]
    started_at: datetime | None
    finished_at: datetime

    @property
    def sets_won(self) -> tuple[int, int]:
        p1 = sum(1 for a, b in self.sets if a > b)
        return (p1, len(self.sets) - p1)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "session_id": self.session_id,
            "player1_name": self.player1_name,
            "player2_name": self.player2_name,
            "winner": self.winner,
            "sets": [list(s) for s in self.sets],
            "sets_won": list(self.sets_won),
            "finished_at": self.finished_at.isoformat(),
        }
        if self.started_at is not None:
            d["started_at"] = self.started_at.isoformat()
        return d
