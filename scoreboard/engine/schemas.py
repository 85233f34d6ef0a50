"""
Shared types for the match scoring engine.
Point logs, set results, rules and the immutable MatchState snapshot
emitted after every command.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Union

from scoreboard import config


class Player(IntEnum):
    """Absolute player identity. Display names live outside the engine."""
    ONE = 1
    TWO = 2

    @property
    def other(self) -> "Player":
        return Player.TWO if self is Player.ONE else Player.ONE


class Side(str, Enum):
    """Display-relative side of the score display."""
    LEFT = "left"
    RIGHT = "right"


class MatchStatus(str, Enum):
    """Engine lifecycle: awaiting_first_server → in_progress → complete."""
    AWAITING_FIRST_SERVER = "awaiting_first_server"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


def player_on_side(side: Side, swapped: bool) -> Player:
    """Map a display side to the absolute player standing there."""
    if side is Side.LEFT:
        return Player.TWO if swapped else Player.ONE
    return Player.ONE if swapped else Player.TWO


def side_of_player(player: Player, swapped: bool) -> Side:
    if player is Player.ONE:
        return Side.RIGHT if swapped else Side.LEFT
    return Side.LEFT if swapped else Side.RIGHT


@dataclass(frozen=True)
class PointEvent:
    """One rallied point, won by `winner`."""
    winner: Player


@dataclass(frozen=True)
class SetResult:
    """Final score of a finished set in absolute player terms."""
    player1: int
    player2: int

    @property
    def winner(self) -> Player:
        return Player.ONE if self.player1 > self.player2 else Player.TWO

    def points_for(self, player: Player) -> int:
        return self.player1 if player is Player.ONE else self.player2

    def as_tuple(self) -> tuple[int, int]:
        return (self.player1, self.player2)


@dataclass(frozen=True)
class CompletedSetSnapshot:
    """A frozen set result plus the point sequence that produced it (for undo)."""
    result: SetResult
    points: tuple[PointEvent, ...]


@dataclass(frozen=True)
class MatchRules:
    """
    Scoring rules. Defaults follow the house rule of a short deciding set
    (first to 6); official() gives 11 points in every set.
    """
    sets_to_win: int = config.SETS_TO_WIN
    points_to_win_set: int = config.POINTS_TO_WIN_SET
    points_to_win_final_set: int = config.POINTS_TO_WIN_FINAL_SET
    win_by: int = config.WIN_BY
    deuce_threshold: int = config.DEUCE_THRESHOLD
    final_set_deuce_threshold: int = config.FINAL_SET_DEUCE_THRESHOLD

    @classmethod
    def official(cls) -> "MatchRules":
        return cls(points_to_win_final_set=11, final_set_deuce_threshold=10)

    @property
    def max_sets(self) -> int:
        return 2 * self.sets_to_win - 1

    def is_final_set(self, completed_sets: int) -> bool:
        return completed_sets == self.max_sets - 1

    def win_points(self, final_set: bool) -> int:
        return self.points_to_win_final_set if final_set else self.points_to_win_set

    def deuce_at(self, final_set: bool) -> int:
        return self.final_set_deuce_threshold if final_set else self.deuce_threshold


@dataclass(frozen=True)
class ServiceState:
    """
    Who serves and where they are in their service turn.
    turn is the 1-based index within the turn; remaining counts the serves
    left including the current one (2 → 1 → switch).
    """
    server: Player
    turn: int
    remaining: int


# ---------- Commands ----------
@dataclass(frozen=True)
class ChooseFirstServer:
    player: Player


@dataclass(frozen=True)
class AddPoint:
    side: Side


@dataclass(frozen=True)
class RemovePoint:
    pass


Command = Union[ChooseFirstServer, AddPoint, RemovePoint]


# ---------- Snapshot ----------
@dataclass(frozen=True)
class MatchState:
    """
    Immutable snapshot of a match. Primitives (point logs, completed sets,
    starting server) are authoritative; every other field is derived by
    rehydrate() and never persisted.
    """
    session_id: str
    match_starting_server: Player | None
    current_set_points: tuple[PointEvent, ...]
    completed_sets: tuple[CompletedSetSnapshot, ...]
    winner: Player | None
    rules: MatchRules
    change_sides: bool
    # Derived
    status: MatchStatus
    score: tuple[int, int]  # (player1, player2) in the current set
    sets_won: tuple[int, int]
    set_starting_server: Player | None
    service: ServiceState | None
    is_final_set: bool
    is_deuce: bool
    is_side_swapped: bool

    @property
    def set_number(self) -> int:
        """1-based number of the set in progress (or of the last set once complete)."""
        if self.status is MatchStatus.COMPLETE:
            return len(self.completed_sets)
        return len(self.completed_sets) + 1

    @property
    def set_results(self) -> list[SetResult]:
        return [s.result for s in self.completed_sets]

    def points_for(self, player: Player) -> int:
        return self.score[0] if player is Player.ONE else self.score[1]

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "session_id": self.session_id,
            "status": self.status.value,
            "match_starting_server": int(self.match_starting_server) if self.match_starting_server else None,
            "set_number": self.set_number,
            "score": list(self.score),
            "sets_won": list(self.sets_won),
            "set_results": [list(r.as_tuple()) for r in self.set_results],
            "current_set_points": [int(p.winner) for p in self.current_set_points],
            "winner": int(self.winner) if self.winner else None,
            "is_final_set": self.is_final_set,
            "is_deuce": self.is_deuce,
            "is_side_swapped": self.is_side_swapped,
        }
        if self.service is not None:
            d["service"] = {
                "server": int(self.service.server),
                "turn": self.service.turn,
                "remaining": self.service.remaining,
            }
        else:
            d["service"] = None
        return d


@dataclass
class PersistedMatch:
    """
    The only state that survives a restart: primitives plus the opaque session token.
    Layout written by the persistence adapter; no derived field is stored.
    """
    session_id: str
    match_starting_server: Player | None = None
    current_set_points: list[PointEvent] = field(default_factory=list)
    completed_sets: list[CompletedSetSnapshot] = field(default_factory=list)
