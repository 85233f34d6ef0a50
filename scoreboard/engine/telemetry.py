"""
Telemetry projection: the read-only view pushed to scoreboards and remote listeners.
Display-relative (left/right) except the set list, which is stored absolute and
redisplayed per the current swap state.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from scoreboard import config

from .schemas import MatchState, MatchStatus, Player, side_of_player

EMPTY_SET_SLOT = "- : -"


@dataclass(frozen=True)
class TelemetryProjection:
    left_name: str
    right_name: str
    left_points: int
    right_points: int
    left_sets: int
    right_sets: int
    set_scores: tuple[str, ...]
    set_number: int
    server_side: str | None
    second_serve: bool
    match_active: bool
    winner: int | None
    change_sides: bool
    change_sides_anim: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "left_name": self.left_name,
            "right_name": self.right_name,
            "left_points": self.left_points,
            "right_points": self.right_points,
            "left_sets": self.left_sets,
            "right_sets": self.right_sets,
            "set_scores": list(self.set_scores),
            "set_number": self.set_number,
            "server_side": self.server_side,
            "second_serve": self.second_serve,
            "match_active": self.match_active,
            "winner": self.winner,
            "change_sides": self.change_sides,
            "change_sides_anim": self.change_sides_anim,
        }


def project(
    state: MatchState,
    player1_name: str = config.DEFAULT_PLAYER1_NAME,
    player2_name: str = config.DEFAULT_PLAYER2_NAME,
    change_sides_anim: bool = config.DEFAULT_CHANGE_SIDES_ANIM,
    slots: int = config.SET_SLOTS,
) -> TelemetryProjection:
    """Build the display projection of a MatchState."""
    swapped = state.is_side_swapped
    left = Player.TWO if swapped else Player.ONE
    right = left.other
    names = {Player.ONE: player1_name, Player.TWO: player2_name}

    scores: list[str] = []
    for r in state.set_results[:slots]:
        if swapped:
            scores.append(f"{r.player2} : {r.player1}")
        else:
            scores.append(f"{r.player1} : {r.player2}")
    scores.extend([EMPTY_SET_SLOT] * (slots - len(scores)))

    server_side = None
    second_serve = False
    if state.service is not None:
        server_side = side_of_player(state.service.server, swapped).value
        second_serve = state.service.turn == 2

    sets = {Player.ONE: state.sets_won[0], Player.TWO: state.sets_won[1]}
    return TelemetryProjection(
        left_name=names[left],
        right_name=names[right],
        left_points=state.points_for(left),
        right_points=state.points_for(right),
        left_sets=sets[left],
        right_sets=sets[right],
        set_scores=tuple(scores),
        set_number=state.set_number,
        server_side=server_side,
        second_serve=second_serve,
        match_active=state.status is MatchStatus.IN_PROGRESS,
        winner=int(state.winner) if state.winner else None,
        change_sides=state.change_sides,
        change_sides_anim=change_sides_anim,
    )

