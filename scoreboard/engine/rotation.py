"""
Service rotation: who serves and how far into their service turn they are.
Pure function of (points played in set, final set?, set starting server, deuce?);
live play, undo and resume all call it so they agree by construction.
"""
from __future__ import annotations

from .schemas import Player, ServiceState


def is_single_point_rotation(is_final_set: bool, deuce: bool) -> bool:
    """Service passes after every point in the final set and from deuce onwards."""
    return is_final_set or deuce


def compute_service(
    total_points: int,
    is_final_set: bool,
    set_starting_server: Player,
    deuce: bool = False,
) -> ServiceState:
    """
    Return the current server and service-turn position.
    Pair rotation: owner flips every 2 points, turn = (total % 2) + 1.
    Single rotation: owner flips every point, turn is always 1.
    `deuce` comes from the set counters (see set_scoreboard.is_deuce).
    """
    if total_points < 0:
        raise ValueError(f"total_points must be >= 0, got {total_points}")
    if is_single_point_rotation(is_final_set, deuce):
        server = set_starting_server if total_points % 2 == 0 else set_starting_server.other
        return ServiceState(server=server, turn=1, remaining=1)
    server = set_starting_server if (total_points // 2) % 2 == 0 else set_starting_server.other
    turn = (total_points % 2) + 1
    return ServiceState(server=server, turn=turn, remaining=3 - turn)


def set_starting_server(match_starting_server: Player, completed_sets: int) -> Player:
    """Starting server alternates with every completed set."""
    if completed_sets % 2 == 0:
        return match_starting_server
    return match_starting_server.other
