"""
Set scoreboard: the two point counters and point log of the set in progress.
"""
from __future__ import annotations

from typing import Iterable

from .errors import EmptyHistoryError
from .schemas import Player, PointEvent, SetResult


class SetScoreboard:
    """
    Tracks points for the set in progress. Counters are always the tally of
    the log; completion detection never resets them (the engine does that).
    """

    def __init__(self, points: Iterable[PointEvent] = ()) -> None:
        self._points: list[PointEvent] = []
        self._p1 = 0
        self._p2 = 0
        for p in points:
            self.add_point(p.winner)

    @property
    def points(self) -> tuple[PointEvent, ...]:
        return tuple(self._points)

    @property
    def total(self) -> int:
        return len(self._points)

    def score(self) -> tuple[int, int]:
        return (self._p1, self._p2)

    def add_point(self, player: Player) -> None:
        self._points.append(PointEvent(winner=player))
        if player is Player.ONE:
            self._p1 += 1
        else:
            self._p2 += 1

    def remove_last_point(self) -> PointEvent:
        if not self._points:
            raise EmptyHistoryError("No points in the current set")
        last = self._points.pop()
        if last.winner is Player.ONE:
            self._p1 -= 1
        else:
            self._p2 -= 1
        return last

    def is_complete(self, win_points: int, win_by: int = 2) -> bool:
        return is_set_complete(self._p1, self._p2, win_points, win_by)

    def is_deuce(self, deuce_threshold: int) -> bool:
        return is_deuce(self._p1, self._p2, deuce_threshold)

    def result(self) -> SetResult:
        return SetResult(player1=self._p1, player2=self._p2)

    def reset(self) -> None:
        self._points.clear()
        self._p1 = 0
        self._p2 = 0


def is_set_complete(p1: int, p2: int, win_points: int, win_by: int = 2) -> bool:
    """Leader has at least win_points and leads by at least win_by. No score cap."""
    lead = max(p1, p2)
    return lead >= win_points and abs(p1 - p2) >= win_by


def is_deuce(p1: int, p2: int, deuce_threshold: int) -> bool:
    """Both counters at or past the threshold; service then alternates every point."""
    return p1 >= deuce_threshold and p2 >= deuce_threshold
