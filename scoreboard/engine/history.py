"""
Match history: completed sets (results + point logs) in order.
"""
from __future__ import annotations

from typing import Iterable

from .schemas import CompletedSetSnapshot, Player, PointEvent, SetResult


class MatchHistory:
    """Ordered log of finished sets. Results are frozen; only pop() reopens one."""

    def __init__(self, completed: Iterable[CompletedSetSnapshot] = ()) -> None:
        self._completed: list[CompletedSetSnapshot] = list(completed)

    def __len__(self) -> int:
        return len(self._completed)

    @property
    def completed(self) -> tuple[CompletedSetSnapshot, ...]:
        return tuple(self._completed)

    def results(self) -> list[SetResult]:
        return [c.result for c in self._completed]

    def push(self, result: SetResult, points: Iterable[PointEvent]) -> CompletedSetSnapshot:
        snap = CompletedSetSnapshot(result=result, points=tuple(points))
        self._completed.append(snap)
        return snap

    def pop(self) -> CompletedSetSnapshot:
        return self._completed.pop()

    def sets_won(self, player: Player) -> int:
        return sum(1 for c in self._completed if c.result.winner is player)

    def winner(self, sets_to_win: int) -> Player | None:
        return match_winner(self.results(), sets_to_win)


def match_winner(results: Iterable[SetResult], sets_to_win: int) -> Player | None:
    """Player with sets_to_win finished sets, else None."""
    wins = {Player.ONE: 0, Player.TWO: 0}
    for r in results:
        wins[r.winner] += 1
    for player in (Player.ONE, Player.TWO):
        if wins[player] >= sets_to_win:
            return player
    return None
