"""
State reconstructor: rebuild a full MatchState from persisted primitives.

Used on resume and as the last step of every engine transition. Only point logs,
completed set results and the match starting server are trusted; server, service
turn, deuce and side-swap are always recomputed here.
"""
from __future__ import annotations

from typing import Any, Sequence

from .errors import MalformedPersistedStateError
from .history import MatchHistory, match_winner
from .rotation import compute_service, set_starting_server
from .schemas import (
    CompletedSetSnapshot,
    MatchRules,
    MatchState,
    MatchStatus,
    PersistedMatch,
    Player,
    PointEvent,
    SetResult,
)
from .set_scoreboard import SetScoreboard, is_set_complete


def rehydrate(
    match_starting_server: Player | None,
    completed_sets: Sequence[CompletedSetSnapshot],
    current_set_points: Sequence[PointEvent],
    rules: MatchRules | None = None,
    change_sides: bool = True,
    session_id: str = "",
) -> MatchState:
    """
    Validate primitives and derive every other field.
    Raises MalformedPersistedStateError instead of guessing.
    """
    rules = rules or MatchRules()
    completed = tuple(completed_sets)
    current = tuple(current_set_points)
    _validate(match_starting_server, completed, current, rules)

    history = MatchHistory(completed)
    board = SetScoreboard(current)
    winner = history.winner(rules.sets_to_win)
    final_set = rules.is_final_set(len(completed))

    if match_starting_server is None:
        status = MatchStatus.AWAITING_FIRST_SERVER
    elif winner is not None:
        status = MatchStatus.COMPLETE
    else:
        status = MatchStatus.IN_PROGRESS

    deuce = status is MatchStatus.IN_PROGRESS and board.is_deuce(rules.deuce_at(final_set))
    starter = None
    service = None
    if match_starting_server is not None:
        starter = set_starting_server(match_starting_server, len(completed))
        if status is MatchStatus.IN_PROGRESS:
            service = compute_service(board.total, final_set, starter, deuce=deuce)

    return MatchState(
        session_id=session_id,
        match_starting_server=match_starting_server,
        current_set_points=current,
        completed_sets=completed,
        winner=winner,
        rules=rules,
        change_sides=change_sides,
        status=status,
        score=board.score(),
        sets_won=(history.sets_won(Player.ONE), history.sets_won(Player.TWO)),
        set_starting_server=starter,
        service=service,
        is_final_set=final_set,
        is_deuce=deuce,
        is_side_swapped=change_sides and len(completed) % 2 == 1,
    )


def rehydrate_persisted(
    persisted: PersistedMatch,
    rules: MatchRules | None = None,
    change_sides: bool = True,
) -> MatchState:
    return rehydrate(
        persisted.match_starting_server,
        persisted.completed_sets,
        persisted.current_set_points,
        rules=rules,
        change_sides=change_sides,
        session_id=persisted.session_id,
    )


def _validate(
    starter: Player | None,
    completed: tuple[CompletedSetSnapshot, ...],
    current: tuple[PointEvent, ...],
    rules: MatchRules,
) -> None:
    if len(completed) > rules.max_sets:
        raise MalformedPersistedStateError(
            f"{len(completed)} completed sets recorded; a match has at most {rules.max_sets}"
        )
    if starter is None and (completed or current):
        raise MalformedPersistedStateError("Points recorded before a first server was chosen")
    for idx, snap in enumerate(completed):
        r = snap.result
        if r.player1 < 0 or r.player2 < 0:
            raise MalformedPersistedStateError(f"Set {idx + 1} has a negative score {r.as_tuple()}")
        tally = SetScoreboard(snap.points).score()
        if tally != r.as_tuple():
            raise MalformedPersistedStateError(
                f"Set {idx + 1} result {r.as_tuple()} disagrees with its point log {tally}"
            )
        final_set = rules.is_final_set(idx)
        if not is_set_complete(r.player1, r.player2, rules.win_points(final_set), rules.win_by):
            raise MalformedPersistedStateError(f"Set {idx + 1} result {r.as_tuple()} is not a finished set")
        if match_winner((c.result for c in completed[:idx]), rules.sets_to_win) is not None:
            raise MalformedPersistedStateError(f"Set {idx + 1} recorded after the match was already won")
    if current:
        if match_winner((c.result for c in completed), rules.sets_to_win) is not None:
            raise MalformedPersistedStateError("Current set has points but the match already has a winner")
        p1, p2 = SetScoreboard(current).score()
        final_set = rules.is_final_set(len(completed))
        if is_set_complete(p1, p2, rules.win_points(final_set), rules.win_by):
            raise MalformedPersistedStateError(f"Current set {p1}-{p2} is already finished")


# ---------- Persisted layout ----------


def persisted_from_state(state: MatchState) -> PersistedMatch:
    return PersistedMatch(
        session_id=state.session_id,
        match_starting_server=state.match_starting_server,
        current_set_points=list(state.current_set_points),
        completed_sets=list(state.completed_sets),
    )


def persisted_to_dict(p: PersistedMatch) -> dict[str, Any]:
    """PersistedMatch to JSON-serializable dict. Primitives only."""
    return {
        "session_id": p.session_id,
        "match_starting_server": int(p.match_starting_server) if p.match_starting_server else None,
        "current_set_points": [int(e.winner) for e in p.current_set_points],
        "completed_sets": [
            {
                "result": list(c.result.as_tuple()),
                "points": [int(e.winner) for e in c.points],
            }
            for c in p.completed_sets
        ],
    }


def persisted_from_dict(d: dict[str, Any]) -> PersistedMatch:
    """Parse the persisted layout. Unknown codes or negative totals are malformed."""
    if not isinstance(d, dict):
        raise MalformedPersistedStateError("Persisted match must be an object")
    try:
        session_id = str(d["session_id"])
        raw_starter = d.get("match_starting_server")
        starter = _parse_player(raw_starter) if raw_starter is not None else None
        current = [PointEvent(_parse_player(v)) for v in d.get("current_set_points", [])]
        completed = []
        for c in d.get("completed_sets", []):
            p1, p2 = c["result"]
            if not isinstance(p1, int) or not isinstance(p2, int):
                raise MalformedPersistedStateError(f"Set result must be integers, got {c['result']!r}")
            if p1 < 0 or p2 < 0:
                raise MalformedPersistedStateError(f"Negative set result {c['result']!r}")
            points = tuple(PointEvent(_parse_player(v)) for v in c.get("points", []))
            completed.append(CompletedSetSnapshot(result=SetResult(p1, p2), points=points))
    except (KeyError, TypeError, ValueError) as e:
        if isinstance(e, MalformedPersistedStateError):
            raise
        raise MalformedPersistedStateError(f"Unreadable persisted match: {e}") from e
    return PersistedMatch(
        session_id=session_id,
        match_starting_server=starter,
        current_set_points=current,
        completed_sets=completed,
    )


def _parse_player(value: Any) -> Player:
    if value not in (1, 2) or isinstance(value, bool):
        raise MalformedPersistedStateError(f"Unknown player code {value!r}")
    return Player(value)
