"""
Match engine: the state machine behind the scoreboard.

awaiting_first_server → in_progress → complete. Commands either apply fully or
raise an EngineError with no mutation. After every transition the state is
re-derived from primitives by rehydrate(), so live play, undo and resume
share one code path for server/turn/swap.
"""
from __future__ import annotations

import logging
import uuid

from .errors import InvalidStateError, NothingToUndoError
from .history import MatchHistory
from .reconstructor import persisted_from_state, rehydrate, rehydrate_persisted
from .schemas import (
    AddPoint,
    ChooseFirstServer,
    Command,
    MatchRules,
    MatchState,
    MatchStatus,
    PersistedMatch,
    Player,
    RemovePoint,
    Side,
    player_on_side,
)
from .set_scoreboard import SetScoreboard

logger = logging.getLogger(__name__)


class MatchEngine:
    """
    Owns one match. Not thread-safe: callers serialize apply() (see MatchService).
    """

    def __init__(
        self,
        rules: MatchRules | None = None,
        change_sides: bool = True,
        session_id: str | None = None,
    ) -> None:
        self.rules = rules or MatchRules()
        self.change_sides = change_sides
        self.session_id = session_id or str(uuid.uuid4())
        self._starting_server: Player | None = None
        self._set = SetScoreboard()
        self._history = MatchHistory()
        self._state = self._derive()

    @classmethod
    def resume(
        cls,
        persisted: PersistedMatch,
        rules: MatchRules | None = None,
        change_sides: bool = True,
    ) -> "MatchEngine":
        """Rebuild an engine from persisted primitives. Raises MalformedPersistedStateError."""
        state = rehydrate_persisted(persisted, rules=rules, change_sides=change_sides)
        engine = cls(rules=rules, change_sides=change_sides, session_id=persisted.session_id)
        engine._starting_server = state.match_starting_server
        engine._history = MatchHistory(state.completed_sets)
        engine._set = SetScoreboard(state.current_set_points)
        engine._state = state
        return engine

    # ---------- Read side ----------

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def status(self) -> MatchStatus:
        return self._state.status

    def persisted(self) -> PersistedMatch:
        return persisted_from_state(self._state)

    # ---------- Commands ----------

    def apply(self, command: Command) -> MatchState:
        """Apply one command and return the new immutable snapshot."""
        if isinstance(command, ChooseFirstServer):
            return self.choose_first_server(command.player)
        if isinstance(command, AddPoint):
            return self.add_point(command.side)
        if isinstance(command, RemovePoint):
            return self.remove_point()
        raise TypeError(f"Unsupported command: {command!r}")

    def choose_first_server(self, player: Player) -> MatchState:
        if self.status is not MatchStatus.AWAITING_FIRST_SERVER:
            raise InvalidStateError("First server already chosen")
        self._starting_server = Player(player)
        return self._commit("choose_first_server")

    def add_point(self, side: Side) -> MatchState:
        """Award a point to the player shown on `side`."""
        if self.status is MatchStatus.AWAITING_FIRST_SERVER:
            raise InvalidStateError("Choose the first server before scoring")
        if self.status is MatchStatus.COMPLETE:
            raise InvalidStateError("Match already has a winner")
        player = player_on_side(Side(side), self._state.is_side_swapped)
        self._set.add_point(player)

        final_set = self.rules.is_final_set(len(self._history))
        if self._set.is_complete(self.rules.win_points(final_set), self.rules.win_by) and len(self._history) < self.rules.max_sets:
            # Counters are in absolute player terms, so the frozen result is too.
            result = self._set.result()
            self._history.push(result, self._set.points)
            self._set.reset()
            winner = self._history.winner(self.rules.sets_to_win)
            if winner is not None:
                logger.info("Match %s won by player %d", self.session_id, winner)
            else:
                logger.info("Set %d finished %d-%d", len(self._history), result.player1, result.player2)
        return self._commit("add_point")

    def remove_point(self) -> MatchState:
        """Undo the last point, reopening the previous set when the current one is empty."""
        if self.status is MatchStatus.COMPLETE:
            raise InvalidStateError("Match already has a winner")
        if self._set.total > 0:
            self._set.remove_last_point()
        elif len(self._history) > 0:
            snap = self._history.pop()
            self._set = SetScoreboard(snap.points)
            self._set.remove_last_point()
        else:
            raise NothingToUndoError("Nothing to undo")
        return self._commit("remove_point")

    def set_change_sides(self, enabled: bool) -> MatchState:
        """Out-of-band display setting; affects side mapping from now on."""
        self.change_sides = bool(enabled)
        return self._commit("set_change_sides")

    # ---------- Internals ----------

    def _derive(self) -> MatchState:
        return rehydrate(
            self._starting_server,
            self._history.completed,
            self._set.points,
            rules=self.rules,
            change_sides=self.change_sides,
            session_id=self.session_id,
        )

    def _commit(self, action: str) -> MatchState:
        self._state = self._derive()
        logger.debug(
            "%s: session=%s set=%d score=%s sets=%s",
            action,
            self.session_id,
            self._state.set_number,
            self._state.score,
            self._state.sets_won,
        )
        return self._state
