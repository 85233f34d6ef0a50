"""
Match service: the single entry point for commands from every input source.

Commands from local input and remote control are serialized under one lock
before they reach MatchEngine.apply. After each command the persisted
primitives are handed to the store on a single background worker; a failed
write is logged and never rolls back or blocks the in-memory state.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Protocol, Union

from scoreboard.engine.errors import MalformedPersistedStateError
from scoreboard.engine.match_engine import MatchEngine
from scoreboard.engine.schemas import (
    AddPoint,
    ChooseFirstServer,
    Command,
    MatchRules,
    MatchState,
    PersistedMatch,
    Player,
    RemovePoint,
    Side,
)
from scoreboard.engine.telemetry import TelemetryProjection, project
from scoreboard.models import MatchRecord, ScoreboardSettings

logger = logging.getLogger(__name__)


# ---------- Settings commands (out-of-band, not seen by the engine) ----------
@dataclass(frozen=True)
class SetPlayerName:
    player: Player
    name: str


@dataclass(frozen=True)
class SetChangeSides:
    enabled: bool


@dataclass(frozen=True)
class SetChangeSidesAnim:
    enabled: bool


SettingsCommand = Union[SetPlayerName, SetChangeSides, SetChangeSidesAnim]
ServiceCommand = Union[Command, SettingsCommand]


class MatchStore(Protocol):
    """What the service needs from a persistence adapter (see SqliteMatchStore)."""

    def save_session(self, persisted: PersistedMatch) -> None: ...
    def load_active_session(self) -> PersistedMatch | None: ...
    def active_session_id(self) -> str | None: ...
    def deactivate_session(self, session_id: str) -> None: ...
    def archive(self, state: MatchState, settings: ScoreboardSettings) -> MatchRecord: ...
    def list_records(self, limit: int = 50) -> list[MatchRecord]: ...
    def get_record(self, record_id: str) -> MatchRecord | None: ...
    def load_settings(self) -> ScoreboardSettings: ...
    def save_settings(self, settings: ScoreboardSettings) -> None: ...


class MatchService:
    """
    Owns the live MatchEngine and the display settings.
    Thread-safe: every read and command goes through self._lock.
    """

    def __init__(
        self,
        store: MatchStore | None = None,
        rules: MatchRules | None = None,
        settings: ScoreboardSettings | None = None,
    ) -> None:
        self.store = store
        self.rules = rules or MatchRules()
        if settings is None:
            settings = store.load_settings() if store is not None else ScoreboardSettings()
        self._settings = settings
        self._lock = threading.Lock()
        self._engine = MatchEngine(rules=self.rules, change_sides=settings.change_sides)
        self._archived = False
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scoreboard-store")

    # ---------- Read side ----------

    @property
    def state(self) -> MatchState:
        with self._lock:
            return self._engine.state

    @property
    def settings(self) -> ScoreboardSettings:
        with self._lock:
            return replace(self._settings)

    def projection(self) -> TelemetryProjection:
        with self._lock:
            return self._project()

    def snapshot(self) -> tuple[MatchState, TelemetryProjection, ScoreboardSettings]:
        """State, projection and settings read under one lock."""
        with self._lock:
            return self._engine.state, self._project(), replace(self._settings)

    def _project(self) -> TelemetryProjection:
        s = self._settings
        return project(
            self._engine.state,
            player1_name=s.player1_name,
            player2_name=s.player2_name,
            change_sides_anim=s.change_sides_anim,
        )

    # ---------- Commands ----------

    def submit(self, command: ServiceCommand) -> MatchState:
        """
        Apply one command. Engine errors (InvalidStateError, NothingToUndoError)
        propagate to the caller with no state change.
        """
        return self.submit_and_project(command)[0]

    def submit_and_project(self, command: ServiceCommand) -> tuple[MatchState, TelemetryProjection]:
        """Apply one command; the projection is taken under the same lock as the state."""
        with self._lock:
            if isinstance(command, (SetPlayerName, SetChangeSides, SetChangeSidesAnim)):
                state = self._apply_setting(command)
                self._queue_settings(replace(self._settings))
            else:
                state = self._engine.apply(command)
            self._queue_session(state)
            return state, self._project()

    def choose_first_server(self, player: Player) -> MatchState:
        return self.submit(ChooseFirstServer(Player(player)))

    def add_point(self, side: Side) -> MatchState:
        return self.submit(AddPoint(Side(side)))

    def remove_point(self) -> MatchState:
        return self.submit(RemovePoint())

    def update_settings(self, **changes) -> ScoreboardSettings:
        """Apply several settings at once (used by the settings screen / PUT /settings)."""
        with self._lock:
            self._settings = replace(self._settings, **changes)
            if "change_sides" in changes:
                self._engine.set_change_sides(self._settings.change_sides)
            snapshot = replace(self._settings)
            self._queue_settings(snapshot)
            return snapshot

    def reset(self) -> MatchState:
        """Start a new match with a fresh session token; the old session is deactivated."""
        return self.reset_and_project()[0]

    def reset_and_project(self) -> tuple[MatchState, TelemetryProjection]:
        with self._lock:
            old_id = self._engine.session_id
            self._engine = MatchEngine(rules=self.rules, change_sides=self._settings.change_sides)
            self._archived = False
            if self.store is not None:
                self._submit_write(self.store.deactivate_session, old_id)
            self._queue_session(self._engine.state)
            logger.info("Reset match: %s -> %s", old_id, self._engine.session_id)
            return self._engine.state, self._project()

    def resume(self) -> MatchState:
        """
        Load the active session from the store. A malformed session is logged and
        deactivated and a fresh match is started; the engine never guesses.
        """
        with self._lock:
            if self.store is None:
                return self._engine.state
            try:
                persisted = self.store.load_active_session()
                if persisted is None:
                    return self._engine.state
                engine = MatchEngine.resume(
                    persisted, rules=self.rules, change_sides=self._settings.change_sides
                )
            except MalformedPersistedStateError as e:
                bad_id = self.store.active_session_id()
                logger.error("Refusing to resume session %s: %s", bad_id, e)
                if bad_id is not None:
                    self.store.deactivate_session(bad_id)
                return self._engine.state
            self._engine = engine
            self._archived = False
            logger.info(
                "Resumed session %s at set %d, score %s",
                engine.session_id,
                engine.state.set_number,
                engine.state.score,
            )
            self._queue_session(engine.state)
            return engine.state

    def _apply_setting(self, command: SettingsCommand) -> MatchState:
        if isinstance(command, SetPlayerName):
            field_name = "player1_name" if command.player is Player.ONE else "player2_name"
            self._settings = replace(self._settings, **{field_name: command.name})
            return self._engine.state
        if isinstance(command, SetChangeSides):
            self._settings = replace(self._settings, change_sides=command.enabled)
            return self._engine.set_change_sides(command.enabled)
        self._settings = replace(self._settings, change_sides_anim=command.enabled)
        return self._engine.state

    # ---------- Persistence (fire-and-forget) ----------

    def _queue_session(self, state: MatchState) -> None:
        if self.store is None:
            return
        self._submit_write(self.store.save_session, self._engine.persisted())
        if state.winner is not None and not self._archived:
            self._archived = True
            self._submit_write(self.store.archive, state, replace(self._settings))

    def _queue_settings(self, settings: ScoreboardSettings) -> None:
        if self.store is None:
            return
        self._submit_write(self.store.save_settings, settings)

    def _submit_write(self, fn, *args) -> Future:
        return self._writer.submit(_safe_write, fn, *args)

    def flush(self, timeout: float | None = None) -> None:
        """Block until every queued write has been attempted."""
        self._writer.submit(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        self._writer.shutdown(wait=True)


def _safe_write(fn, *args) -> None:
    try:
        fn(*args)
    except Exception:
        logger.exception("Persistence write %s failed; in-memory state kept", getattr(fn, "__name__", fn))
