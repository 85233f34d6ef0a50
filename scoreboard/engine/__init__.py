"""
Match scoring engine: best-of-five table tennis scoring with service rotation,
deuce, side swap, undo across set boundaries and resume from primitives.
"""
from .schemas import (
    Player,
    Side,
    MatchStatus,
    PointEvent,
    SetResult,
    CompletedSetSnapshot,
    MatchRules,
    ServiceState,
    MatchState,
    PersistedMatch,
    ChooseFirstServer,
    AddPoint,
    RemovePoint,
    Command,
    player_on_side,
    side_of_player,
)
from .errors import (
    EngineError,
    InvalidStateError,
    EmptyHistoryError,
    NothingToUndoError,
    MalformedPersistedStateError,
)
from .rotation import compute_service, set_starting_server, is_single_point_rotation
from .set_scoreboard import SetScoreboard, is_set_complete, is_deuce
from .history import MatchHistory, match_winner
from .reconstructor import (
    rehydrate,
    rehydrate_persisted,
    persisted_from_state,
    persisted_to_dict,
    persisted_from_dict,
)
from .match_engine import MatchEngine
from .telemetry import TelemetryProjection, project, EMPTY_SET_SLOT

__all__ = [
    "Player",
    "Side",
    "MatchStatus",
    "PointEvent",
    "SetResult",
    "CompletedSetSnapshot",
    "MatchRules",
    "ServiceState",
    "MatchState",
    "PersistedMatch",
    "ChooseFirstServer",
    "AddPoint",
    "RemovePoint",
    "Command",
    "player_on_side",
    "side_of_player",
    "EngineError",
    "InvalidStateError",
    "EmptyHistoryError",
    "NothingToUndoError",
    "MalformedPersistedStateError",
    "compute_service",
    "set_starting_server",
    "is_single_point_rotation",
    "SetScoreboard",
    "is_set_complete",
    "is_deuce",
    "MatchHistory",
    "match_winner",
    "rehydrate",
    "rehydrate_persisted",
    "persisted_from_state",
    "persisted_to_dict",
    "persisted_from_dict",
    "MatchEngine",
    "TelemetryProjection",
    "project",
    "EMPTY_SET_SLOT",
]
