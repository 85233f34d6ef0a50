"""
Service layer: command serialization, settings, remote control decoding.
No scoring rules here; those live in scoreboard.engine.
"""
from .match_service import (
    MatchService,
    MatchStore,
    SetPlayerName,
    SetChangeSides,
    SetChangeSidesAnim,
    ServiceCommand,
)
from .remote_commands import decode_control, decode_message, parse_flag

__all__ = [
    "MatchService",
    "MatchStore",
    "SetPlayerName",
    "SetChangeSides",
    "SetChangeSidesAnim",
    "ServiceCommand",
    "decode_control",
    "decode_message",
    "parse_flag",
]
