"""
Remote control decoding: topic + payload → command.
Point commands decode to the same AddPoint/RemovePoint objects local input
produces; the engine never knows where a command came from.
"""
from __future__ import annotations

import logging

from scoreboard.engine.schemas import AddPoint, Player, RemovePoint, Side

from .match_service import (
    ServiceCommand,
    SetChangeSides,
    SetChangeSidesAnim,
    SetPlayerName,
)

logger = logging.getLogger(__name__)

CONTROL_SEGMENT = "control/"
_TRUE_VALUES = {"on", "true", "1"}


def parse_flag(payload: str) -> bool:
    """'on' / 'true' / '1' (any case, surrounding whitespace ignored) are true."""
    return payload.strip().lower() in _TRUE_VALUES


def normalize_prefix(prefix: str) -> str:
    if not prefix:
        return ""
    return prefix if prefix.endswith("/") else prefix + "/"


def decode_control(name: str, payload: str = "") -> ServiceCommand | None:
    """Decode a control name (e.g. 'point_left') and its payload. Unknown names → None."""
    if name == "point_left":
        return AddPoint(Side.LEFT)
    if name == "point_right":
        return AddPoint(Side.RIGHT)
    if name == "remove_point":
        return RemovePoint()
    if name == "p1_name":
        return SetPlayerName(Player.ONE, payload)
    if name == "p2_name":
        return SetPlayerName(Player.TWO, payload)
    if name == "change_sides":
        return SetChangeSides(parse_flag(payload))
    if name == "change_sides_anim":
        return SetChangeSidesAnim(parse_flag(payload))
    logger.debug("Ignoring unknown control message %r", name)
    return None


def decode_message(topic: str, payload: str, prefix: str = "") -> ServiceCommand | None:
    """Decode a full topic such as 'scoreboard/control/point_left'."""
    sub = topic
    clean = normalize_prefix(prefix)
    if clean and sub.startswith(clean):
        sub = sub[len(clean):]
    if sub.startswith(CONTROL_SEGMENT):
        sub = sub[len(CONTROL_SEGMENT):]
    return decode_control(sub, payload)
