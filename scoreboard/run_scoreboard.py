"""
Terminal scoreboard: keyboard-driven scoring for one table, printed after every command.
Uses the same MatchService and sqlite store as the API, so a restarted terminal
resumes the interrupted match.

Keys: 1/2 choose first server, l/r point for left/right, u undo, n new match, q quit.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from scoreboard import config
from scoreboard.engine.errors import EngineError, NothingToUndoError
from scoreboard.engine.schemas import MatchState, MatchStatus, Player, Side, side_of_player
from scoreboard.engine.telemetry import EMPTY_SET_SLOT, TelemetryProjection
from scoreboard.persistence import SqliteMatchStore
from scoreboard.services import MatchService

logger = logging.getLogger(__name__)

HELP = "1/2 first server · l/r point · u undo · n new match · q quit"


def _render_current(service: MatchService) -> str:
    state, projection, _ = service.snapshot()
    return render(projection, state)


def render(projection: TelemetryProjection, state: MatchState) -> str:
    """Plain-text scoreboard for one projection."""
    p = projection
    lines = []
    if state.status is MatchStatus.AWAITING_FIRST_SERVER:
        return f"  Who serves first? [1] {p.left_name}  [2] {p.right_name}"
    if state.status is MatchStatus.COMPLETE:
        winner_side = side_of_player(state.winner, state.is_side_swapped)
        winner_name = p.left_name if winner_side is Side.LEFT else p.right_name
        lines.append("=" * 60)
        lines.append(f"  {winner_name} wins!   Sets: " + "  ".join(s for s in p.set_scores if s != EMPTY_SET_SLOT))
        lines.append("=" * 60)
        return "\n".join(lines)
    left_dot = "●" if p.server_side == Side.LEFT.value else " "
    right_dot = "●" if p.server_side == Side.RIGHT.value else " "
    lines.append(f"  {p.left_name} ({p.left_sets})  vs  {p.right_name} ({p.right_sets})    SET {p.set_number}")
    lines.append(f"  {left_dot} {p.left_points:>2}  :  {p.right_points:<2} {right_dot}" + ("   (2nd serve)" if p.second_serve else ""))
    lines.append("  " + "  ".join(p.set_scores))
    return "\n".join(lines)


def handle_key(service: MatchService, key: str) -> str | None:
    """Apply one key. Returns a message for the user, or None."""
    try:
        if key in ("1", "2"):
            service.choose_first_server(Player(int(key)))
        elif key == "l":
            service.add_point(Side.LEFT)
        elif key == "r":
            service.add_point(Side.RIGHT)
        elif key == "u":
            service.remove_point()
        elif key == "n":
            service.reset()
        else:
            return HELP
    except NothingToUndoError:
        return None
    except EngineError as e:
        logger.debug("Rejected key %r: %s", key, e)
        return str(e)
    return None


def run(
    db_path: Path | None = None,
    change_sides: bool | None = None,
    new_match: bool = False,
    stdin: TextIO = sys.stdin,
    stdout: TextIO = sys.stdout,
) -> MatchService:
    store = SqliteMatchStore(db_path or config.DB_PATH)
    service = MatchService(store=store)
    if change_sides is not None:
        service.update_settings(change_sides=change_sides)
    if new_match:
        service.reset()
    else:
        service.resume()
    try:
        print(HELP, file=stdout)
        print(_render_current(service), file=stdout)
        for line in stdin:
            key = line.strip().lower()[:1]
            if not key:
                continue
            if key == "q":
                break
            message = handle_key(service, key)
            if message:
                print(f"  {message}", file=stdout)
            print(_render_current(service), file=stdout)
    finally:
        service.flush()
        service.close()
    return service


def main():
    parser = argparse.ArgumentParser(description="Keyboard table tennis scoreboard with resume.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite file (default: SCOREBOARD_DB_PATH)")
    parser.add_argument("--no-change-sides", action="store_true", help="Keep players on their side all match")
    parser.add_argument("--new", action="store_true", help="Start a new match instead of resuming")
    args = parser.parse_args()
    logging.basicConfig(level=config.LOG_LEVEL)
    run(
        db_path=args.db,
        change_sides=False if args.no_change_sides else None,
        new_match=args.new,
    )


if __name__ == "__main__":
    main()
