#!/usr/bin/env python3
"""
Inspect the active match session: load persisted primitives → rehydrate → print
derived service/turn/swap state and the finished-match history.
Run from project root: python3 scripts/inspect_session.py [--db PATH]
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from scoreboard import config
from scoreboard.engine import MalformedPersistedStateError, persisted_to_dict, project, rehydrate_persisted
from scoreboard.persistence import SqliteMatchStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the rehydrated active match session.")
    parser.add_argument("--db", type=Path, default=config.DB_PATH)
    parser.add_argument("--history", type=int, default=5, help="Number of finished matches to list")
    args = parser.parse_args()

    store = SqliteMatchStore(args.db)
    settings = store.load_settings()
    try:
        persisted = store.load_active_session()
    except MalformedPersistedStateError as e:
        raise SystemExit(f"Active session is malformed: {e}")

    if persisted is None:
        print("No active session.")
    else:
        print("Persisted primitives:")
        print(json.dumps(persisted_to_dict(persisted), indent=2))
        state = rehydrate_persisted(persisted, change_sides=settings.change_sides)
        print("\nDerived state:")
        print(json.dumps(state.to_dict(), indent=2))
        print("\nTelemetry:")
        proj = project(
            state,
            player1_name=settings.player1_name,
            player2_name=settings.player2_name,
            change_sides_anim=settings.change_sides_anim,
        )
        print(json.dumps(proj.to_dict(), indent=2))

    records = store.list_records(limit=args.history)
    if records:
        print("\nRecent matches:")
        for r in records:
            sets = "  ".join(f"{a}-{b}" for a, b in r.sets)
            winner = r.player1_name if r.winner == 1 else r.player2_name
            print(f"  {r.finished_at:%Y-%m-%d %H:%M}  {r.player1_name} vs {r.player2_name}: {winner} ({sets})")


if __name__ == "__main__":
    main()
