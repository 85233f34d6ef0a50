"""
Terminal scoreboard tests: key handling and rendering with in-memory streams.
"""
from __future__ import annotations

import io
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from scoreboard.models import ScoreboardSettings
from scoreboard.run_scoreboard import HELP, handle_key, render, run
from scoreboard.services.match_service import MatchService


class TestHandleKey:
    def test_keys_drive_the_match(self):
        svc = MatchService(settings=ScoreboardSettings(change_sides=False))
        try:
            assert handle_key(svc, "1") is None
            handle_key(svc, "l")
            handle_key(svc, "r")
            handle_key(svc, "r")
            assert svc.state.score == (1, 2)
            handle_key(svc, "u")
            assert svc.state.score == (1, 1)
        finally:
            svc.close()

    def test_rejected_key_returns_message(self):
        svc = MatchService()
        try:
            msg = handle_key(svc, "l")
            assert msg
            assert svc.state.score == (0, 0)
        finally:
            svc.close()

    def test_undo_with_nothing_is_silent(self):
        svc = MatchService()
        try:
            handle_key(svc, "1")
            assert handle_key(svc, "u") is None
        finally:
            svc.close()

    def test_unknown_key_shows_help(self):
        svc = MatchService()
        try:
            assert handle_key(svc, "x") == HELP
        finally:
            svc.close()


class TestRender:
    def test_awaiting(self):
        svc = MatchService()
        try:
            assert "serves first" in render(svc.projection(), svc.state)
        finally:
            svc.close()

    def test_winner_banner(self):
        svc = MatchService(settings=ScoreboardSettings(change_sides=False, player2_name="Bo"))
        try:
            svc.choose_first_server(1)
            for _ in range(33):
                svc.add_point("right")
            out = render(svc.projection(), svc.state)
            assert "Bo wins!" in out
            assert "0 : 11" in out
        finally:
            svc.close()


class TestRun:
    def test_session_resumes_between_runs(self, tmp_path):
        db = tmp_path / "cli.db"
        out = io.StringIO()
        first = run(db_path=db, stdin=io.StringIO("1\nl\nl\nr\nq\n"), stdout=out)
        assert first.state.score == (2, 1)
        assert "●" in out.getvalue()

        second = run(db_path=db, stdin=io.StringIO(""), stdout=io.StringIO())
        assert second.state == first.state

    def test_new_match_flag(self, tmp_path):
        db = tmp_path / "cli.db"
        run(db_path=db, stdin=io.StringIO("2\nl\n"), stdout=io.StringIO())
        fresh = run(db_path=db, new_match=True, stdin=io.StringIO(""), stdout=io.StringIO())
        assert fresh.state.status.value == "awaiting_first_server"
