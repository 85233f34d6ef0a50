"""
Match engine tests: lifecycle, service rotation in play, set and match completion,
side swap and undo across set boundaries.
"""
from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from scoreboard.engine.errors import (
    EmptyHistoryError,
    InvalidStateError,
    NothingToUndoError,
)
from scoreboard.engine.match_engine import MatchEngine
from scoreboard.engine.schemas import (
    AddPoint,
    ChooseFirstServer,
    MatchRules,
    MatchStatus,
    Player,
    RemovePoint,
    ServiceState,
    SetResult,
    Side,
    side_of_player,
)


def award(engine: MatchEngine, player: Player, n: int = 1):
    """Give `n` points to an absolute player, whichever side they stand on."""
    state = engine.state
    for _ in range(n):
        state = engine.add_point(side_of_player(player, engine.state.is_side_swapped))
    return state


def alternate(engine: MatchEngine, pairs: int):
    for _ in range(pairs):
        award(engine, Player.ONE)
        award(engine, Player.TWO)
    return engine.state


class TestLifecycle:
    def test_new_engine_awaits_first_server(self):
        engine = MatchEngine()
        s = engine.state
        assert s.status is MatchStatus.AWAITING_FIRST_SERVER
        assert s.service is None
        assert s.score == (0, 0)
        assert s.sets_won == (0, 0)
        assert s.set_number == 1

    def test_point_before_first_server_rejected(self):
        engine = MatchEngine()
        before = engine.state
        with pytest.raises(InvalidStateError):
            engine.add_point(Side.LEFT)
        assert engine.state == before

    def test_first_server_only_once(self):
        engine = MatchEngine()
        engine.choose_first_server(Player.TWO)
        with pytest.raises(InvalidStateError):
            engine.choose_first_server(Player.ONE)
        assert engine.state.match_starting_server == Player.TWO

    def test_choose_first_server_starts_service(self):
        engine = MatchEngine()
        s = engine.choose_first_server(Player.TWO)
        assert s.status is MatchStatus.IN_PROGRESS
        assert s.service.server == Player.TWO
        assert s.service.turn == 1
        assert s.service.remaining == 2

    def test_apply_dispatches_commands(self):
        engine = MatchEngine(change_sides=False)
        engine.apply(ChooseFirstServer(Player.ONE))
        engine.apply(AddPoint(Side.RIGHT))
        assert engine.state.score == (0, 1)
        engine.apply(RemovePoint())
        assert engine.state.score == (0, 0)

    def test_apply_rejects_unknown_command(self):
        engine = MatchEngine()
        with pytest.raises(TypeError):
            engine.apply("point_left")


class TestServiceInPlay:
    def test_pair_rotation(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        s = engine.add_point(Side.LEFT)
        assert s.service.server == Player.ONE
        assert s.service.remaining == 1
        s = engine.add_point(Side.LEFT)
        assert s.service.server == Player.TWO
        assert s.service.remaining == 2

    def test_deuce_switches_every_point(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        s = alternate(engine, 10)
        assert s.score == (10, 10)
        assert s.is_deuce
        assert s.service.remaining == 1
        first = s.service.server
        s = award(engine, Player.ONE)
        assert s.score == (11, 10)
        assert s.service.server == first.other
        assert s.service.remaining == 1
        s = award(engine, Player.TWO)
        assert s.service.server == first

    def test_nine_all_is_not_deuce(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        s = alternate(engine, 9)
        assert not s.is_deuce
        assert s.service.remaining == 2


    def test_custom_deuce_threshold_needs_both_counters(self):
        engine = MatchEngine(rules=MatchRules(deuce_threshold=5), change_sides=False)
        engine.choose_first_server(Player.ONE)
        for _ in range(8):
            engine.add_point(Side.LEFT)
        for _ in range(2):
            s = engine.add_point(Side.RIGHT)
        assert s.score == (8, 2)
        assert not s.is_deuce
        assert s.service == ServiceState(Player.TWO, turn=1, remaining=2)
        for _ in range(3):
            s = engine.add_point(Side.RIGHT)
        assert s.score == (8, 5)
        assert s.is_deuce
        assert s.service.remaining == 1

    def test_deuce_flag_and_rotation_agree_under_custom_rules(self):
        rules = MatchRules(deuce_threshold=4, final_set_deuce_threshold=3)
        engine = MatchEngine(rules=rules, change_sides=True)
        engine.choose_first_server(Player.TWO)
        rng = random.Random(11)
        while engine.state.winner is None:
            s = award(engine, rng.choice([Player.ONE, Player.TWO]))
            if s.service is None:
                break
            threshold = rules.deuce_at(s.is_final_set)
            p1, p2 = s.score
            assert s.is_deuce == (p1 >= threshold and p2 >= threshold)
            if s.is_deuce or s.is_final_set:
                assert s.service.remaining == 1
            else:
                assert s.service.remaining == 2 - (p1 + p2) % 2


class TestSetCompletion:
    def test_eleven_love(self):
        engine = MatchEngine()
        engine.choose_first_server(Player.ONE)
        for _ in range(11):
            s = engine.add_point(Side.LEFT)
        assert s.set_results == [SetResult(11, 0)]
        assert s.winner is None
        assert s.sets_won == (1, 0)
        assert s.score == (0, 0)
        assert s.set_number == 2
        assert s.set_starting_server == Player.TWO
        assert s.service.server == Player.TWO
        assert s.service.turn == 1

    def test_win_by_two(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        alternate(engine, 10)
        s = award(engine, Player.TWO)
        assert s.score == (10, 11)
        assert not s.completed_sets
        s = award(engine, Player.TWO)
        assert s.set_results == [SetResult(10, 12)]

    def test_no_cap_on_deuce(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        s = alternate(engine, 20)
        assert s.score == (20, 20)
        award(engine, Player.ONE, 2)
        assert engine.state.set_results == [SetResult(22, 20)]

    def test_final_set_to_six(self):
        engine = MatchEngine()
        engine.choose_first_server(Player.ONE)
        for p in (Player.ONE, Player.TWO, Player.ONE, Player.TWO):
            award(engine, p, 11)
        s = engine.state
        assert s.sets_won == (2, 2)
        assert s.is_final_set
        assert s.set_starting_server == Player.ONE
        assert s.service.remaining == 1
        alternate(engine, 5)
        s = award(engine, Player.TWO)
        assert s.score == (5, 6)
        assert s.winner is None
        s = award(engine, Player.TWO)
        assert s.winner == Player.TWO
        assert s.set_results[-1] == SetResult(5, 7)
        assert s.status is MatchStatus.COMPLETE

    def test_final_set_alternates_every_point(self):
        engine = MatchEngine()
        engine.choose_first_server(Player.TWO)
        for p in (Player.ONE, Player.TWO, Player.ONE, Player.TWO):
            award(engine, p, 11)
        servers = []
        for _ in range(4):
            servers.append(engine.state.service.server)
            award(engine, Player.ONE if len(servers) % 2 else Player.TWO)
        assert servers == [Player.TWO, Player.ONE, Player.TWO, Player.ONE]

    def test_official_rules_final_set_to_eleven(self):
        engine = MatchEngine(rules=MatchRules.official())
        engine.choose_first_server(Player.ONE)
        for p in (Player.ONE, Player.TWO, Player.ONE, Player.TWO):
            award(engine, p, 11)
        s = award(engine, Player.ONE, 6)
        assert s.winner is None
        assert s.score == (6, 0)
        s = award(engine, Player.ONE, 5)
        assert s.winner == Player.ONE


class TestMatchCompletion:
    def test_player_two_wins_three_sets(self):
        engine = MatchEngine()
        engine.choose_first_server(Player.ONE)
        s = award(engine, Player.TWO, 33)
        assert s.winner == Player.TWO
        assert s.status is MatchStatus.COMPLETE
        assert s.sets_won == (0, 3)
        assert s.service is None
        assert s.set_number == 3

    def test_complete_match_rejects_commands(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        award(engine, Player.TWO, 33)
        done = engine.state
        with pytest.raises(InvalidStateError):
            engine.add_point(Side.LEFT)
        with pytest.raises(InvalidStateError):
            engine.remove_point()
        assert engine.state == done

    def test_five_set_match(self):
        engine = MatchEngine()
        engine.choose_first_server(Player.ONE)
        for p in (Player.ONE, Player.TWO, Player.TWO, Player.ONE, Player.ONE):
            award(engine, p, 11 if len(engine.state.completed_sets) < 4 else 6)
        s = engine.state
        assert s.winner == Player.ONE
        assert len(s.completed_sets) == 5
        assert s.sets_won == (3, 2)


class TestSideSwap:
    def test_sides_swap_after_odd_sets(self):
        engine = MatchEngine(change_sides=True)
        engine.choose_first_server(Player.ONE)
        assert not engine.state.is_side_swapped
        award(engine, Player.ONE, 11)
        assert engine.state.is_side_swapped
        # Player 1 now stands on the right
        s = engine.add_point(Side.RIGHT)
        assert s.score == (1, 0)
        award(engine, Player.TWO, 11)
        assert not engine.state.is_side_swapped

    def test_results_stay_absolute_after_swap(self):
        engine = MatchEngine(change_sides=True)
        engine.choose_first_server(Player.ONE)
        for _ in range(11):
            engine.add_point(Side.LEFT)
        for _ in range(11):
            engine.add_point(Side.LEFT)
        assert engine.state.set_results == [SetResult(11, 0), SetResult(0, 11)]
        assert engine.state.sets_won == (1, 1)

    def test_no_swap_when_disabled(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        award(engine, Player.ONE, 11)
        assert not engine.state.is_side_swapped
        assert engine.add_point(Side.LEFT).score == (1, 0)

    def test_toggle_mid_match(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        award(engine, Player.ONE, 11)
        s = engine.set_change_sides(True)
        assert s.is_side_swapped
        assert s.change_sides


class TestUndo:
    def test_undo_within_set(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        before = engine.state
        engine.add_point(Side.LEFT)
        assert engine.remove_point() == before

    def test_nothing_to_undo(self):
        engine = MatchEngine()
        engine.choose_first_server(Player.ONE)
        with pytest.raises(NothingToUndoError):
            engine.remove_point()

    def test_nothing_to_undo_before_first_server(self):
        engine = MatchEngine()
        with pytest.raises(NothingToUndoError):
            engine.remove_point()

    def test_nothing_to_undo_is_empty_history(self):
        assert issubclass(NothingToUndoError, EmptyHistoryError)

    def test_undo_reopens_previous_set(self):
        engine = MatchEngine(change_sides=True)
        engine.choose_first_server(Player.ONE)
        alternate(engine, 9)
        s = award(engine, Player.ONE, 2)
        assert s.set_results == [SetResult(11, 9)]
        assert s.set_starting_server == Player.TWO
        assert s.is_side_swapped

        s = engine.remove_point()
        assert s.completed_sets == ()
        assert s.score == (10, 9)
        assert s.set_starting_server == Player.ONE
        assert not s.is_side_swapped
        assert s.service.server == Player.TWO
        assert s.service.turn == 2

    def test_undo_reopens_previous_set_lost_by_player_one(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.TWO)
        award(engine, Player.ONE, 8)
        award(engine, Player.TWO, 11)
        assert engine.state.set_results == [SetResult(8, 11)]
        s = engine.remove_point()
        assert s.score == (8, 10)
        assert s.set_number == 1

    def test_undo_then_redo_is_identity(self):
        engine = MatchEngine(change_sides=True)
        engine.choose_first_server(Player.ONE)
        award(engine, Player.ONE, 11)
        sequence = [Player.TWO, Player.ONE, Player.TWO]
        for p in sequence:
            award(engine, p)
        target = engine.state

        for _ in range(5):
            engine.remove_point()
        assert engine.state.completed_sets == ()
        assert engine.state.score == (9, 0)

        award(engine, Player.ONE, 2)
        for p in sequence:
            award(engine, p)
        assert engine.state == target

    def test_undo_to_start_of_match(self):
        engine = MatchEngine(change_sides=True)
        engine.choose_first_server(Player.TWO)
        start = engine.state
        rng = random.Random(7)
        for _ in range(30):
            award(engine, rng.choice([Player.ONE, Player.TWO]))
        while engine.state.completed_sets or engine.state.current_set_points:
            engine.remove_point()
        assert engine.state == start


class TestResume:
    def test_resume_matches_live_state_after_every_command(self):
        engine = MatchEngine(change_sides=True)
        engine.choose_first_server(Player.ONE)
        rng = random.Random(2024)
        while engine.state.winner is None:
            if engine.state.current_set_points and rng.random() < 0.1:
                engine.remove_point()
            else:
                award(engine, rng.choice([Player.ONE, Player.TWO]))
            resumed = MatchEngine.resume(engine.persisted(), change_sides=True)
            assert resumed.state == engine.state

    def test_resumed_engine_keeps_playing(self):
        engine = MatchEngine(change_sides=False)
        engine.choose_first_server(Player.ONE)
        award(engine, Player.ONE, 11)
        award(engine, Player.TWO, 3)
        resumed = MatchEngine.resume(engine.persisted(), change_sides=False)
        assert resumed.session_id == engine.session_id
        for _ in range(4):
            resumed.remove_point()
        assert resumed.state.score == (10, 0)
        assert resumed.state.completed_sets == ()
