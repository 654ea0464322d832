"""Property-based tests for bracket construction.

Bracket shape, BYE padding and roster validation using Hypothesis.
"""

from __future__ import annotations

import math
import random

import pytest
from hypothesis import given, settings, strategies as st

from referee.tournament.bracket import (
    calculate_byes,
    calculate_total_matches,
    count_byes,
    create_bracket,
    create_bracket_with_byes,
    is_power_of_two,
    next_power_of_two,
    shuffle_players,
    validate_tournament_players,
)
from referee.tournament.models import BYE_PLAYER, Player
from referee.utils.errors import ErrorCode, ValidationError

from conftest import make_players

roster_size_strategy = st.integers(min_value=2, max_value=12)
seed_strategy = st.integers(min_value=0, max_value=2**32 - 1)


# =============================================================================
# Sizing helpers
# =============================================================================


class TestSizing:
    @pytest.mark.parametrize(
        "n,expected",
        [(1, True), (2, True), (3, False), (4, True), (6, False), (8, True), (12, False), (0, False)],
    )
    def test_is_power_of_two(self, n, expected):
        assert is_power_of_two(n) is expected

    @pytest.mark.parametrize("n,expected", [(2, 2), (3, 4), (5, 8), (8, 8), (9, 16), (12, 16)])
    def test_next_power_of_two(self, n, expected):
        assert next_power_of_two(n) == expected

    def test_calculate_byes(self):
        assert calculate_byes(6) == 2
        assert calculate_byes(8) == 0
        assert calculate_byes(12) == 4

    def test_total_matches_is_one_per_eliminated_player(self):
        assert calculate_total_matches(8) == 7
        assert calculate_total_matches(2) == 1


# =============================================================================
# Property Tests: bracket shape
# =============================================================================


class TestBracketShapeProperties:
    @given(n=roster_size_strategy, seed=seed_strategy)
    @settings(max_examples=50, deadline=None)
    def test_round_count_and_first_round_size(self, n: int, seed: int):
        """Property: log2(P) rounds, P/2 first-round matches."""
        padded = next_power_of_two(n)
        bracket = create_bracket(make_players(n), random.Random(seed))

        assert len(bracket) == int(math.log2(padded))
        assert len(bracket[0].matches) == padded // 2

    @given(n=roster_size_strategy, seed=seed_strategy)
    @settings(max_examples=50, deadline=None)
    def test_bye_count_fills_to_power_of_two(self, n: int, seed: int):
        """Property: exactly P - N BYE slots in round 1."""
        bracket = create_bracket(make_players(n), random.Random(seed))
        assert count_byes(bracket[0]) == next_power_of_two(n) - n

    @given(n=roster_size_strategy, seed=seed_strategy)
    @settings(max_examples=50, deadline=None)
    def test_every_player_appears_once_in_round_one(self, n: int, seed: int):
        players = make_players(n)
        bracket = create_bracket(players, random.Random(seed))

        seated = [
            p.name
            for match in bracket[0].matches
            for p in match.players
            if not p.is_bye
        ]
        assert sorted(seated) == sorted(p.name for p in players)

    @given(n=roster_size_strategy)
    @settings(max_examples=20, deadline=None)
    def test_later_rounds_halve_and_start_empty(self, n: int):
        bracket = create_bracket(make_players(n), random.Random(0))

        for previous, current in zip(bracket, bracket[1:]):
            assert len(current.matches) == len(previous.matches) // 2
            assert all(m.player1 is None and m.player2 is None for m in current.matches)
        assert len(bracket[-1].matches) == 1

    @given(n=roster_size_strategy, seed=seed_strategy)
    @settings(max_examples=50, deadline=None)
    def test_shuffle_is_permutation(self, n: int, seed: int):
        """Property: shuffle_players returns a permutation of its input."""
        players = make_players(n)
        shuffled = shuffle_players(players, random.Random(seed))

        assert len(shuffled) == n
        assert sorted(p.name for p in shuffled) == sorted(p.name for p in players)


class TestBracketConstruction:
    def test_power_of_two_keeps_given_order(self):
        players = make_players(4)
        bracket = create_bracket(players, random.Random(1))

        assert [m.players for m in bracket[0].matches] == [
            (players[0], players[1]),
            (players[2], players[3]),
        ]
        assert count_byes(bracket[0]) == 0

    def test_two_players_single_final(self):
        bracket = create_bracket(make_players(2))
        assert len(bracket) == 1
        assert bracket[0].round == 1

    def test_fewer_than_two_players_rejected(self):
        with pytest.raises(ValidationError):
            create_bracket(make_players(1))

    def test_same_seed_same_bracket(self):
        players = make_players(6)
        first = create_bracket_with_byes(players, random.Random(42))
        second = create_bracket_with_byes(players, random.Random(42))
        assert first == second

    def test_byes_are_shared_sentinel(self):
        bracket = create_bracket_with_byes(make_players(3), random.Random(7))
        byes = [p for m in bracket[0].matches for p in m.players if p.is_bye]
        assert byes == [BYE_PLAYER]
        assert byes[0].port is None

    def test_shuffle_does_not_touch_input(self):
        players = make_players(8)
        original = list(players)
        shuffle_players(players, random.Random(3))
        assert players == original


# =============================================================================
# Roster validation
# =============================================================================


class TestValidateTournamentPlayers:
    def test_valid_roster_returns_players(self):
        roster = validate_tournament_players(
            [{"name": "A", "port": 3001}, Player(name="B", port=3002)]
        )
        assert roster == [Player(name="A", port=3001), Player(name="B", port=3002)]

    def test_empty_roster(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_players([])
        assert exc_info.value.code == ErrorCode.INVALID_PLAYERS.value

    def test_thirteen_players(self):
        with pytest.raises(ValidationError):
            validate_tournament_players(make_players(13))

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            validate_tournament_players("P1,P2")

    def test_missing_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_players([{"port": 3001}, {"name": "B", "port": 3002}])
        assert exc_info.value.details == {"index": 1}

    def test_empty_name(self):
        with pytest.raises(ValidationError):
            validate_tournament_players([{"name": "", "port": 3001}, {"name": "B", "port": 3002}])

    @pytest.mark.parametrize("port", [2999, 10000, None, "3001", True])
    def test_bad_port(self, port):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_players([{"name": "A", "port": port}, {"name": "B", "port": 3002}])
        assert exc_info.value.details["index"] == 1

    def test_bye_exempt_from_port_check(self):
        roster = validate_tournament_players([{"name": "A", "port": 3001}, {"name": "BYE", "isBye": True}])
        assert roster[1].is_bye

    def test_custom_bounds(self):
        with pytest.raises(ValidationError):
            validate_tournament_players(make_players(3), max_players=2)

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            validate_tournament_players(["A", "B"])
