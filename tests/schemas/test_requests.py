"""Request and player reply schema tests."""

import pytest
from pydantic import ValidationError

from referee.schemas.requests import GameOptionsRequest, MatchRequest, PlayerSpec, TournamentRequest
from referee.schemas.responses import MoveReply, PlayerHealth
from referee.tournament.models import Player, TournamentOptions


class TestPlayerSpec:
    def test_to_player(self):
        entry = PlayerSpec.model_validate({"name": "Ana", "port": 3000, "isHuman": True})
        assert entry.to_player() == Player(name="Ana", port=3000, is_human=True)

    def test_snake_case_accepted(self):
        assert PlayerSpec(name="Ana", port=3000, is_human=True).is_human

    @pytest.mark.parametrize(
        "name",
        ["", "x" * 51, "<script>alert(1)</script>", "javascript:void(0)", "a onclick=b"],
    )
    def test_rejected_names(self, name):
        with pytest.raises(ValidationError):
            PlayerSpec(name=name, port=3001)

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_bounds(self, port):
        with pytest.raises(ValidationError):
            PlayerSpec(name="Bot1", port=port)

    def test_protocol_literal(self):
        with pytest.raises(ValidationError):
            PlayerSpec(name="Bot1", port=3001, protocol="ftp")


class TestGameOptions:
    def test_to_options(self):
        request = GameOptionsRequest.model_validate(
            {"timeoutMs": 1500, "boardSize": "5x5", "noTie": True, "speed": "fast"}
        )
        assert request.to_options() == TournamentOptions(
            timeout_ms=1500,
            board_size=5,
            no_tie=True,
            match_delay_ms=200,
        )

    def test_defaults_leave_options_untouched(self):
        assert GameOptionsRequest().to_options() == TournamentOptions()

    def test_overrides(self):
        options = GameOptionsRequest().to_options(max_concurrent_matches=3)
        assert options.max_concurrent_matches == 3

    @pytest.mark.parametrize(
        "payload",
        [{"timeoutMs": 99}, {"timeoutMs": 30001}, {"boardSize": "4x4"}, {"speed": "turbo"}],
    )
    def test_invalid(self, payload):
        with pytest.raises(ValidationError):
            GameOptionsRequest.model_validate(payload)


class TestMatchRequest:
    def test_players_required(self):
        with pytest.raises(ValidationError):
            MatchRequest.model_validate({"player1": {"name": "A", "port": 3001}})

    def test_valid(self):
        request = MatchRequest.model_validate(
            {"player1": {"name": "A", "port": 3001}, "player2": {"name": "B", "port": 3002}}
        )
        assert request.board_dimension == 3


class TestTournamentRequest:
    def test_roster_or_size_required(self):
        with pytest.raises(ValidationError):
            TournamentRequest.model_validate({})

    def test_total_players(self):
        request = TournamentRequest.model_validate(
            {"totalPlayers": 6, "includeRandom": True, "humanName": "Ana"}
        )
        assert request.total_players == 6
        assert request.include_random
        assert request.human_name == "Ana"

    @pytest.mark.parametrize("total", [1, 13])
    def test_total_players_bounds(self, total):
        with pytest.raises(ValidationError):
            TournamentRequest.model_validate({"totalPlayers": total})

    def test_roster_bounds(self):
        with pytest.raises(ValidationError):
            TournamentRequest.model_validate({"players": [{"name": "A", "port": 3001}]})

    def test_unsafe_human_name(self):
        with pytest.raises(ValidationError):
            TournamentRequest.model_validate({"totalPlayers": 4, "humanName": "<script>x"})


class TestReplies:
    @pytest.mark.parametrize("raw,expected", [(4, 4), ("4", 4), (" 7 ", 7), (2.0, 2)])
    def test_move_coercion(self, raw, expected):
        assert MoveReply(move=raw).move == expected

    def test_health_status(self):
        assert PlayerHealth(status="ok").is_healthy
        assert not PlayerHealth(status="starting").is_healthy
