"""Error taxonomy tests."""

from referee.utils.errors import (
    BracketError,
    ErrorCode,
    MatchExecutionError,
    TournamentCancelledError,
    TransportError,
    ValidationError,
)


class TestErrors:
    def test_validation_error_is_fatal(self):
        error = ValidationError("A tournament needs at least 2 players", details={"count": 1})
        assert error.to_dict() == {
            "errorCode": "INVALID_PLAYERS",
            "errorMessage": "A tournament needs at least 2 players",
            "details": {"count": 1},
            "recoverable": False,
        }

    def test_transport_error_details(self):
        error = TransportError(
            "Respuesta 502",
            code=ErrorCode.PLAYER_HTTP_ERROR,
            status_code=502,
            player="Bot1",
        )
        assert error.recoverable
        assert error.details == {"statusCode": 502, "player": "Bot1"}
        assert str(error) == "Respuesta 502"

    def test_match_execution_error_keeps_cause(self):
        cause = RuntimeError("arbitrator down")
        error = MatchExecutionError("P1", "P2", cause)
        assert error.__cause__ is cause
        assert error.message == "arbitrator down"
        assert error.code == ErrorCode.MATCH_FAILED.value

    def test_match_execution_error_without_message(self):
        assert MatchExecutionError("P1", "P2", TimeoutError()).message == "TimeoutError"

    def test_bracket_and_cancel(self):
        assert BracketError("empty", round_number=2).details == {"round": 2}
        assert BracketError("empty").details == {}
        cancelled = TournamentCancelledError(1)
        assert cancelled.completed_rounds == 1
        assert cancelled.to_dict()["errorCode"] == "TOURNAMENT_CANCELLED"
