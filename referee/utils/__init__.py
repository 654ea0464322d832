"""Utility modules."""

from referee.utils.errors import (
    BracketError,
    ErrorCode,
    MatchExecutionError,
    RefereeError,
    TournamentCancelledError,
    TransportError,
    ValidationError,
)

__all__ = [
    "BracketError",
    "ErrorCode",
    "MatchExecutionError",
    "RefereeError",
    "TournamentCancelledError",
    "TransportError",
    "ValidationError",
]
