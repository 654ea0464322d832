"""Custom exception classes for referee errors.

Provides structured error handling with error codes and user-facing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes for referee errors."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Validation errors
    INVALID_PLAYERS = "INVALID_PLAYERS"
    INVALID_MOVE = "INVALID_MOVE"
    INVALID_RESPONSE = "INVALID_RESPONSE"

    # Transport errors
    PLAYER_TIMEOUT = "PLAYER_TIMEOUT"
    PLAYER_HTTP_ERROR = "PLAYER_HTTP_ERROR"
    PLAYER_UNREACHABLE = "PLAYER_UNREACHABLE"

    # Tournament errors
    MATCH_FAILED = "MATCH_FAILED"
    BRACKET_INCOMPLETE = "BRACKET_INCOMPLETE"
    TOURNAMENT_CANCELLED = "TOURNAMENT_CANCELLED"


class RefereeError(Exception):
    """Base exception for referee errors.

    Attributes:
        code: Error code for programmatic handling
        message: User-facing error message
        details: Additional error details
        recoverable: Whether the tournament can go on after this error
    """

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "errorCode": self.code,
            "errorMessage": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


class ValidationError(RefereeError):
    """Raised for a bad player list, move or request before any network call."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INVALID_PLAYERS,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            code=code,
            message=message,
            details=details,
            recoverable=False,
        )


class TransportError(RefereeError):
    """Timeout, unreachable bot or non-2xx response.

    Never raised across the player adapter boundary; the adapter turns it
    into a structured move result.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PLAYER_UNREACHABLE,
        status_code: int | None = None,
        player: str | None = None,
    ):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["statusCode"] = status_code
        if player is not None:
            details["player"] = player
        self.status_code = status_code
        super().__init__(
            code=code,
            message=message,
            details=details,
            recoverable=True,
        )


class MatchExecutionError(RefereeError):
    """Raised when the arbitrator fails to play a match."""

    def __init__(self, player1: str, player2: str, cause: BaseException):
        super().__init__(
            code=ErrorCode.MATCH_FAILED,
            message=str(cause) or type(cause).__name__,
            details={"player1": player1, "player2": player2},
            recoverable=True,
        )
        self.__cause__ = cause


class BracketError(RefereeError):
    """Raised when a round is read before the previous one resolved."""

    def __init__(self, message: str, round_number: int | None = None):
        super().__init__(
            code=ErrorCode.BRACKET_INCOMPLETE,
            message=message,
            details={"round": round_number} if round_number is not None else {},
            recoverable=False,
        )


class TournamentCancelledError(RefereeError):
    """Raised when a running tournament is cancelled."""

    def __init__(self, completed_rounds: int):
        super().__init__(
            code=ErrorCode.TOURNAMENT_CANCELLED,
            message="Tournament cancelled",
            details={"completedRounds": completed_rounds},
            recoverable=False,
        )
        self.completed_rounds = completed_rounds
