"""Pydantic schemas for requests and player service replies."""

from referee.schemas.requests import (
    GameOptionsRequest,
    MatchRequest,
    PlayerSpec,
    TournamentRequest,
)
from referee.schemas.responses import MoveReply, PlayerHealth, PlayerInfo

__all__ = [
    "GameOptionsRequest",
    "MatchRequest",
    "PlayerSpec",
    "TournamentRequest",
    "MoveReply",
    "PlayerHealth",
    "PlayerInfo",
]
