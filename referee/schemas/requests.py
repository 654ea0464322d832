"""Match and tournament request schemas."""

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from referee.tournament.contracts import get_speed_delay
from referee.tournament.models import BOARD_SIZES, Player, TournamentOptions

# Markup that must never reach a bracket screen through a player name
UNSAFE_NAME_PATTERN = re.compile(r"<script|javascript:|on\w+\s*=", re.IGNORECASE)


def _check_safe_name(v: str) -> str:
    if UNSAFE_NAME_PATTERN.search(v):
        raise ValueError("Name contains characters that are not allowed")
    return v


# =============================================================================
# Players
# =============================================================================


class PlayerSpec(BaseModel):
    """A player service as submitted by a client."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=50)
    port: int = Field(..., ge=1, le=65535)
    host: str | None = Field(default=None, max_length=253)
    protocol: Literal["http", "https"] | None = None
    is_human: bool = Field(default=False, alias="isHuman")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_safe_name(v)

    def to_player(self) -> Player:
        return Player(
            name=self.name,
            port=self.port,
            host=self.host,
            protocol=self.protocol,
            is_human=self.is_human,
        )


# =============================================================================
# Shared options
# =============================================================================


class GameOptionsRequest(BaseModel):
    """Options common to match and tournament requests."""

    model_config = ConfigDict(populate_by_name=True)

    timeout_ms: int | None = Field(default=None, ge=100, le=30000, alias="timeoutMs")
    board_size: Literal["3x3", "5x5"] | None = Field(default=None, alias="boardSize")
    no_tie: bool | None = Field(default=None, alias="noTie")
    speed: Literal["slow", "normal", "fast"] | None = None

    @property
    def board_dimension(self) -> int:
        return BOARD_SIZES.get(self.board_size or "3x3", 3)

    def to_options(self, **overrides) -> TournamentOptions:
        """Translate into per-run tournament options."""
        values = {
            "board_size": self.board_dimension,
            "no_tie": bool(self.no_tie),
        }
        if self.timeout_ms is not None:
            values["timeout_ms"] = self.timeout_ms
        if self.speed is not None:
            values["match_delay_ms"] = get_speed_delay(self.speed)
        values.update(overrides)
        return TournamentOptions(**values)


class MatchRequest(GameOptionsRequest):
    """Start a single match."""

    player1: PlayerSpec
    player2: PlayerSpec


class TournamentRequest(GameOptionsRequest):
    """
    Start a tournament.

    Either an explicit roster, or a roster size with the setup screen's
    choices (Random bot, human player) for the coordinator to build.
    """

    players: list[PlayerSpec] | None = Field(default=None, min_length=2, max_length=12)
    total_players: int | None = Field(default=None, ge=2, le=12, alias="totalPlayers")
    include_random: bool = Field(default=False, alias="includeRandom")
    human_name: str | None = Field(
        default=None,
        min_length=1,
        max_length=32,
        alias="humanName",
    )

    @field_validator("human_name")
    @classmethod
    def validate_human_name(cls, v: str | None) -> str | None:
        if v is not None:
            _check_safe_name(v)
        return v

    @model_validator(mode="after")
    def validate_roster_source(self) -> "TournamentRequest":
        if self.players is None and self.total_players is None:
            raise ValueError("Either players or totalPlayers is required")
        return self
