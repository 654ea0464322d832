"""Player service response schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Move Responses
# =============================================================================


class MoveReply(BaseModel):
    """Normalised move reply.

    Legacy bots answer with the move under different keys; the player
    adapter maps them onto this single shape before validating.
    """

    move: int = Field(..., description="Board cell index")

    @field_validator("move", mode="before")
    @classmethod
    def coerce_move(cls, v: Any) -> int:
        """Accept ints, integral floats and numeric strings."""
        if isinstance(v, bool):
            raise ValueError("Move must be a number")
        if isinstance(v, int):
            return v
        if isinstance(v, float) and v.is_integer():
            return int(v)
        if isinstance(v, str):
            text = v.strip()
            if text.lstrip("+-").isdigit():
                return int(text)
        raise ValueError("Move must be a number")


# =============================================================================
# Probe Responses
# =============================================================================


class PlayerHealth(BaseModel):
    """GET /health reply."""

    model_config = ConfigDict(extra="ignore")

    status: str
    player: str | None = None
    timestamp: str | None = None

    @property
    def is_healthy(self) -> bool:
        return self.status in ("healthy", "ok")


class PlayerInfo(BaseModel):
    """GET /info reply."""

    model_config = ConfigDict(extra="ignore")

    name: str
    strategy: str | None = None
    version: str | None = None
    port: int | None = None

    @field_validator("port", mode="before")
    @classmethod
    def coerce_port(cls, v: Any) -> Any:
        # bots echo process.env.PORT, which arrives as a string
        if isinstance(v, str) and v.isdigit():
            return int(v)
        return v
