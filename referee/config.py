"""Application configuration."""
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Referee settings."""

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    json_logs: bool = False

    # Tournament
    min_players: int = Field(
        default=2,
        description="Smallest roster a tournament accepts",
    )
    max_players: int = Field(
        default=12,
        description="Largest roster a tournament accepts",
    )
    max_concurrent_matches: int = Field(
        default=1,
        description="Matches of one round played at the same time (1 = sequential)",
    )

    # Player services
    min_player_port: int = 3000
    max_player_port: int = 9999
    default_player_host: str = "localhost"
    default_player_protocol: str = "http"

    # Timeouts (milliseconds)
    default_timeout_ms: int = Field(
        default=3000,
        description="Per-move timeout handed to the arbitrator",
    )
    move_request_timeout_ms: int = Field(
        default=30000,
        description="Fallback timeout for a move request with no explicit timeout",
    )
    min_request_timeout_ms: int = 100
    max_request_timeout_ms: int = 30000

    # HTTP retries
    http_max_retries: int = Field(
        default=1,
        description="Attempts per move request (1 = no retry)",
    )
    probe_max_retries: int = Field(
        default=3,
        description="Attempts for /health and /info probes",
    )

    # Event bus
    event_stream_queue_size: int = 1000

    @field_validator("default_player_protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        """Only plain and TLS HTTP are spoken to player services."""
        if v not in ("http", "https"):
            raise ValueError("default_player_protocol must be http or https")
        return v

    @field_validator("max_concurrent_matches", "http_max_retries", "probe_max_retries")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Reject inverted bounds."""
        if self.min_players < 2:
            raise ValueError("min_players must be at least 2")
        if self.min_players > self.max_players:
            raise ValueError("min_players must not exceed max_players")
        if self.min_player_port > self.max_player_port:
            raise ValueError("min_player_port must not exceed max_player_port")
        if self.min_request_timeout_ms > self.max_request_timeout_ms:
            raise ValueError(
                "min_request_timeout_ms must not exceed max_request_timeout_ms"
            )
        return self

    model_config = {
        "env_prefix": "REFEREE_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
