"""Application settings for the session server and tests."""

from __future__ import annotations

from pydantic import Field
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Typed settings loaded from environment variables or explicit kwargs."""

    hotpotato_app_host: str = "127.0.0.1"
    hotpotato_app_port: int = Field(default=8080, ge=1)
    hotpotato_log_level: str = "INFO"
    hotpotato_cors_allow_origins: str = "*"

    hotpotato_min_players: int = Field(default=2, ge=2)
    hotpotato_max_players: int = Field(default=4, ge=2)
    hotpotato_name_min_length: int = Field(default=2, ge=1)
    hotpotato_name_max_length: int = Field(default=17, ge=1)

    hotpotato_round_min_ms: int = Field(default=10_000, ge=1)
    hotpotato_round_max_ms: int = Field(default=30_000, ge=1)
    hotpotato_countdown_ms: int = Field(default=0, ge=0)
    hotpotato_disconnect_grace_ms: int = Field(default=5_000, ge=0)
    hotpotato_sweep_interval_ms: int = Field(default=100, ge=1)

    hotpotato_heartbeat_interval_seconds: float = Field(default=30.0, ge=0)
    hotpotato_heartbeat_pong_timeout_seconds: float = Field(default=10.0, gt=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "Settings":
        """Reject inverted min/max pairs."""
        if self.hotpotato_min_players > self.hotpotato_max_players:
            raise ValueError("HOTPOTATO_MIN_PLAYERS must not exceed HOTPOTATO_MAX_PLAYERS")
        if self.hotpotato_name_min_length > self.hotpotato_name_max_length:
            raise ValueError(
                "HOTPOTATO_NAME_MIN_LENGTH must not exceed HOTPOTATO_NAME_MAX_LENGTH"
            )
        if self.hotpotato_round_min_ms > self.hotpotato_round_max_ms:
            raise ValueError("HOTPOTATO_ROUND_MIN_MS must not exceed HOTPOTATO_ROUND_MAX_MS")
        return self

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.hotpotato_cors_allow_origins.split(",") if origin.strip()]


def load_settings() -> Settings:
    """Load settings from process environment."""
    return Settings()
