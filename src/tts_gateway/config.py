"""Application configuration using environment variables."""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, AnyHttpUrl, AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "port"),
    )
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )

    minimax_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://www.minimax.io"),
        validation_alias=AliasChoices("MINIMAX_BASE_URL", "minimax_base_url"),
    )
    minimax_ws_url: AnyUrl = Field(
        default_factory=lambda: AnyUrl("wss://www.minimax.io"),
        validation_alias=AliasChoices("MINIMAX_WS_URL", "minimax_ws_url"),
    )
    request_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices("MINIMAX_TIMEOUT", "request_timeout"),
    )
    ws_connect_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices(
            "MINIMAX_WS_CONNECT_TIMEOUT", "ws_connect_timeout"
        ),
    )
    synthesis_timeout: float = Field(
        default=60.0,
        gt=0,
        validation_alias=AliasChoices(
            "MINIMAX_SYNTHESIS_TIMEOUT", "synthesis_timeout"
        ),
    )

    device_identity_ttl_hours: float = Field(
        default=3.0,
        gt=0,
        validation_alias=AliasChoices(
            "DEVICE_IDENTITY_TTL_HOURS", "device_identity_ttl_hours"
        ),
    )
    device_identity_capacity: int = Field(
        default=1024,
        ge=1,
        validation_alias=AliasChoices(
            "DEVICE_IDENTITY_CAPACITY", "device_identity_capacity"
        ),
    )

    default_voice_id: str = Field(
        default="279479307768027",
        validation_alias=AliasChoices("DEFAULT_VOICE_ID", "default_voice_id"),
    )
    default_model: str = Field(
        default="speech-2.6-hd",
        validation_alias=AliasChoices("DEFAULT_MODEL", "default_model"),
    )
    default_language_boost: str = Field(
        default="Chinese (Mandarin)",
        validation_alias=AliasChoices(
            "DEFAULT_LANGUAGE_BOOST", "default_language_boost"
        ),
    )

    @property
    def device_identity_ttl(self) -> timedelta:
        return timedelta(hours=self.device_identity_ttl_hours)

    @property
    def base_url(self) -> str:
        """Return the vendor HTTP origin without a trailing slash."""

        return str(self.minimax_base_url).rstrip("/")

    @property
    def ws_url(self) -> str:
        return str(self.minimax_ws_url).rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
