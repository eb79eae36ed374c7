"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_KEEPALIVE_REFERENCES = [
    "John 3:16",
    "Psalm 23:1",
    "Proverbs 3:5-6",
    "Romans 8:28",
    "Philippians 4:13",
    "Isaiah 40:31",
    "Jeremiah 29:11",
    "Matthew 11:28",
]


class Settings(BaseSettings):
    """Relay service settings loaded from the environment and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # The monitored chat room. Without it the relay has nothing to do.
    tiktok_username: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("TIKTOK_USERNAME", "tiktok_username"),
    )
    admin_token: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("ADMIN_TOKEN", "admin_token"),
    )

    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "port"),
    )

    global_min_interval_seconds: float = Field(
        default=12.0,
        ge=0,
        validation_alias=AliasChoices(
            "GLOBAL_MIN_INTERVAL_SECONDS", "global_min_interval_seconds"
        ),
    )
    user_cooldown_seconds: float = Field(
        default=75.0,
        ge=0,
        validation_alias=AliasChoices("USER_COOLDOWN_SECONDS", "user_cooldown_seconds"),
    )
    max_range_span: int = Field(
        default=5,
        ge=0,
        validation_alias=AliasChoices("MAX_RANGE_SPAN", "max_range_span"),
    )

    keepalive_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        validation_alias=AliasChoices(
            "KEEPALIVE_INTERVAL_SECONDS", "keepalive_interval_seconds"
        ),
    )
    keepalive_quiet_gap_seconds: float = Field(
        default=55.0,
        ge=0,
        validation_alias=AliasChoices(
            "KEEPALIVE_QUIET_GAP_SECONDS", "keepalive_quiet_gap_seconds"
        ),
    )
    keepalive_references: list[str] = Field(
        default_factory=lambda: list(DEFAULT_KEEPALIVE_REFERENCES),
        min_length=1,
        validation_alias=AliasChoices("KEEPALIVE_REFERENCES", "keepalive_references"),
    )

    chat_reconnect_seconds: float = Field(
        default=15.0,
        gt=0,
        validation_alias=AliasChoices("CHAT_RECONNECT_SECONDS", "chat_reconnect_seconds"),
    )
    chat_request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices(
            "CHAT_REQUEST_TIMEOUT_SECONDS", "chat_request_timeout_seconds"
        ),
    )


class PlayerSettings(BaseSettings):
    """Settings for the playback client."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    relay_ws_url: str = Field(
        default="ws://localhost:8080/ws",
        validation_alias=AliasChoices("RELAY_WS_URL", "relay_ws_url"),
    )
    lookup_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://bible-api.com"),
        validation_alias=AliasChoices("LOOKUP_BASE_URL", "lookup_base_url"),
    )
    lookup_translation: str = Field(
        default="kjv",
        validation_alias=AliasChoices("LOOKUP_TRANSLATION", "lookup_translation"),
    )
    lookup_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("LOOKUP_TIMEOUT_SECONDS", "lookup_timeout_seconds"),
    )
    inter_item_gap_seconds: float = Field(
        default=1.0,
        ge=0,
        validation_alias=AliasChoices("INTER_ITEM_GAP_SECONDS", "inter_item_gap_seconds"),
    )
    speech_watchdog_seconds: float = Field(
        default=15.0,
        gt=0,
        validation_alias=AliasChoices(
            "SPEECH_WATCHDOG_SECONDS", "speech_watchdog_seconds"
        ),
    )
    presentation_fallback_seconds: float = Field(
        default=4.0,
        ge=0,
        validation_alias=AliasChoices(
            "PRESENTATION_FALLBACK_SECONDS", "presentation_fallback_seconds"
        ),
    )
    reconnect_seconds: float = Field(
        default=2.5,
        gt=0,
        validation_alias=AliasChoices("RECONNECT_SECONDS", "reconnect_seconds"),
    )
    # pyttsx3 words per minute
    speech_rate: int = Field(
        default=190,
        ge=50,
        le=400,
        validation_alias=AliasChoices("SPEECH_RATE", "speech_rate"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


@lru_cache(maxsize=1)
def get_player_settings() -> PlayerSettings:
    """Return a cached `PlayerSettings` instance."""

    return PlayerSettings()


__all__ = ["PlayerSettings", "Settings", "get_player_settings", "get_settings"]
