import pytest
from pydantic import ValidationError

from verse_relay.config import DEFAULT_KEEPALIVE_REFERENCES, PlayerSettings, Settings


def test_settings_require_tiktok_username(monkeypatch) -> None:
    monkeypatch.delenv("TIKTOK_USERNAME", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)  # pyright: ignore[reportCallIssue]


def test_settings_defaults(monkeypatch) -> None:
    for name in ("ADMIN_TOKEN", "PORT", "GLOBAL_MIN_INTERVAL_SECONDS", "USER_COOLDOWN_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TIKTOK_USERNAME", "somehost")

    settings = Settings(_env_file=None)  # pyright: ignore[reportCallIssue]

    assert settings.tiktok_username == "somehost"
    assert settings.admin_token is None
    assert settings.port == 8080
    assert settings.global_min_interval_seconds == 12
    assert settings.user_cooldown_seconds == 75
    assert settings.max_range_span == 5
    assert settings.keepalive_interval_seconds == 60
    assert settings.keepalive_quiet_gap_seconds == 55
    assert settings.keepalive_references == DEFAULT_KEEPALIVE_REFERENCES


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("TIKTOK_USERNAME", "otherhost")
    monkeypatch.setenv("ADMIN_TOKEN", "hunter2")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("KEEPALIVE_REFERENCES", '["John 3:16"]')

    settings = Settings(_env_file=None)  # pyright: ignore[reportCallIssue]

    assert settings.admin_token is not None
    assert settings.admin_token.get_secret_value() == "hunter2"
    assert settings.port == 9000
    assert settings.keepalive_references == ["John 3:16"]


def test_player_settings_defaults(monkeypatch) -> None:
    for name in ("RELAY_WS_URL", "LOOKUP_TRANSLATION", "RECONNECT_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = PlayerSettings(_env_file=None)  # pyright: ignore[reportCallIssue]

    assert settings.relay_ws_url == "ws://localhost:8080/ws"
    assert str(settings.lookup_base_url).startswith("https://bible-api.com")
    assert settings.lookup_translation == "kjv"
    assert settings.reconnect_seconds == 2.5
    assert settings.speech_watchdog_seconds == 15
    assert settings.presentation_fallback_seconds == 4
    assert settings.inter_item_gap_seconds == 1
