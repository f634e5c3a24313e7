import pytest

from bookingdesk.state.config import ConfigurationError, load_settings

ENV_VARS = (
    "BOOKINGDESK_API_BASE_URL",
    "BOOKINGDESK_TIMEOUT_SECONDS",
    "BOOKINGDESK_STORAGE_PATH",
    "BOOKINGDESK_DATABASE_URL",
    "BOOKINGDESK_PERSIST_KEY",
    "BOOKINGDESK_DISCARD_STALE",
)


def _clear_env(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_load_settings_reads_expected_env(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("BOOKINGDESK_API_BASE_URL", "https://api.example.com/")
    monkeypatch.setenv("BOOKINGDESK_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("BOOKINGDESK_STORAGE_PATH", "/tmp/bookingdesk")
    monkeypatch.setenv("BOOKINGDESK_DATABASE_URL", "postgresql://local")
    monkeypatch.setenv("BOOKINGDESK_PERSIST_KEY", "desk")
    monkeypatch.setenv("BOOKINGDESK_DISCARD_STALE", "yes")

    settings = load_settings()

    assert settings.api_base_url == "https://api.example.com"
    assert settings.timeout_seconds == 2.5
    assert settings.storage_path == "/tmp/bookingdesk"
    assert settings.database_url == "postgresql://local"
    assert settings.persist_key == "desk"
    assert settings.discard_stale_settlements is True


def test_load_settings_applies_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)

    settings = load_settings()

    assert settings.api_base_url == "http://localhost:3000"
    assert settings.timeout_seconds == 10
    assert settings.storage_path is None
    assert settings.database_url is None
    assert settings.persist_key == "root"
    assert settings.discard_stale_settlements is False


def test_load_settings_rejects_non_numeric_timeout(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("BOOKINGDESK_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ConfigurationError):
        load_settings()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("BOOKINGDESK_API_BASE_URL", "ftp://api.example.com"),
        ("BOOKINGDESK_TIMEOUT_SECONDS", "0"),
        ("BOOKINGDESK_PERSIST_KEY", "  "),
    ],
)
def test_load_settings_validates_values(monkeypatch, name: str, value: str) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        load_settings()
