"""Configuration helpers for the client state layer."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class ClientSettings:
    api_base_url: str
    timeout_seconds: float
    storage_path: str | None
    database_url: str | None
    persist_key: str
    discard_stale_settlements: bool

    def validate(self) -> None:
        if not self.api_base_url.startswith(("http://", "https://")):
            raise ConfigurationError("BOOKINGDESK_API_BASE_URL must be an http(s) URL")
        if self.timeout_seconds <= 0:
            raise ConfigurationError("BOOKINGDESK_TIMEOUT_SECONDS must be greater than 0")
        if not self.persist_key:
            raise ConfigurationError("BOOKINGDESK_PERSIST_KEY must not be empty")


def load_settings() -> ClientSettings:
    timeout_raw = os.getenv("BOOKINGDESK_TIMEOUT_SECONDS", "10")
    try:
        timeout_seconds = float(timeout_raw)
    except ValueError as exc:
        raise ConfigurationError(f"BOOKINGDESK_TIMEOUT_SECONDS is not a number: {timeout_raw!r}") from exc

    settings = ClientSettings(
        api_base_url=os.getenv("BOOKINGDESK_API_BASE_URL", "http://localhost:3000").strip().rstrip("/"),
        timeout_seconds=timeout_seconds,
        storage_path=os.getenv("BOOKINGDESK_STORAGE_PATH") or None,
        database_url=os.getenv("BOOKINGDESK_DATABASE_URL") or None,
        persist_key=os.getenv("BOOKINGDESK_PERSIST_KEY", "root").strip(),
        discard_stale_settlements=os.getenv("BOOKINGDESK_DISCARD_STALE", "0").strip().lower() in _TRUTHY,
    )
    settings.validate()
    return settings
