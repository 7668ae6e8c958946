"""Application settings and environment-driven configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _as_int(value: str | None, default: int) -> int:
    """Convert a string value to an integer, returning default on failure."""
    if value is None:
        return default

    try:
        return int(value)
    except ValueError:
        return default


def _as_optional_float(value: str | None) -> float | None:
    """Convert a string value to a positive float, or None when unset or invalid."""
    if value is None or not value.strip():
        return None

    try:
        parsed = float(value)
    except ValueError:
        return None

    return parsed if parsed > 0 else None


def _as_bool(value: str | None, default: bool) -> bool:
    """Convert a string value to a boolean, returning default on failure.

    Recognizes truthy values: "1", "true", "yes", "on" (case-insensitive).
    Recognizes falsy values: "0", "false", "no", "off" (case-insensitive).
    """
    if value is None:
        return default

    normalized = value.strip().lower()

    if normalized in {"1", "true", "yes", "on"}:
        return True

    if normalized in {"0", "false", "no", "off"}:
        return False

    return default


@dataclass(slots=True)
class LoggingSettings:
    level: str
    format: str
    color_enabled: bool


@dataclass(slots=True)
class PollerSettings:
    interval_ms: int
    rpc_request_timeout_seconds: float | None

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000


@dataclass(slots=True)
class ServerSettings:
    host: str
    metrics_port: int


@dataclass(slots=True)
class AppSettings:
    logging: LoggingSettings
    poller: PollerSettings
    server: ServerSettings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    logging_settings = LoggingSettings(
        level=os.getenv("LOG_LEVEL", "info").lower(),
        format=os.getenv("LOG_FORMAT", "text").lower(),
        color_enabled=_as_bool(os.getenv("LOG_COLOR_ENABLED"), True),
    )

    poller_settings = PollerSettings(
        interval_ms=_as_int(os.getenv("POLL_INTERVAL_MS"), 1000),
        rpc_request_timeout_seconds=_as_optional_float(os.getenv("RPC_REQUEST_TIMEOUT_SECONDS")),
    )

    server_settings = ServerSettings(
        host="0.0.0.0",
        metrics_port=_as_int(os.getenv("METRICS_PORT"), 2112),
    )

    return AppSettings(
        logging=logging_settings,
        poller=poller_settings,
        server=server_settings,
    )


def reset_settings_cache() -> None:
    """Clear the settings cache so the environment is read again."""

    get_settings.cache_clear()


__all__ = ["AppSettings", "LoggingSettings", "PollerSettings", "ServerSettings", "get_settings", "reset_settings_cache"]
