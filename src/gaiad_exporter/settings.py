"""Application settings and environment-driven configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_LISTEN_ADDRESS = ":9101"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0


def _as_float(value: str | None, default: float) -> float:
    """Convert a string value to a float, returning default on failure.

    Args:
        value: String value to convert, or None.
        default: Default value to return if conversion fails.

    Returns:
        Converted float value, or default if conversion fails.
    """
    if value is None:
        return default

    try:
        return float(value)
    except ValueError:
        return default


def _as_bool(value: str | None, default: bool) -> bool:
    """Convert a string value to a boolean, returning default on failure.

    Recognizes truthy values: "1", "true", "yes", "on" (case-insensitive).
    Recognizes falsy values: "0", "false", "no", "off" (case-insensitive).

    Args:
        value: String value to convert, or None.
        default: Default value to return if conversion fails.

    Returns:
        Converted boolean value, or default if conversion fails.
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
class UpstreamSettings:
    endpoint: str
    insecure_skip_verify: bool
    request_timeout_seconds: float

    @property
    def timeout(self) -> float | None:
        """Timeout passed to requests; None disables it."""

        if self.request_timeout_seconds <= 0:
            return None

        return self.request_timeout_seconds


@dataclass(slots=True)
class ServerSettings:
    listen_address: str
    metrics_path: str


@dataclass(slots=True)
class ConfigSettings:
    env_file_path: str | None
    default_env_filename: str

    def resolve_env_path(self) -> Path:
        if self.env_file_path:
            return Path(self.env_file_path).expanduser().resolve()

        return Path.cwd().joinpath(self.default_env_filename).resolve()


@dataclass(slots=True)
class AppSettings:
    logging: LoggingSettings
    upstream: UpstreamSettings
    server: ServerSettings
    config: ConfigSettings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    logging_settings = LoggingSettings(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format=os.getenv("LOG_FORMAT", "text").lower(),
        color_enabled=_as_bool(os.getenv("LOG_COLOR_ENABLED"), True),
    )

    upstream_settings = UpstreamSettings(
        endpoint=os.getenv("GAIAD_ENDPOINT", ""),
        insecure_skip_verify=_as_bool(os.getenv("GAIAD_TLS_INSECURE_SKIP_VERIFY"), False),
        request_timeout_seconds=_as_float(
            os.getenv("GAIAD_REQUEST_TIMEOUT_SECONDS"),
            DEFAULT_REQUEST_TIMEOUT_SECONDS,
        ),
    )

    server_settings = ServerSettings(
        listen_address=os.getenv("LISTEN_ADDRESS", DEFAULT_LISTEN_ADDRESS),
        metrics_path=os.getenv("METRICS_PATH", DEFAULT_METRICS_PATH),
    )

    config_settings = ConfigSettings(
        env_file_path=os.getenv("GAIAD_EXPORTER_ENV_FILE") or None,
        default_env_filename=".env",
    )

    return AppSettings(
        logging=logging_settings,
        upstream=upstream_settings,
        server=server_settings,
        config=config_settings,
    )


def reset_settings_cache() -> None:
    """Clear the settings cache so the environment is read again."""

    get_settings.cache_clear()


__all__ = [
    "AppSettings",
    "ConfigSettings",
    "LoggingSettings",
    "ServerSettings",
    "UpstreamSettings",
    "get_settings",
    "reset_settings_cache",
]
