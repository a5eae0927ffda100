"""Process configuration helpers: env files, listen address and metrics path."""

from __future__ import annotations

import re
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ValidationError
from .logging import get_logger
from .settings import AppSettings, get_settings

LOGGER = get_logger(__name__)

ALL_INTERFACES_HOST = "0.0.0.0"
LISTEN_ADDRESS_PATTERN = re.compile(r"^(?:\[(?P<ipv6>[^\]]+)\]|(?P<host>[^:\[\]]*)):(?P<port>\d+)$")


def load_env_file(path: str | Path | None = None, settings: AppSettings | None = None) -> bool:
    """Load environment variables from an env file into the process environment.

    Variables that are already set in the process environment take precedence.
    A missing or unreadable file is logged and otherwise ignored.

    Args:
        path: Explicit env file path. When omitted, the settings-derived
            default (``.env`` in the working directory) is used.
        settings: Settings used to resolve the default path.

    Returns:
        True if a file was read, False otherwise.
    """
    if path:
        env_path = Path(path).expanduser().resolve()
        LOGGER.info("Loading %s env file.", env_path, extra={"env_file": str(env_path)})
    else:
        resolved_settings = settings or get_settings()
        env_path = resolved_settings.config.resolve_env_path()

    if not env_path.is_file():
        if path:
            LOGGER.error("Error loading %s env file.", env_path, extra={"env_file": str(env_path)})
        else:
            LOGGER.info("No %s file found, assuming environment variables are set.", env_path)
        return False

    try:
        load_dotenv(env_path, override=False)
    except OSError as exc:
        LOGGER.error(
            "Error loading %s env file: %s",
            env_path,
            exc,
            extra={"env_file": str(env_path)},
        )
        return False

    return True


def parse_listen_address(value: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address into its parts.

    An empty host (``:9101``) binds all interfaces. IPv6 hosts must be
    bracketed (``[::1]:9101``).

    Raises:
        ValidationError: If the address is malformed or the port is out of range.
    """
    match = LISTEN_ADDRESS_PATTERN.match(value.strip())

    if match is None:
        raise ValidationError(
            f"Invalid listen address '{value}'; expected host:port.",
            config_key="listen_address",
            value=value,
            expected_type="host:port",
        )

    host = match.group("ipv6") or match.group("host") or ALL_INTERFACES_HOST
    port = int(match.group("port"))

    if not 0 < port < 65536:
        raise ValidationError(
            f"Invalid listen port {port}; must be between 1 and 65535.",
            config_key="listen_address",
            value=value,
        )

    return host, port


def normalize_metrics_path(value: str) -> str:
    """Return the metrics path with a leading slash and no trailing slash."""

    path = value.strip()

    if not path or path == "/":
        raise ValidationError(
            "Metrics path must name a resource, e.g. /metrics.",
            config_key="metrics_path",
            value=value,
        )

    if not path.startswith("/"):
        path = f"/{path}"

    return path.rstrip("/")


def normalize_endpoint(value: str) -> str:
    """Strip whitespace and trailing slashes from the upstream base URL."""

    return value.strip().rstrip("/")


__all__ = [
    "load_env_file",
    "normalize_endpoint",
    "normalize_metrics_path",
    "parse_listen_address",
]
