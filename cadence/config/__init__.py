"""
Configuration management for Cadence.

This module loads client settings (server address, reader limits, the
reconnect policy used by the command line tool) from TOML files.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6600
DEFAULT_READ_LIMIT = 1024 * 1024


@dataclass
class ClientConfig:
    """Loaded client configuration."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    read_limit: int = DEFAULT_READ_LIMIT
    reconnect_attempts: int = 3
    reconnect_delay: float = 1.0

    @property
    def address(self) -> str:
        """host:port for display."""
        return f"{self.host}:{self.port}"


def _get_number(
    section: dict[str, Any],
    key: str,
    kind: type[int] | type[float],
    default: int | float,
    minimum: int | float = 0,
) -> Any:
    """Read a numeric setting, falling back to default on bad input."""
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning("Invalid %s %r in config, using %r", key, value, default)
        return default
    if value < minimum:
        logger.warning("%s must be >= %s, got %r; using %r", key, minimum, value, default)
        return default
    return kind(value)


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """
    Load client configuration from a TOML file.

    Args:
        config_path: Path to a config file. If None, uses the bundled defaults.

    Returns:
        Loaded ClientConfig instance.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "client.toml"

    logger.debug("Loading client config from %s", config_path)

    with config_path.open("rb") as f:
        data = tomllib.load(f)

    connection = data.get("connection", {})
    reconnect = data.get("reconnect", {})

    host = connection.get("host", DEFAULT_HOST)
    if not isinstance(host, str) or not host:
        logger.warning("Invalid host %r in config, using %r", host, DEFAULT_HOST)
        host = DEFAULT_HOST

    return ClientConfig(
        host=host,
        port=_get_number(connection, "port", int, DEFAULT_PORT, minimum=1),
        read_limit=_get_number(connection, "read_limit", int, DEFAULT_READ_LIMIT, minimum=1),
        reconnect_attempts=_get_number(reconnect, "attempts", int, 3),
        reconnect_delay=_get_number(reconnect, "delay", float, 1.0),
    )


# Global singleton instance (lazy loaded)
_client_config: ClientConfig | None = None


def get_client_config() -> ClientConfig:
    """
    Get the global client configuration (lazy loaded singleton).

    Returns:
        The ClientConfig instance.
    """
    global _client_config

    if _client_config is None:
        _client_config = load_client_config()

    return _client_config


def reload_client_config(config_path: Path | None = None) -> ClientConfig:
    """
    Force reload of client configuration.

    Returns:
        The newly loaded ClientConfig instance.
    """
    global _client_config
    _client_config = load_client_config(config_path)
    return _client_config
