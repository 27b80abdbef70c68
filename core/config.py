"""Configuration loading from environment variables.

This module handles:
- Reading bridge settings (HUE_BRIDGE_IP, HUE_USERNAME, HUE_AUTO_DISCOVER)
- Reading REST server, rate limit and timeout settings
- Producing a single read-only HueConfig for the process
"""

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_TIMEOUT = 5.0
DEFAULT_API_HOST = '0.0.0.0'
DEFAULT_API_PORT = 8080
DEFAULT_RATE_LIMIT = 100
DEFAULT_RATE_WINDOW = 60.0

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


class ConfigError(ValueError):
    """An environment variable holds a value that cannot be parsed."""


@dataclass(frozen=True)
class HueConfig:
    """Process configuration, built once at startup."""
    bridge_ip: str | None = None
    username: str | None = None
    auto_discover: bool = True
    timeout: float = DEFAULT_TIMEOUT
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    rate_limit: int = DEFAULT_RATE_LIMIT
    rate_window: float = DEFAULT_RATE_WINDOW


def parse_bool(name: str, value: str | None, default: bool) -> bool:
    """Parse a boolean environment value.

    Args:
        name: Variable name, used in the error message
        value: Raw value, or None if the variable is unset
        default: Value used when the variable is unset

    Returns:
        Parsed boolean

    Raises:
        ConfigError: If the value is not a recognised boolean
    """
    if value is None:
        return default
    normalised = value.strip().lower()
    if normalised in TRUE_VALUES:
        return True
    if normalised in FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be true or false, got '{value}'")


def _optional(value: str | None) -> str | None:
    # Empty strings count as unset
    if value is None:
        return None
    value = value.strip()
    return value or None


def _number(name: str, value: str | None, default, cast):
    if _optional(value) is None:
        return default
    try:
        return cast(value.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{value}'") from None


def load_config(environ: Mapping[str, str] | None = None) -> HueConfig:
    """Build the process configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Frozen HueConfig

    Raises:
        ConfigError: If a boolean or numeric variable is malformed
    """
    if environ is None:
        environ = os.environ

    return HueConfig(
        bridge_ip=_optional(environ.get('HUE_BRIDGE_IP')),
        username=_optional(environ.get('HUE_USERNAME')),
        auto_discover=parse_bool('HUE_AUTO_DISCOVER', environ.get('HUE_AUTO_DISCOVER'), True),
        timeout=_number('HUE_TIMEOUT', environ.get('HUE_TIMEOUT'), DEFAULT_TIMEOUT, float),
        api_host=_optional(environ.get('HUE_API_HOST')) or DEFAULT_API_HOST,
        api_port=_number('HUE_API_PORT', environ.get('HUE_API_PORT'), DEFAULT_API_PORT, int),
        rate_limit=_number('HUE_API_RATE_LIMIT', environ.get('HUE_API_RATE_LIMIT'), DEFAULT_RATE_LIMIT, int),
        rate_window=_number('HUE_API_RATE_WINDOW', environ.get('HUE_API_RATE_WINDOW'), DEFAULT_RATE_WINDOW, float),
    )
