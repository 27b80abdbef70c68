"""Bridge bootstrap: configuration, discovery fallback and connection check.

The bootstrap runs once at process start. It moves through four steps in
order (resolve config, discover, validate config, connect) and stops at the
first failure. It never exits the process: it returns a BootstrapResult and
the caller decides whether to terminate or report the error another way.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import click

from core.client import HueClient
from core.config import HueConfig
from core.discovery import BridgeDiscovery
from core.exceptions import AuthenticationException


class BootstrapError(Enum):
    DISCOVERY_EMPTY = 'discovery_empty'
    CONFIG_MISSING = 'config_missing'
    BRIDGE_UNREACHABLE = 'bridge_unreachable'
    AUTHENTICATION_FAILURE = 'authentication_failure'
    UNKNOWN_ERROR = 'unknown_error'


@dataclass(frozen=True)
class BootstrapResult:
    """Either a verified client or an error kind with a user-facing message."""
    client: HueClient | None = None
    error: BootstrapError | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.client is not None and self.error is None

    @classmethod
    def failure(cls, error: BootstrapError, message: str) -> 'BootstrapResult':
        return cls(error=error, message=message)


def bootstrap(config: HueConfig,
              discovery: BridgeDiscovery | None = None,
              client_factory: Callable[..., HueClient] = HueClient) -> BootstrapResult:
    """Resolve a bridge and return a client that has passed a live check.

    Args:
        config: Process configuration
        discovery: Discovery used when no bridge IP is configured
            (defaults to BridgeDiscovery with the configured timeout)
        client_factory: Builds the client from (bridge_ip, username, timeout=...)

    Returns:
        BootstrapResult holding the connected client, or the failure
    """
    bridge_ip = config.bridge_ip

    if not bridge_ip and config.auto_discover:
        click.echo("Auto-discovering Hue Bridge...")
        if discovery is None:
            discovery = BridgeDiscovery(timeout=config.timeout)

        bridges = discovery.discover()
        if not bridges:
            return BootstrapResult.failure(
                BootstrapError.DISCOVERY_EMPTY,
                "No Hue bridges found. Please set HUE_BRIDGE_IP environment variable.",
            )

        bridge_ip = bridges[0].ip
        click.echo(f"Found bridge at: {bridge_ip}")

    if not bridge_ip:
        return BootstrapResult.failure(
            BootstrapError.CONFIG_MISSING,
            "Bridge IP not configured. Please set HUE_BRIDGE_IP environment variable.",
        )

    if not config.username:
        return BootstrapResult.failure(
            BootstrapError.CONFIG_MISSING,
            "Username not configured. Please set HUE_USERNAME environment variable "
            "or run the 'register' command.",
        )

    try:
        client = client_factory(bridge_ip, config.username, timeout=config.timeout)
        if not client.is_connected():
            return BootstrapResult.failure(
                BootstrapError.BRIDGE_UNREACHABLE,
                f"Cannot connect to Hue Bridge at {bridge_ip}",
            )
    except AuthenticationException as e:
        return BootstrapResult.failure(
            BootstrapError.AUTHENTICATION_FAILURE,
            f"Error starting API server: {e}",
        )
    except Exception as e:
        return BootstrapResult.failure(
            BootstrapError.UNKNOWN_ERROR,
            f"Error starting API server: {e}",
        )

    return BootstrapResult(client=client)
