"""Type definitions for the Hue API server.

This module provides the small value types passed between discovery,
the bootstrap routine and the HTTP layer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypedDict


@dataclass(frozen=True)
class BridgeDescriptor:
    """A bridge candidate reported by a discovery transport."""
    ip: str
    id: str | None = None
    name: str | None = None
    port: int = 443


class ConnectionState(Enum):
    """Outcome of a live connectivity check."""
    CONNECTED = 'connected'
    UNREACHABLE = 'unreachable'
    AUTH_REJECTED = 'auth_rejected'
    ERROR = 'error'


@dataclass(frozen=True)
class ConnectionResult:
    """Tagged connectivity result.

    `reason` carries the bridge or transport message for every state
    except CONNECTED.
    """
    state: ConnectionState
    reason: str | None = None

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED


class ConnectionInfo(TypedDict):
    """Summary of a client session, safe to show to users."""
    bridge_ip: str
    username: str | None
    timeout: float
