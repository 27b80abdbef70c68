"""
Bridge discovery for Hue Bridge.

Finds bridges on the local network without manual configuration, using the
Philips N-UPnP cloud service and an SSDP M-SEARCH broadcast. Discovery
failures are reported on stderr and signalled by an empty result.
"""

import socket
import time

import click
import requests
from requests.packages.urllib3.exceptions import InsecureRequestWarning

from models.types import BridgeDescriptor

# Disable SSL warnings for self-signed certificate
requests.packages.urllib3.disable_warnings(InsecureRequestWarning)

NUPNP_URL = 'https://discovery.meethue.com/'
SSDP_ADDRESS = ('239.255.255.250', 1900)
SSDP_REQUEST = (
    'M-SEARCH * HTTP/1.1\r\n'
    f'HOST: {SSDP_ADDRESS[0]}:{SSDP_ADDRESS[1]}\r\n'
    'MAN: "ssdp:discover"\r\n'
    'ST: upnp:rootdevice\r\n'
    'MX: 1\r\n'
    '\r\n'
).encode('utf-8')

DEFAULT_TRANSPORTS = ('nupnp', 'ssdp')


def parse_nupnp_response(data) -> list[BridgeDescriptor]:
    """Convert the N-UPnP JSON payload into bridge descriptors.

    Entries without an 'internalipaddress' are skipped. A missing or
    non-numeric port falls back to 443 for that entry only.
    """
    if not isinstance(data, list):
        return []

    bridges = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        ip = entry.get('internalipaddress')
        if not ip:
            continue
        try:
            port = int(entry.get('port') or 443)
        except (TypeError, ValueError):
            port = 443
        bridges.append(BridgeDescriptor(
            ip=str(ip),
            id=entry.get('id'),
            name=entry.get('name'),
            port=port,
        ))
    return bridges


def parse_ssdp_response(payload: bytes, sender_ip: str) -> BridgeDescriptor | None:
    """Build a descriptor from one SSDP reply, or None if it is not a Hue bridge.

    Philips bridges advertise 'IpBridge' in the SERVER header and carry a
    'hue-bridgeid' header.
    """
    text = payload.decode('utf-8', errors='ignore')
    if 'IpBridge' not in text and 'hue-bridgeid' not in text.lower():
        return None

    bridge_id = None
    for line in text.splitlines():
        key, sep, value = line.partition(':')
        if sep and key.strip().lower() == 'hue-bridgeid':
            bridge_id = value.strip()
            break

    return BridgeDescriptor(ip=sender_ip, id=bridge_id)


class BridgeDiscovery:
    """Queries the configured discovery transports for Hue bridges."""

    def __init__(self, transports: tuple[str, ...] = DEFAULT_TRANSPORTS,
                 timeout: float = 5.0, ssdp_timeout: float = 2.0):
        """Initialise BridgeDiscovery.

        Args:
            transports: Transport names, queried in order ('nupnp', 'ssdp')
            timeout: HTTP timeout in seconds for N-UPnP and single-IP lookups
            ssdp_timeout: How long to wait for SSDP replies, in seconds
        """
        unknown = [t for t in transports if t not in DEFAULT_TRANSPORTS]
        if unknown:
            raise ValueError(f"Unknown discovery transport(s): {', '.join(unknown)}")

        self.transports = tuple(transports)
        self.timeout = timeout
        self.ssdp_timeout = ssdp_timeout

    def discover(self) -> list[BridgeDescriptor]:
        """Discover bridges with every configured transport.

        Each call makes fresh network queries. Results are concatenated in
        transport order without deduplication.

        Returns:
            List of bridge descriptors, empty if nothing was found
        """
        bridges = []
        for transport in self.transports:
            if transport == 'nupnp':
                bridges.extend(self.discover_nupnp())
            elif transport == 'ssdp':
                bridges.extend(self.discover_ssdp())
        return bridges

    def discover_nupnp(self) -> list[BridgeDescriptor]:
        """Discover bridges using the Philips discovery service."""
        try:
            response = requests.get(NUPNP_URL, timeout=self.timeout)
            response.raise_for_status()
            return parse_nupnp_response(response.json())

        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code == 429:
                click.secho("⚠ Philips discovery service rate limit reached", fg='yellow', err=True)
            else:
                click.echo(f"Bridge discovery failed: {e}", err=True)
            return []
        except requests.exceptions.RequestException as e:
            click.echo(f"Bridge discovery failed: {e}", err=True)
            return []
        except (ValueError, TypeError) as e:
            click.echo(f"Failed to parse discovery response: {e}", err=True)
            return []

    def discover_ssdp(self) -> list[BridgeDescriptor]:
        """Discover bridges with a single SSDP M-SEARCH on the local network.

        Replies are collected until ssdp_timeout has elapsed in total, no
        matter how many devices answer.
        """
        bridges = []
        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
            sock.sendto(SSDP_REQUEST, SSDP_ADDRESS)
            deadline = time.monotonic() + self.ssdp_timeout

            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                sock.settimeout(remaining)
                try:
                    payload, addr = sock.recvfrom(65535)
                except socket.timeout:
                    break
                bridge = parse_ssdp_response(payload, addr[0])
                if bridge:
                    bridges.append(bridge)

        except OSError as e:
            click.echo(f"SSDP discovery failed: {e}", err=True)
        finally:
            if sock is not None:
                sock.close()

        return bridges

    def discover_by_ip(self, ip: str) -> BridgeDescriptor | None:
        """Look for a Hue bridge at a known IP address.

        Uses the unauthenticated config endpoint, which every bridge answers.

        Returns:
            Descriptor with id and name filled in, or None if no bridge answered
        """
        try:
            response = requests.get(f"https://{ip}/api/config", timeout=self.timeout, verify=False)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError):
            return None

        if not isinstance(data, dict) or 'bridgeid' not in data:
            return None

        return BridgeDescriptor(ip=ip, id=data['bridgeid'], name=data.get('name'))
