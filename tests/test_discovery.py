"""Tests for bridge discovery in core/discovery.py

Network access is mocked: requests.get and socket.socket are patched.
"""

import socket

import pytest
import requests
from unittest.mock import MagicMock, patch
from core.discovery import (
    NUPNP_URL,
    SSDP_ADDRESS,
    BridgeDiscovery,
    parse_nupnp_response,
    parse_ssdp_response
)
from models.types import BridgeDescriptor

SSDP_REPLY = (
    b'HTTP/1.1 200 OK\r\n'
    b'CACHE-CONTROL: max-age=100\r\n'
    b'LOCATION: http://10.0.0.5:80/description.xml\r\n'
    b'SERVER: Hue/1.0 UPnP/1.0 IpBridge/1.60.0\r\n'
    b'hue-bridgeid: 001788FFFE123456\r\n'
    b'ST: upnp:rootdevice\r\n\r\n'
)

OTHER_DEVICE_REPLY = (
    b'HTTP/1.1 200 OK\r\n'
    b'SERVER: Linux/3.14 UPnP/1.0 Sonos/70.3\r\n\r\n'
)


class TestParseNupnp:
    """Test N-UPnP payload parsing."""

    def test_valid_entries(self):
        """Entries should become descriptors in payload order."""
        bridges = parse_nupnp_response([
            {'id': 'abc', 'internalipaddress': '10.0.0.5', 'port': 443},
            {'id': 'def', 'internalipaddress': '10.0.0.9'},
        ])
        assert bridges == [
            BridgeDescriptor(ip='10.0.0.5', id='abc', port=443),
            BridgeDescriptor(ip='10.0.0.9', id='def'),
        ]

    def test_skips_entries_without_ip(self):
        """Entries missing internalipaddress should be ignored."""
        bridges = parse_nupnp_response([{'id': 'abc'}, 'junk', {'internalipaddress': '10.0.0.9'}])
        assert [b.ip for b in bridges] == ['10.0.0.9']

    def test_non_numeric_port_keeps_entry(self):
        """A bad port on one entry should not drop it or the other entries."""
        bridges = parse_nupnp_response([
            {'id': 'abc', 'internalipaddress': '10.0.0.5', 'port': 443},
            {'id': 'def', 'internalipaddress': '10.0.0.9', 'port': 'https'},
        ])
        assert [b.ip for b in bridges] == ['10.0.0.5', '10.0.0.9']
        assert bridges[1].port == 443

    def test_non_list_payload(self):
        """An unexpected payload shape should give no bridges."""
        assert parse_nupnp_response({'error': 'nope'}) == []


class TestParseSsdp:
    """Test SSDP reply parsing."""

    def test_hue_reply(self):
        """A bridge reply should yield the sender IP and bridge id."""
        bridge = parse_ssdp_response(SSDP_REPLY, '10.0.0.5')
        assert bridge == BridgeDescriptor(ip='10.0.0.5', id='001788FFFE123456')

    def test_other_device_ignored(self):
        """Replies from other UPnP devices should be ignored."""
        assert parse_ssdp_response(OTHER_DEVICE_REPLY, '10.0.0.7') is None


class TestDiscoverNupnp:
    """Test the N-UPnP transport."""

    @patch('core.discovery.requests.get')
    def test_success(self, mock_get, make_response):
        """Should query the Philips service with a bounded timeout."""
        mock_get.return_value = make_response([{'id': 'abc', 'internalipaddress': '10.0.0.5'}])

        bridges = BridgeDiscovery(timeout=3).discover_nupnp()

        assert [b.ip for b in bridges] == ['10.0.0.5']
        mock_get.assert_called_once_with(NUPNP_URL, timeout=3)

    @patch('core.discovery.requests.get')
    def test_network_error_returns_empty(self, mock_get):
        """Connection errors should be signalled by an empty list, not raised."""
        mock_get.side_effect = requests.exceptions.ConnectionError('offline')

        assert BridgeDiscovery().discover_nupnp() == []

    @patch('core.discovery.requests.get')
    def test_rate_limited_returns_empty(self, mock_get, make_response, capsys):
        """HTTP 429 should warn about the rate limit and return nothing."""
        mock_get.return_value = make_response(None, status_code=429)

        assert BridgeDiscovery().discover_nupnp() == []
        assert 'rate limit' in capsys.readouterr().err

    @patch('core.discovery.requests.get')
    def test_invalid_json_returns_empty(self, mock_get, make_response):
        """A body that is not JSON should give no bridges."""
        response = make_response()
        response.json.side_effect = ValueError('bad json')
        mock_get.return_value = response

        assert BridgeDiscovery().discover_nupnp() == []


class TestDiscoverSsdp:
    """Test the SSDP transport with a fake socket."""

    @patch('core.discovery.time.monotonic', side_effect=[100.0, 100.0, 100.5, 101.0])
    @patch('core.discovery.socket.socket')
    def test_collects_bridge_replies(self, mock_socket_cls, mock_monotonic):
        """Should send one M-SEARCH and keep only Hue replies until timeout."""
        sock = MagicMock()
        sock.recvfrom.side_effect = [
            (SSDP_REPLY, ('10.0.0.5', 1900)),
            (OTHER_DEVICE_REPLY, ('10.0.0.7', 1900)),
            socket.timeout(),
        ]
        mock_socket_cls.return_value = sock

        bridges = BridgeDiscovery(ssdp_timeout=1.5).discover_ssdp()

        assert [b.ip for b in bridges] == ['10.0.0.5']
        assert [c.args[0] for c in sock.settimeout.call_args_list] == [1.5, 1.0, 0.5]
        assert sock.sendto.call_args[0][1] == SSDP_ADDRESS
        assert sock.sendto.call_args[0][0].startswith(b'M-SEARCH')
        sock.close.assert_called_once()

    @patch('core.discovery.time.monotonic', side_effect=[0.0, 0.0, 1.0, 2.5])
    @patch('core.discovery.socket.socket')
    def test_stops_at_deadline_while_replies_keep_arriving(self, mock_socket_cls, mock_monotonic):
        """A steady stream of replies should not extend the total wait."""
        sock = MagicMock()
        sock.recvfrom.return_value = (SSDP_REPLY, ('10.0.0.5', 1900))
        mock_socket_cls.return_value = sock

        bridges = BridgeDiscovery(ssdp_timeout=2.0).discover_ssdp()

        assert len(bridges) == 2
        assert sock.recvfrom.call_count == 2
        sock.close.assert_called_once()

    @patch('core.discovery.socket.socket')
    def test_socket_error_returns_empty(self, mock_socket_cls):
        """Socket failures should give an empty list."""
        sock = MagicMock()
        sock.sendto.side_effect = OSError('Network is unreachable')
        mock_socket_cls.return_value = sock

        assert BridgeDiscovery().discover_ssdp() == []
        sock.close.assert_called_once()


class TestDiscover:
    """Test combining transports."""

    def test_concatenates_without_deduplication(self):
        """Results should be joined in transport order, duplicates kept."""
        discovery = BridgeDiscovery()
        nupnp = [BridgeDescriptor(ip='10.0.0.5', id='abc')]
        ssdp = [BridgeDescriptor(ip='10.0.0.5', id='abc'), BridgeDescriptor(ip='10.0.0.9')]

        with patch.object(discovery, 'discover_nupnp', return_value=nupnp), \
                patch.object(discovery, 'discover_ssdp', return_value=ssdp):
            bridges = discovery.discover()

        assert [b.ip for b in bridges] == ['10.0.0.5', '10.0.0.5', '10.0.0.9']

    def test_only_configured_transports(self):
        """A single transport should be the only one queried."""
        discovery = BridgeDiscovery(transports=('ssdp',))

        with patch.object(discovery, 'discover_nupnp') as mock_nupnp, \
                patch.object(discovery, 'discover_ssdp', return_value=[]) as mock_ssdp:
            assert discovery.discover() == []

        mock_nupnp.assert_not_called()
        mock_ssdp.assert_called_once()

    def test_unknown_transport(self):
        """Unknown transport names should be rejected at construction."""
        with pytest.raises(ValueError, match='mdns'):
            BridgeDiscovery(transports=('mdns',))


class TestDiscoverByIp:
    """Test probing a single address."""

    @patch('core.discovery.requests.get')
    def test_bridge_found(self, mock_get, make_response):
        """The anonymous config should give id and name."""
        mock_get.return_value = make_response({'bridgeid': '001788FFFE123456', 'name': 'Hue Bridge'})

        bridge = BridgeDiscovery().discover_by_ip('10.0.0.5')

        assert bridge == BridgeDescriptor(ip='10.0.0.5', id='001788FFFE123456', name='Hue Bridge')

    @patch('core.discovery.requests.get')
    def test_no_bridge(self, mock_get):
        """No answer should return None."""
        mock_get.side_effect = requests.exceptions.ConnectTimeout('timeout')

        assert BridgeDiscovery().discover_by_ip('10.0.0.5') is None

    @patch('core.discovery.requests.get')
    def test_not_a_bridge(self, mock_get, make_response):
        """A JSON answer without bridgeid should return None."""
        mock_get.return_value = make_response({'hello': 'world'})

        assert BridgeDiscovery().discover_by_ip('10.0.0.5') is None
