"""Pytest configuration and fixtures for Hue API tests."""

import pytest
from pathlib import Path
from unittest.mock import MagicMock

import requests

from core.config import HueConfig


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_response():
    """Build a fake requests.Response returning the given JSON."""
    def _make(payload=None, status_code=200):
        response = MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.json.return_value = payload
        if status_code >= 400:
            error = requests.exceptions.HTTPError(f"{status_code} Error", response=response)
            response.raise_for_status.side_effect = error
        else:
            response.raise_for_status.return_value = None
        return response
    return _make


@pytest.fixture
def config():
    """A complete configuration with an explicit bridge IP."""
    return HueConfig(bridge_ip='192.168.1.10', username='test-username-123')


@pytest.fixture
def mock_client():
    """A MagicMock standing in for a connected HueClient."""
    client = MagicMock()
    client.get_bridge_ip.return_value = '192.168.1.10'
    client.is_connected.return_value = True
    return client
