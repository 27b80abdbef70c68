"""FastAPI dependencies for the shared HueClient."""

from fastapi import Request

from core.client import HueClient


def get_hue_client(request: Request) -> HueClient:
    """Return the client attached to the application at startup."""
    return request.app.state.hue_client
