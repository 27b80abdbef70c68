"""Exceptions raised by the Hue bridge client."""


class HueError(Exception):
    """The bridge returned an error or could not be reached."""


class AuthenticationException(HueError):
    """The bridge is reachable but rejected the configured username."""
