"""Core functionality for the Hue API server.

This package contains:
- config: Environment configuration (HueConfig)
- discovery: Bridge discovery via N-UPnP and SSDP
- client: HueClient class for bridge API interaction
- auth: Link button registration
- bootstrap: Startup sequence that yields a verified client
- exceptions: HueError and AuthenticationException
"""
