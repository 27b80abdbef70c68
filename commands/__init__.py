"""CLI command modules.

This package contains:
- server: Bootstrap and run the REST API (serve)
- discovery: List bridges on the network (discover)
- setup: Link button registration and connection status (register, status)
"""
