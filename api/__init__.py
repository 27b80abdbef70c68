"""HTTP layer for the Hue API server.

This package contains:
- app: FastAPI application factory and REST routes
- middleware: Per-request bridge connectivity gate
- dependencies: Injection of the shared HueClient into routes
"""
