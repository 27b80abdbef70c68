"""
Server command: bootstrap the bridge connection and run the REST API.
"""

import sys

import click
import uvicorn

from api.app import create_app
from core.bootstrap import bootstrap
from core.config import ConfigError, load_config


@click.command(name='serve')
def serve_command():
    """Start the REST API server.

    Reads HUE_BRIDGE_IP, HUE_USERNAME and HUE_AUTO_DISCOVER, discovers a
    bridge if no IP is set, and verifies the connection before serving.
    Any failure prints a message and exits with status 1.

    \b
    Examples:
      HUE_USERNAME=abc123 python hue_api.py serve
      HUE_BRIDGE_IP=192.168.1.10 HUE_USERNAME=abc123 python hue_api.py
    """
    try:
        config = load_config()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    result = bootstrap(config)
    if not result.ok:
        click.echo(result.message, err=True)
        sys.exit(1)

    client = result.client
    click.secho(f"✓ Connected to Hue Bridge at {client.get_bridge_ip()}", fg='green')
    click.echo(f"Starting API server on {config.api_host}:{config.api_port}")

    app = create_app(client, rate_limit=config.rate_limit, rate_window=config.rate_window)
    uvicorn.run(app, host=config.api_host, port=config.api_port)
