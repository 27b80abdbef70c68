#!/usr/bin/env python3
"""
Hue Bridge REST API Server
Discover a Philips Hue bridge, verify the connection and serve light control over HTTP.
"""

import click
from dotenv import load_dotenv

from commands.discovery import discover_command
from commands.server import serve_command
from commands.setup import register_command, status_command


@click.group(
    invoke_without_command=True,
    context_settings={'help_option_names': ['-h', '--help']}
)
@click.version_option(version='0.1.0', prog_name='Hue API')
@click.pass_context
def cli(ctx):
    """Hue Bridge REST API - serve Philips Hue light control over HTTP.

Configuration comes from the environment (or a .env file):
HUE_BRIDGE_IP, HUE_USERNAME, HUE_AUTO_DISCOVER, HUE_TIMEOUT,
HUE_API_HOST, HUE_API_PORT.

Running without a command starts the server."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve_command)


cli.add_command(serve_command)
cli.add_command(discover_command)
cli.add_command(register_command)
cli.add_command(status_command)


def main():
    # Real environment variables take precedence over .env
    load_dotenv()
    cli()


if __name__ == '__main__':
    main()
