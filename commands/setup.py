"""
Setup commands for the Hue API server.

Contains the link button registration flow and a connection status check.
"""

import sys

import click

from core.auth import DEFAULT_APP_NAME, create_user_via_link_button
from core.bootstrap import bootstrap
from core.config import ConfigError, load_config
from core.discovery import BridgeDiscovery
from core.exceptions import HueError
from models.types import BridgeDescriptor


def select_bridge_interactive(bridges: list[BridgeDescriptor]) -> str | None:
    """Display interactive menu to select a bridge from discovered list.

    Args:
        bridges: Descriptors from BridgeDiscovery.discover()

    Returns:
        Selected bridge IP address, or None if cancelled/invalid
    """
    if not bridges:
        return None

    click.echo()
    click.secho(f"Found {len(bridges)} Hue bridges:", fg='cyan', bold=True)
    click.echo()

    for i, bridge in enumerate(bridges, 1):
        name = bridge.name or 'Philips hue'
        click.echo(f"  {click.style(str(i), fg='green', bold=True)}. {name} ({bridge.ip}) - ID: {bridge.id or 'Unknown'}")

    click.echo()

    choice = click.prompt(
        f"Select bridge [1-{len(bridges)}] or 'q' to cancel",
        type=str,
        default='1'
    )

    if choice.lower() == 'q':
        return None

    try:
        index = int(choice) - 1
    except ValueError:
        index = -1

    if 0 <= index < len(bridges):
        return bridges[index].ip

    click.echo(f"Invalid selection: {choice}", err=True)
    return None


@click.command(name='register')
@click.option('--bridge-ip', '-i', help='Bridge IP address (default: HUE_BRIDGE_IP or discovery)')
@click.option('--app-name', default=DEFAULT_APP_NAME, show_default=True,
              help='Application name sent to the bridge')
def register_command(bridge_ip: str | None, app_name: str):
    """Create a bridge API username via the link button.

    The username is printed, not stored. Export it as HUE_USERNAME
    before running 'serve'.
    """
    try:
        config = load_config()
    except ConfigError as e:
        raise click.ClickException(str(e))

    bridge_ip = bridge_ip or config.bridge_ip

    if not bridge_ip:
        click.echo("Discovering Hue bridges...")
        bridges = BridgeDiscovery(timeout=config.timeout).discover()

        if not bridges:
            click.secho("⚠ No bridges found via automatic discovery", fg='yellow')
            bridge_ip = click.prompt("Bridge IP address", type=str)
        elif len(bridges) == 1:
            bridge_ip = bridges[0].ip
            click.secho(f"✓ Found 1 bridge: {bridges[0].name or 'Philips hue'} ({bridge_ip})", fg='green')
        else:
            bridge_ip = select_bridge_interactive(bridges)
            if not bridge_ip:
                click.echo("Registration cancelled.")
                return

    username = create_user_via_link_button(bridge_ip, app_name)
    if not username:
        click.secho("✗ Failed to create API username", fg='red', err=True)
        sys.exit(1)

    click.echo()
    click.echo("Add these to your environment (or .env file):")
    click.echo(click.style(f"  HUE_BRIDGE_IP={bridge_ip}", fg='green', bold=True))
    click.echo(click.style(f"  HUE_USERNAME={username}", fg='green', bold=True))
    click.echo()


@click.command(name='status')
def status_command():
    """Show bridge configuration and test the connection."""
    try:
        config = load_config()
    except ConfigError as e:
        raise click.ClickException(str(e))

    click.echo()
    click.secho("=== Hue Bridge Configuration ===", fg='cyan', bold=True)
    click.echo(f"   Bridge IP:     {config.bridge_ip or click.style('not set', fg='yellow')}")
    click.echo(f"   Username:      {'set' if config.username else click.style('not set', fg='yellow')}")
    click.echo(f"   Auto-discover: {'on' if config.auto_discover else 'off'}")
    click.echo(f"   Timeout:       {config.timeout:g}s")
    click.echo()

    result = bootstrap(config)
    if not result.ok:
        click.secho("✗ Connection failed", fg='red', bold=True)
        click.echo(result.message, err=True)
        sys.exit(1)

    client = result.client
    click.secho(f"✓ Successfully connected to bridge at {client.get_bridge_ip()}!", fg='green', bold=True)

    try:
        bridge = client.get_config()
        lights = client.get_lights()
        groups = client.get_groups()
    except HueError as e:
        click.echo(f"Error reading bridge details: {e}", err=True)
        sys.exit(1)

    click.echo(f"  Name:       {bridge.get('name', 'Unknown')}")
    click.echo(f"  Bridge ID:  {bridge.get('bridgeid', 'Unknown')}")
    click.echo(f"  Model ID:   {bridge.get('modelid', 'Unknown')}")
    click.echo(f"  API:        {bridge.get('apiversion', 'Unknown')}")
    click.echo(f"  Lights:     {len(lights)}")
    click.echo(f"  Groups:     {len(groups)}")
    click.echo()
