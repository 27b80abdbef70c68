"""
Discovery command for finding Hue bridges on the network.
"""

import click

from core.config import ConfigError, load_config
from core.discovery import DEFAULT_TRANSPORTS, BridgeDiscovery


@click.command(name='discover')
@click.option('--ip', 'bridge_ip', help='Check a single IP address instead of scanning')
@click.option('--transport', '-t', 'transports', multiple=True,
              type=click.Choice(DEFAULT_TRANSPORTS),
              help='Discovery transport to use (repeatable, default: all)')
def discover_command(bridge_ip: str | None, transports: tuple[str, ...]):
    """List Hue bridges found on the local network.

    \b
    Examples:
      python hue_api.py discover
      python hue_api.py discover -t ssdp
      python hue_api.py discover --ip 192.168.1.10
    """
    try:
        timeout = load_config().timeout
    except ConfigError as e:
        raise click.ClickException(str(e))

    discovery = BridgeDiscovery(transports=transports or DEFAULT_TRANSPORTS, timeout=timeout)

    if bridge_ip:
        bridge = discovery.discover_by_ip(bridge_ip)
        bridges = [bridge] if bridge else []
    else:
        click.echo("Discovering Hue bridges...")
        bridges = discovery.discover()

    if not bridges:
        click.secho("⚠ No bridges found", fg='yellow')
        click.echo("Set HUE_BRIDGE_IP to configure the bridge manually.")
        return

    click.echo()
    click.secho(f"Found {len(bridges)} Hue bridge{'s' if len(bridges) > 1 else ''}:", fg='cyan', bold=True)
    for i, bridge in enumerate(bridges, 1):
        name = bridge.name or 'Philips hue'
        bridge_id = bridge.id or 'Unknown'
        click.echo(f"  {click.style(str(i), fg='green', bold=True)}. {name} ({bridge.ip}) - ID: {bridge_id}")
    click.echo()
