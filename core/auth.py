"""
Link button registration for Hue Bridge.

Creates a bridge API username by POSTing a devicetype to /api while the
physical link button is active. Credentials are printed, never stored.
"""

import socket

import click
import requests
from requests.packages.urllib3.exceptions import InsecureRequestWarning

from core.client import LINK_BUTTON_NOT_PRESSED, first_error
from core.exceptions import AuthenticationException, HueError

# Disable SSL warnings for self-signed certificate
requests.packages.urllib3.disable_warnings(InsecureRequestWarning)

DEFAULT_APP_NAME = 'hue_api'


def create_user(bridge_ip: str, app_name: str = DEFAULT_APP_NAME,
                device_name: str | None = None, timeout: float = 35) -> str:
    """Register a new API user on the bridge.

    Args:
        bridge_ip: Bridge IP address
        app_name: Application part of the devicetype
        device_name: Device part of the devicetype (defaults to the hostname)
        timeout: Request timeout in seconds

    Returns:
        The bridge-issued username

    Raises:
        AuthenticationException: If the link button was not pressed
        HueError: On any other bridge or transport error
    """
    device_name = device_name or socket.gethostname()
    payload = {'devicetype': f"{app_name}#{device_name}"}

    try:
        response = requests.post(f"https://{bridge_ip}/api", json=payload,
                                 verify=False, timeout=timeout)
        data = response.json()
    except requests.exceptions.RequestException as e:
        raise HueError(f"Failed to register with bridge: {e}") from e
    except ValueError as e:
        raise HueError(f"Invalid response from bridge: {e}") from e

    error = first_error(data)
    if error:
        if error.get('type') == LINK_BUTTON_NOT_PRESSED:
            raise AuthenticationException(
                'Link button not pressed. Please press the link button on the Hue Bridge and try again.'
            )
        raise HueError(error.get('description', 'Unknown bridge error'))

    try:
        return data[0]['success']['username']
    except (IndexError, KeyError, TypeError):
        raise HueError('Unexpected response from bridge') from None


def create_user_via_link_button(bridge_ip: str, app_name: str = DEFAULT_APP_NAME,
                                max_attempts: int = 3) -> str | None:
    """Interactively register a new API user.

    Asks the user to press the link button before each attempt. Another
    attempt is only made after the user confirms again.

    Args:
        bridge_ip: Bridge IP address
        app_name: Application identifier
        max_attempts: How many times the user may retry the button press

    Returns:
        The new username, or None if registration failed
    """
    for attempt in range(1, max_attempts + 1):
        click.echo()
        click.secho("Press the LINK BUTTON on your Hue Bridge.", fg='yellow', bold=True)
        click.secho("You have 30 seconds after pressing the button.", fg='yellow')
        click.echo()
        click.pause("Press Enter when ready...")

        click.echo(f"Registering with bridge at {bridge_ip}... (attempt {attempt}/{max_attempts})")

        try:
            username = create_user(bridge_ip, app_name)
        except AuthenticationException as e:
            click.secho(f"✗ {e}", fg='red')
            continue
        except HueError as e:
            click.echo(f"Error: {e}", err=True)
            return None

        click.secho("✓ Successfully created API username!", fg='green', bold=True)
        return username

    click.secho(f"✗ Failed after {max_attempts} attempts.", fg='red')
    return None
