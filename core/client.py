"""HueClient class for Hue Bridge API interactions.

This module contains the authenticated client handle that every consumer
(REST server, middleware, CLI commands) shares. It talks to the bridge's
v1 REST API at https://<bridge_ip>/api/<username>/.
"""

import requests
from requests.packages.urllib3.exceptions import InsecureRequestWarning

from core.exceptions import AuthenticationException, HueError
from models.types import ConnectionInfo, ConnectionResult, ConnectionState

# v1 API error types
UNAUTHORIZED_USER = 1
LINK_BUTTON_NOT_PRESSED = 101

# Disable SSL warnings for self-signed certificate
requests.packages.urllib3.disable_warnings(InsecureRequestWarning)


def first_error(payload) -> dict | None:
    """Return the first v1 error object in a bridge response, if any.

    The v1 API reports errors as a list of {"error": {...}} entries,
    usually with HTTP 200.
    """
    if not isinstance(payload, list):
        return None
    for item in payload:
        if isinstance(item, dict) and 'error' in item:
            return item['error']
    return None


def error_to_exception(error: dict) -> HueError:
    """Map a v1 error object to the matching exception."""
    description = error.get('description', 'Unknown bridge error')
    if error.get('type') == UNAUTHORIZED_USER:
        return AuthenticationException(description)
    return HueError(description)


def created_id(result, resource: str) -> str:
    """Extract the new resource id from a v1 POST response."""
    try:
        return str(result[0]['success']['id'])
    except (IndexError, KeyError, TypeError):
        raise HueError(f"Failed to create {resource}") from None


class HueClient:
    """Authenticated handle to one Philips Hue Bridge."""

    def __init__(self, bridge_ip: str, username: str, timeout: float = 5.0):
        """Initialise HueClient.

        Args:
            bridge_ip: Bridge IP address
            username: Bridge-issued API username
            timeout: Timeout in seconds for every bridge request
        """
        if not bridge_ip:
            raise ValueError("bridge_ip is required")

        self._bridge_ip = bridge_ip
        self._username = username
        self.timeout = timeout
        self.base_url = f"https://{bridge_ip}/api/{username}"
        self.session = requests.Session()
        self.session.verify = False  # Accept self-signed certificate

    def get_bridge_ip(self) -> str:
        return self._bridge_ip

    def get_username(self) -> str | None:
        return self._username

    def get_connection_info(self) -> ConnectionInfo:
        """Session summary with the username masked."""
        username = f"{self._username[:8]}..." if self._username else None
        return {
            'bridge_ip': self._bridge_ip,
            'username': username,
            'timeout': self.timeout,
        }

    def _url(self, endpoint: str) -> str:
        endpoint = endpoint.strip('/')
        return f"{self.base_url}/{endpoint}" if endpoint else self.base_url

    def request(self, method: str, endpoint: str, data: dict | None = None):
        """Make a request to the Hue Bridge API v1.

        Args:
            method: HTTP method
            endpoint: Path below /api/<username>/ (e.g. 'lights/1/state')
            data: Optional JSON body

        Returns:
            Decoded JSON response

        Raises:
            AuthenticationException: If the bridge rejects the username
            HueError: On transport failures or any other bridge error
        """
        try:
            response = self.session.request(
                method, self._url(endpoint), json=data, timeout=self.timeout
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as e:
            raise HueError(f"Request failed: {e}") from e
        except ValueError as e:
            raise HueError(f"Invalid response from bridge: {e}") from e

        error = first_error(result)
        if error:
            raise error_to_exception(error)
        return result

    def check_connection(self) -> ConnectionResult:
        """Query the bridge and classify the outcome.

        An authenticated GET of the config returns the full configuration,
        including the 'whitelist'. An unknown username gets either a type 1
        error or the reduced anonymous config, which has no 'whitelist'.
        This method never raises.
        """
        try:
            response = self.session.get(self._url('config'), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            return ConnectionResult(ConnectionState.UNREACHABLE, str(e))
        except ValueError as e:
            return ConnectionResult(ConnectionState.UNREACHABLE, f"Invalid response from bridge: {e}")

        error = first_error(data)
        if error:
            reason = error.get('description', 'Unknown bridge error')
            if error.get('type') == UNAUTHORIZED_USER:
                return ConnectionResult(ConnectionState.AUTH_REJECTED, reason)
            return ConnectionResult(ConnectionState.ERROR, reason)

        if not isinstance(data, dict):
            return ConnectionResult(ConnectionState.ERROR, "Unexpected response from bridge")
        if 'whitelist' not in data:
            return ConnectionResult(ConnectionState.AUTH_REJECTED, "unauthorized user")

        return ConnectionResult(ConnectionState.CONNECTED)

    def is_connected(self) -> bool:
        """Return True if the bridge answers and accepts the username.

        Raises:
            AuthenticationException: If the bridge is reachable but rejects the username
        """
        result = self.check_connection()
        if result.state is ConnectionState.AUTH_REJECTED:
            raise AuthenticationException(result.reason)
        return result.connected

    def get_config(self) -> dict:
        """Get the full bridge configuration."""
        return self.request('GET', 'config')

    def get_lights(self) -> list[dict]:
        """Get all lights with their current state, each with an 'id' key."""
        lights = self.request('GET', 'lights')
        return [{'id': light_id, **light} for light_id, light in lights.items()]

    def get_light(self, light_id: str) -> dict:
        light = self.request('GET', f"lights/{light_id}")
        return {'id': str(light_id), **light}

    def set_light_state(self, light_id: str, state: dict) -> list[dict]:
        """Set light state (on, bri, hue, sat, ct, xy, transitiontime, ...).

        Returns:
            The bridge's list of success entries
        """
        return self.request('PUT', f"lights/{light_id}/state", state)

    def rename_light(self, light_id: str, name: str) -> list[dict]:
        return self.request('PUT', f"lights/{light_id}", {'name': name})

    def get_groups(self) -> list[dict]:
        """Get all groups (rooms, zones, light groups), each with an 'id' key."""
        groups = self.request('GET', 'groups')
        return [{'id': group_id, **group} for group_id, group in groups.items()]

    def get_rooms(self) -> list[dict]:
        return [g for g in self.get_groups() if g.get('type') == 'Room']

    def get_zones(self) -> list[dict]:
        return [g for g in self.get_groups() if g.get('type') == 'Zone']

    def get_group(self, group_id: str) -> dict:
        group = self.request('GET', f"groups/{group_id}")
        return {'id': str(group_id), **group}

    def set_group_action(self, group_id: str, action: dict) -> list[dict]:
        return self.request('PUT', f"groups/{group_id}/action", action)

    def create_group(self, name: str, light_ids: list[str], group_type: str = 'LightGroup',
                     room_class: str | None = None) -> str:
        """Create a group and return its new id.

        Args:
            name: Group name
            light_ids: Ids of the member lights
            group_type: 'LightGroup', 'Room' or 'Zone'
            room_class: Room class such as 'Living room' (rooms only)
        """
        payload = {'name': name, 'lights': [str(i) for i in light_ids], 'type': group_type}
        if room_class and group_type == 'Room':
            payload['class'] = room_class
        return created_id(self.request('POST', 'groups', payload), 'group')

    def delete_group(self, group_id: str) -> list[dict]:
        if str(group_id) == '0':
            raise ValueError("Cannot delete group 0 (all lights)")
        return self.request('DELETE', f"groups/{group_id}")

    def get_scenes(self) -> list[dict]:
        scenes = self.request('GET', 'scenes')
        return [{'id': scene_id, **scene} for scene_id, scene in scenes.items()]

    def get_scene(self, scene_id: str) -> dict:
        scene = self.request('GET', f"scenes/{scene_id}")
        return {'id': str(scene_id), **scene}

    def create_scene(self, name: str, light_ids: list[str] | None = None,
                     group_id: str | None = None) -> str:
        """Store the current state of some lights as a scene.

        A scene bound to a group covers the group's lights. Otherwise the
        light ids are stored directly.

        Returns:
            The new scene id
        """
        if group_id is not None:
            payload = {'name': name, 'type': 'GroupScene', 'group': str(group_id)}
        elif light_ids:
            payload = {'name': name, 'type': 'LightScene', 'lights': [str(i) for i in light_ids]}
        else:
            raise ValueError("A scene needs either lights or a group")
        return created_id(self.request('POST', 'scenes', payload), 'scene')

    def delete_scene(self, scene_id: str) -> list[dict]:
        return self.request('DELETE', f"scenes/{scene_id}")

    def activate_scene(self, scene_id: str, group_id: str = '0') -> list[dict]:
        """Recall a scene. Group 0 addresses every light on the bridge."""
        return self.set_group_action(group_id, {'scene': scene_id})

    def get_sensors(self) -> list[dict]:
        """Get all sensors (switches, motion, daylight, ...), each with an 'id' key."""
        sensors = self.request('GET', 'sensors')
        return [{'id': sensor_id, **sensor} for sensor_id, sensor in sensors.items()]

    def get_sensor(self, sensor_id: str) -> dict:
        sensor = self.request('GET', f"sensors/{sensor_id}")
        return {'id': str(sensor_id), **sensor}

    def set_sensor_state(self, sensor_id: str, state: dict) -> list[dict]:
        # Only CLIP sensors accept state writes; the bridge rejects the rest
        return self.request('PUT', f"sensors/{sensor_id}/state", state)

    def update_sensor_config(self, sensor_id: str, config: dict) -> list[dict]:
        return self.request('PUT', f"sensors/{sensor_id}/config", config)

    def get_schedules(self) -> list[dict]:
        schedules = self.request('GET', 'schedules')
        return [{'id': schedule_id, **schedule} for schedule_id, schedule in schedules.items()]

    def get_schedule(self, schedule_id: str) -> dict:
        schedule = self.request('GET', f"schedules/{schedule_id}")
        return {'id': str(schedule_id), **schedule}

    def create_schedule(self, name: str, command: dict, localtime: str,
                        description: str | None = None, status: str = 'enabled') -> str:
        """Create a schedule and return its new id.

        Args:
            name: Schedule name
            command: Bridge call to run, with 'address', 'method' and 'body'
            localtime: Trigger time, e.g. '2026-01-01T07:00:00' or 'W127/T07:00:00'
            description: Optional description
            status: 'enabled' or 'disabled'
        """
        payload = {'name': name, 'command': command, 'localtime': localtime, 'status': status}
        if description:
            payload['description'] = description
        return created_id(self.request('POST', 'schedules', payload), 'schedule')

    def update_schedule(self, schedule_id: str, changes: dict) -> list[dict]:
        return self.request('PUT', f"schedules/{schedule_id}", changes)

    def delete_schedule(self, schedule_id: str) -> list[dict]:
        return self.request('DELETE', f"schedules/{schedule_id}")
