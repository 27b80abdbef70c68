"""REST API for controlling Philips Hue lights, groups, scenes, schedules and sensors.

create_app() takes a HueClient that has already passed the bootstrap
connectivity check and exposes bridge-scoped operations over HTTP.
"""

import time
from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import get_hue_client
from api.middleware import HueConnectionMiddleware
from api.rate_limit import RateLimitMiddleware
from core.client import HueClient
from core.config import DEFAULT_RATE_LIMIT, DEFAULT_RATE_WINDOW
from core.exceptions import AuthenticationException, HueError

APP_TITLE = 'Philips Hue REST API'
APP_VERSION = '1.0.0'

BRIDGE_INFO_KEYS = ('name', 'bridgeid', 'modelid', 'swversion', 'apiversion', 'mac', 'ipaddress')


# ----------------------------
# Request models
# ----------------------------
class LightState(BaseModel):
    on: bool | None = None
    bri: int | None = Field(default=None, ge=1, le=254)
    hue: int | None = Field(default=None, ge=0, le=65535)
    sat: int | None = Field(default=None, ge=0, le=254)
    ct: int | None = Field(default=None, ge=153, le=500)
    xy: list[float] | None = Field(default=None, min_length=2, max_length=2)
    transitiontime: int | None = Field(default=None, ge=0)
    alert: str | None = None
    effect: str | None = None


class GroupAction(LightState):
    scene: str | None = None


class LightName(BaseModel):
    name: str = Field(min_length=1, max_length=32)


class SceneActivation(BaseModel):
    group: str = '0'


class GroupCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=32)
    lights: list[str]
    type: Literal['LightGroup', 'Room', 'Zone'] = 'LightGroup'
    room_class: str | None = Field(default=None, alias='class')


class SceneCreate(BaseModel):
    name: str = Field(min_length=1, max_length=32)
    lights: list[str] | None = None
    group: str | None = None


class SensorState(BaseModel):
    state: dict[str, Any]


class ScheduleCommand(BaseModel):
    address: str
    method: Literal['GET', 'PUT', 'POST', 'DELETE']
    body: dict[str, Any] = Field(default_factory=dict)


class ScheduleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=32)
    command: ScheduleCommand
    localtime: str
    description: str | None = None
    status: Literal['enabled', 'disabled'] = 'enabled'


class ScheduleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=32)
    command: ScheduleCommand | None = None
    localtime: str | None = None
    description: str | None = None
    status: Literal['enabled', 'disabled'] | None = None


# ----------------------------
# Response helpers
# ----------------------------
def _timestamp() -> str:
    return datetime.now().astimezone().isoformat(timespec='seconds')


def success_response(data: Any = None, message: str = 'Success') -> dict:
    body = {'success': True, 'message': message, 'timestamp': _timestamp()}
    if data is not None:
        body['data'] = data
    return body


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        {'error': True, 'message': message, 'timestamp': _timestamp()},
        status_code=status_code,
    )


def _state_payload(model: BaseModel, what: str = 'state') -> dict:
    payload = model.model_dump(exclude_none=True)
    if not payload:
        raise ValueError(f"Request body must set at least one {what} field")
    return payload


# ----------------------------
# Routes
# ----------------------------
router = APIRouter(prefix='/api')


@router.get('/health')
def health(client: HueClient = Depends(get_hue_client)):
    start = time.monotonic()
    result = client.check_connection()
    response_time = round((time.monotonic() - start) * 1000, 2)

    body = {
        'status': 'healthy' if result.connected else 'unhealthy',
        'bridge_ip': client.get_bridge_ip(),
        'connected': result.connected,
        'response_time_ms': response_time,
        'timestamp': _timestamp(),
    }
    if result.connected:
        return body

    body['error'] = result.reason or 'Bridge not reachable'
    body['state'] = result.state.value
    return JSONResponse(body, status_code=503)


@router.get('/bridge/info')
def bridge_info(client: HueClient = Depends(get_hue_client)):
    config = client.get_config()
    info = {key: config.get(key) for key in BRIDGE_INFO_KEYS}
    info['connection'] = client.get_connection_info()
    return success_response(info)


@router.get('/bridge/config')
def bridge_config(client: HueClient = Depends(get_hue_client)):
    config = client.get_config()
    # Never expose other applications' usernames
    config.pop('whitelist', None)
    return success_response(config)


@router.get('/lights')
def list_lights(client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_lights())


@router.get('/lights/{light_id}')
def get_light(light_id: str, client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_light(light_id))


@router.put('/lights/{light_id}/state')
def set_light_state(light_id: str, state: LightState, client: HueClient = Depends(get_hue_client)):
    result = client.set_light_state(light_id, _state_payload(state))
    return success_response(result, f"Light {light_id} state updated")


@router.put('/lights/{light_id}/name')
def rename_light(light_id: str, body: LightName, client: HueClient = Depends(get_hue_client)):
    result = client.rename_light(light_id, body.name)
    return success_response(result, f"Light {light_id} renamed")


@router.get('/groups')
def list_groups(client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_groups())


@router.get('/rooms')
def list_rooms(client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_rooms())


@router.get('/zones')
def list_zones(client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_zones())


@router.get('/groups/{group_id}')
def get_group(group_id: str, client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_group(group_id))


@router.post('/groups')
def create_group(body: GroupCreate, client: HueClient = Depends(get_hue_client)):
    group_id = client.create_group(body.name, body.lights, body.type, body.room_class)
    return success_response({'id': group_id, 'name': body.name}, 'Group created successfully')


@router.put('/groups/{group_id}/action')
def set_group_action(group_id: str, action: GroupAction, client: HueClient = Depends(get_hue_client)):
    result = client.set_group_action(group_id, _state_payload(action))
    return success_response(result, f"Group {group_id} action applied")


@router.delete('/groups/{group_id}')
def delete_group(group_id: str, client: HueClient = Depends(get_hue_client)):
    client.delete_group(group_id)
    return success_response(message='Group deleted successfully')


@router.get('/scenes')
def list_scenes(client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_scenes())


@router.get('/scenes/{scene_id}')
def get_scene(scene_id: str, client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_scene(scene_id))


@router.post('/scenes')
def create_scene(body: SceneCreate, client: HueClient = Depends(get_hue_client)):
    scene_id = client.create_scene(body.name, body.lights, body.group)
    return success_response({'id': scene_id, 'name': body.name}, 'Scene created successfully')


@router.put('/scenes/{scene_id}/activate')
def activate_scene(scene_id: str, body: SceneActivation | None = None,
                   client: HueClient = Depends(get_hue_client)):
    group_id = body.group if body else '0'
    result = client.activate_scene(scene_id, group_id)
    return success_response(result, f"Scene {scene_id} activated")


@router.delete('/scenes/{scene_id}')
def delete_scene(scene_id: str, client: HueClient = Depends(get_hue_client)):
    client.delete_scene(scene_id)
    return success_response(message='Scene deleted successfully')


@router.get('/schedules')
def list_schedules(client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_schedules())


@router.get('/schedules/{schedule_id}')
def get_schedule(schedule_id: str, client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_schedule(schedule_id))


@router.post('/schedules')
def create_schedule(body: ScheduleCreate, client: HueClient = Depends(get_hue_client)):
    schedule_id = client.create_schedule(
        body.name, body.command.model_dump(), body.localtime, body.description, body.status
    )
    return success_response({'id': schedule_id, 'name': body.name}, 'Schedule created successfully')


@router.put('/schedules/{schedule_id}')
def update_schedule(schedule_id: str, body: ScheduleUpdate, client: HueClient = Depends(get_hue_client)):
    result = client.update_schedule(schedule_id, _state_payload(body, 'schedule'))
    return success_response(result, 'Schedule updated successfully')


@router.delete('/schedules/{schedule_id}')
def delete_schedule(schedule_id: str, client: HueClient = Depends(get_hue_client)):
    client.delete_schedule(schedule_id)
    return success_response(message='Schedule deleted successfully')


@router.get('/sensors')
def list_sensors(client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_sensors())


@router.get('/sensors/{sensor_id}')
def get_sensor(sensor_id: str, client: HueClient = Depends(get_hue_client)):
    return success_response(client.get_sensor(sensor_id))


@router.put('/sensors/{sensor_id}/state')
def set_sensor_state(sensor_id: str, body: SensorState, client: HueClient = Depends(get_hue_client)):
    if not body.state:
        raise ValueError('Request body must set at least one state field')
    result = client.set_sensor_state(sensor_id, body.state)
    return success_response(result, 'Sensor state updated successfully')


# ----------------------------
# Application factory
# ----------------------------
def create_app(client: HueClient, check_connection: bool = True,
               rate_limit: int = DEFAULT_RATE_LIMIT, rate_window: float = DEFAULT_RATE_WINDOW) -> FastAPI:
    """Build the REST application around a connected client.

    Args:
        client: HueClient that passed the bootstrap connectivity check
        check_connection: If True, re-check the bridge on every request
        rate_limit: Requests allowed per client IP and window, 0 to disable
        rate_window: Rate limit window in seconds

    Returns:
        FastAPI application
    """
    app = FastAPI(title=APP_TITLE, version=APP_VERSION)
    app.state.hue_client = client

    if check_connection:
        app.add_middleware(HueConnectionMiddleware, client=client)
    # Outside the connectivity gate so rejected clients never reach the bridge
    if rate_limit > 0:
        app.add_middleware(RateLimitMiddleware, limit=rate_limit, window=rate_window)
    # Added last so it wraps the other middleware and error responses get CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=['*'],
        allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS'],
        allow_headers=['X-Requested-With', 'Content-Type', 'Accept', 'Origin', 'Authorization'],
    )

    @app.exception_handler(AuthenticationException)
    async def handle_auth_error(request: Request, exc: AuthenticationException):
        return error_response(str(exc), 401)

    @app.exception_handler(HueError)
    async def handle_bridge_error(request: Request, exc: HueError):
        return error_response(str(exc), 502)

    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError):
        return error_response(str(exc), 400)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        details = '; '.join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return error_response(f"Invalid request: {details}", 400)

    app.include_router(router)
    return app
