"""Bridge connectivity middleware.

Every request (except the exempt paths) triggers a fresh live check of the
bridge. Failures are turned into JSON error responses; the server keeps
serving later requests.
"""

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from core.client import HueClient
from core.exceptions import AuthenticationException

DEFAULT_EXEMPT_PATHS = ('/api/health', '/docs', '/openapi.json')


class HueConnectionMiddleware(BaseHTTPMiddleware):
    """Reject requests while the bridge is unreachable or rejects the username.

    Responses:
        503 if is_connected() is False
        401 if the bridge raises AuthenticationException
        500 for any other error during the check
    """

    def __init__(self, app: ASGIApp, client: HueClient,
                 exempt_paths: tuple[str, ...] = DEFAULT_EXEMPT_PATHS):
        super().__init__(app)
        self.client = client
        self.exempt_paths = exempt_paths

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        bridge_ip = self.client.get_bridge_ip()

        try:
            # The check is blocking I/O
            connected = await run_in_threadpool(self.client.is_connected)
        except AuthenticationException as e:
            return JSONResponse({
                'error': 'Hue Bridge authentication failed',
                'message': str(e),
                'bridge_ip': bridge_ip,
            }, status_code=401)
        except Exception as e:
            return JSONResponse({
                'error': 'Hue Bridge error',
                'message': str(e),
            }, status_code=500)

        if not connected:
            return JSONResponse({
                'error': 'Hue Bridge not accessible',
                'message': 'Cannot connect to Philips Hue Bridge',
                'bridge_ip': bridge_ip,
            }, status_code=503)

        request.state.hue_bridge_ip = bridge_ip
        request.state.hue_connected = True
        return await call_next(request)
