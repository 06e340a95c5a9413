"""Request context middleware — trace id, caller and timing for every call.

- Reuse the caller's ``X-Request-ID`` or mint one, and echo it back
- Stamp the acting user onto the logging context before any handler runs
- Time the call and write one access-log line per response

Health probes are logged at debug so load balancers do not flood the log.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging_config import actor_id_var, request_id_var

logger = logging.getLogger(__name__)

_QUIET_PATHS = frozenset({"/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request id and caller to the logging context and logs the outcome."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)
        actor_id_var.set(request.headers.get("x-user-id") or "")

        started = time.monotonic()
        response = await call_next(request)
        elapsed_ms = round((time.monotonic() - started) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

        level = logging.DEBUG if request.url.path in _QUIET_PATHS else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "actor_role": request.headers.get("x-user-role", ""),
                "org_id": request.headers.get("x-org-id", ""),
            },
        )
        return response
