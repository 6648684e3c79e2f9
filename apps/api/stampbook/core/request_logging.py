from __future__ import annotations

import logging
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("stampbook.api.request")

REQUEST_ID_HEADER = "X-Request-Id"
_QUIET_PATHS = {"/health"}


def _resolve_route(request: Request) -> str:
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    if isinstance(route_path, str):
        return route_path
    return request.url.path


def _request_fields(request: Request, *, status_code: int, started: float) -> dict[str, Any]:
    return {
        "request_id": request.state.request_id,
        "family_id": getattr(request.state, "family_id", None),
        "admin_id": getattr(request.state, "admin_id", None),
        "child_id": getattr(request.state, "child_id", None),
        "route": _resolve_route(request),
        "method": request.method,
        "status_code": status_code,
        "execution_time_ms": round((perf_counter() - started) * 1000, 2),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = perf_counter()
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request.failed", extra=_request_fields(request, status_code=500, started=started))
            raise

        if request.url.path not in _QUIET_PATHS:
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                "request.completed",
                extra=_request_fields(request, status_code=response.status_code, started=started),
            )
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response
