from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stampbook.core.errors import StampbookError

logger = logging.getLogger("stampbook.api.errors")

# Routing errors raised by the framework itself (unknown path, wrong method).
_FRAMEWORK_ERROR_CODES: dict[int, str] = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def error_body(code: str, message: str, details: Any | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return body


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def domain_exception_handler(request: Request, exc: StampbookError) -> JSONResponse:
    if exc.status_code >= status.HTTP_409_CONFLICT:
        logger.warning(
            "domain_error",
            extra={
                "request_id": _request_id(request),
                "route": request.url.path,
                "status_code": exc.status_code,
                "error_code": exc.code,
            },
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message, exc.details))


async def framework_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _FRAMEWORK_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=error_body(code, message), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {"field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"), "message": error.get("msg")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body("VALIDATION_ERROR", "Validation failed", fields),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", extra={"request_id": _request_id(request), "route": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StampbookError, domain_exception_handler)
    app.add_exception_handler(StarletteHTTPException, framework_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
