"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Every error leaves the API
as {"success": false, "error": <safe message>, "code": <error code>}.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import KeystoneException

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "TWO_FACTOR_STATE": 400,
    "INVALID_CREDENTIALS": 401,
    "INVALID_CODE": 401,
    "INVALID_TOKEN": 401,
    "FORBIDDEN": 403,
    "RESOURCE_NOT_FOUND": 404,
    "CONFLICT": 409,
    "ACCOUNT_LOCKED": 423,
    "PROVISIONING_TIMEOUT": 500,
    "INTERNAL_ERROR": 500,
    "STORE_UNAVAILABLE": 503,
}

# details forwarded to clients; everything else stays server-side
_PUBLIC_DETAIL_KEYS = frozenset({"field", "remaining_minutes"})


def _envelope(message: str, code: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": message, "code": code, **extra}


def _keystone_exception_handler(request: Request, exc: KeystoneException) -> JSONResponse:
    """Status from error_code; 5xx messages are replaced by a generic one."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 500:
        logger.error("%s: %s", exc.error_code, exc.message, exc_info=exc)
        message = exc.message if get_settings().debug else "Internal server error"
        return JSONResponse(status_code=status, content=_envelope(message, exc.error_code))
    details = {k: v for k, v in exc.details.items() if k in _PUBLIC_DETAIL_KEYS}
    extra: dict[str, Any] = {}
    if "remaining_minutes" in details:
        extra["remainingMinutes"] = details["remaining_minutes"]
    if "field" in details:
        extra["field"] = details["field"]
    return JSONResponse(
        status_code=status, content=_envelope(exc.message, exc.error_code, **extra)
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 400 with the first validation message."""
    errors = exc.errors()
    message = "Invalid request"
    field = None
    if errors:
        first = errors[0]
        message = str(first.get("msg", message)).removeprefix("Value error, ")
        loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or None
    extra = {"field": field} if field else {}
    return JSONResponse(
        status_code=400, content=_envelope(message, "VALIDATION_ERROR", **extra)
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return the envelope for Starlette HTTP exceptions (404 route, 405, ...)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=_envelope("Too many requests, please try again later", "RATE_LIMITED"),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(status_code=500, content=_envelope(message, "INTERNAL_ERROR"))


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Handlers: KeystoneException (and subclasses), RequestValidationError,
    StarletteHTTPException, RateLimitExceeded, generic Exception.
    """
    app.add_exception_handler(KeystoneException, _keystone_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
