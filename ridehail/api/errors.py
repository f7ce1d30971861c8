"""
Map domain exceptions onto HTTP responses.

Every response body is ``{"message": ...}``; request validation failures add
an ``errors`` mapping of field name -> messages.  Unexpected exceptions are
logged with their traceback and reduced to a generic 500.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ridehail.domain.errors import (
    AccountExists,
    ActiveRideExists,
    AuthenticationError,
    InvalidStateTransition,
    PermissionDenied,
    RideHailError,
    RideNotFound,
    RideUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[RideHailError], int] = {
    ValidationError: 400,
    InvalidStateTransition: 400,
    RideUnavailable: 400,
    ActiveRideExists: 400,
    AccountExists: 400,
    AuthenticationError: 401,
    PermissionDenied: 403,
    RideNotFound: 404,
}


def status_code_for(exc: RideHailError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


async def ride_hail_error_handler(request: Request, exc: RideHailError):
    return JSONResponse(
        status_code=status_code_for(exc), content={"message": exc.message}
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = defaultdict(list)
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "body"].append(err.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=400,
        content={"message": "Validation failed", "errors": dict(errors)},
    )


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RideHailError, ride_hail_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
