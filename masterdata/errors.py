"""Error taxonomy shared by services and routers."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger(__name__)


class MasterdataError(Exception):
    """Base error. ``message`` is safe to show to the caller."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str = "An unexpected error occurred", details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(MasterdataError):
    code = "VALIDATION_ERROR"
    http_status = 400


class DuplicateName(MasterdataError):
    code = "DUPLICATE_COLUMN"
    http_status = 400


class Unauthorized(MasterdataError):
    code = "UNAUTHORIZED"
    http_status = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class Forbidden(MasterdataError):
    code = "FORBIDDEN"
    http_status = 403

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class UnsupportedRole(Forbidden):
    """Raised when a role has no party data store (e.g. the HR admin)."""


class NotFound(MasterdataError):
    code = "NOT_FOUND"
    http_status = 404


class Conflict(MasterdataError):
    code = "DUPLICATE_ENTRY"
    http_status = 409


class InternalError(MasterdataError):
    pass


def error_body(code: str, message: str, details=None) -> dict:
    body = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return {"error": body}


async def _masterdata_error_handler(request: Request, exc: MasterdataError):
    if isinstance(exc, InternalError):
        log.error("internal error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(error_body(exc.code, "An unexpected error occurred"), status_code=500)
    return JSONResponse(
        error_body(exc.code, exc.message, exc.details), status_code=exc.http_status
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    details: dict[str, list[str]] = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        details.setdefault(field, []).append(str(err.get("msg", "")))
    first = next(iter(details.values()), ["Invalid input data"])[0]
    return JSONResponse(error_body("VALIDATION_ERROR", first, details), status_code=400)


async def _unhandled_error_handler(request: Request, exc: Exception):
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(error_body("INTERNAL_ERROR", "An unexpected error occurred"), status_code=500)


def init_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MasterdataError, _masterdata_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
