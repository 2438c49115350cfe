"""API error taxonomy and exception handlers.

Every failure leaves the service as a JSON envelope
{"success": false, "error": "..."} with the matching status code.
Storage errors are logged in full but reported to clients with a
generic message.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from customer_sites.models.types import failure
from customer_sites.storage.base import StorageError

logger = logging.getLogger(__name__)

STORAGE_FAILURE_MESSAGE = "database operation failed"


class SiteApiError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthFailure(SiteApiError):
    status_code = 401


class ValidationFailure(SiteApiError):
    status_code = 400


class NotFound(SiteApiError):
    status_code = 404


class Conflict(SiteApiError):
    status_code = 409


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(failure(message), status_code=status_code)


async def _site_api_error_handler(request: Request, exc: SiteApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} storage failure: {exc}")
    return error_response(500, STORAGE_FAILURE_MESSAGE)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    if first.get("type") == "json_invalid":
        return error_response(400, "request body is not valid JSON")
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "invalid value")
    if location:
        detail = f"{location}: {detail}"
    return error_response(400, f"invalid request ({detail})")


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        return error_response(405, "method not supported")
    if exc.status_code == 404:
        return error_response(404, "not found")
    return error_response(exc.status_code, str(exc.detail))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope-producing exception handlers on app."""
    app.add_exception_handler(SiteApiError, _site_api_error_handler)
    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
