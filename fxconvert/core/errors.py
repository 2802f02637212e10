"""Error taxonomy for the converter plus FastAPI exception handlers.

Every domain failure derives from ConverterError and carries the alert
title/message shown to the user, a machine readable code and the HTTP status
used when it escapes through the JSON API.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
import logging

logger = logging.getLogger("fxconvert.errors")


class ConverterError(Exception):
    code = "converter_error"
    title = "Error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, title: str | None = None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title


class ValidationError(ConverterError):
    """Bad user input (amount or currency selection); raised before any network call."""

    code = "validation_error"
    title = "Invalid Amount"
    status_code = status.HTTP_400_BAD_REQUEST


class RateFetchError(ConverterError):
    """Network, status or body failure from the rate source."""

    code = "rate_fetch_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class ConversionError(ConverterError):
    code = "conversion_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class StorageError(ConverterError):
    """Read/write failure from the key-value store. Never surfaced to the user."""

    code = "storage_error"


class BusyError(ConverterError):
    code = "busy"
    title = "Busy"
    status_code = status.HTTP_409_CONFLICT


def converter_error_handler(request: Request, exc: ConverterError):  # type: ignore
    logger.info("request failed: %s (%s)", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "title": exc.title,
            "detail": exc.message,
        },
    )


def not_found_handler(request: Request, exc):  # type: ignore
    if exc.status_code != status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "http_error", "detail": exc.detail},
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "not_found",
            "detail": f"No route for {request.method} {request.url.path}",
        },
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "detail": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic v2 error entries may carry the raw exception under "ctx"
    return [
        {k: v for k, v in err.items() if k in ("loc", "msg", "type")}
        for err in exc.errors()
    ]


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
