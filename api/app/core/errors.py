"""
Error taxonomy and the FastAPI handlers that render it as JSON.

Every error body has the shape ``{"error": "<message>"}``. Upstream errors
mirror the provider's status code when it is a 4xx/5xx, otherwise 500.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """A required setting is missing. Raised before the app accepts traffic."""


class MalformedRequestError(ValueError):
    """The inbound request has an invalid shape or value."""


class UpstreamError(Exception):
    """A third-party provider call failed."""

    default_message = "Upstream request failed"

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = status_code
        self.payload = payload
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        """Status to report to our caller."""
        if self.status_code is not None and 400 <= self.status_code < 600:
            return self.status_code
        return status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamSearchError(UpstreamError):
    """The search provider returned a non-success status or was unreachable."""

    default_message = "Failed to get response from Tavily"


class UpstreamCompletionError(UpstreamError):
    """The model provider returned a non-success status or was unreachable."""

    default_message = "Failed to get response from DeepSeek"


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error(
        "%s on %s %s (upstream status %s): %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return error_response(exc.message, exc.http_status)


async def _malformed_request_handler(
    request: Request, exc: MalformedRequestError
) -> JSONResponse:
    logger.warning("Malformed request on %s: %s", request.url.path, exc)
    return error_response(str(exc), status.HTTP_400_BAD_REQUEST)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    message = "; ".join(problems) or "Invalid request body"
    logger.warning("Rejected request on %s: %s", request.url.path, message)
    return error_response(message, status.HTTP_400_BAD_REQUEST)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        str(exc) or "Failed to process request", status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def register_exception_handlers(application: FastAPI) -> None:
    """Attach the JSON error handlers to the application."""
    application.add_exception_handler(UpstreamError, _upstream_error_handler)
    application.add_exception_handler(MalformedRequestError, _malformed_request_handler)
    application.add_exception_handler(RequestValidationError, _validation_error_handler)
    application.add_exception_handler(Exception, _unhandled_error_handler)
