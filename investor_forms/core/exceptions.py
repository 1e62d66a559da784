"""
Global exception handlers for the FastAPI application.

Centralises error formatting so every error response follows a consistent
JSON structure::

    {
        "error": true,
        "message": "<human-readable description>"
    }

This module also defines domain-specific exceptions that the service layer
raises without importing FastAPI's HTTPException, keeping the form logic
framework-agnostic.  Remote API failures are classified here too: the form
needs to tell "the server said no" apart from "the server never answered".
"""

import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────
# Domain exceptions  (raised by service layer, caught by handlers below)
# ────────────────────────────────────────────────────────────────────────────


class AppException(Exception):
    """Base exception for all application-level errors."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundException(AppException):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status_code=404,
            message=f"{resource} with id '{identifier}' not found",
        )


class ConflictException(AppException):
    """Request conflicts with the current state of the resource (409)."""

    def __init__(self, message: str):
        super().__init__(status_code=409, message=message)


class BusinessRuleViolation(AppException):
    """Business rule was violated (422)."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(status_code=422, message=message, details=details)


class DraftValidationError(BusinessRuleViolation):
    """Required draft fields are empty at submit time (422)."""

    def __init__(self, message: str, missing_fields: List[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            message,
            details=[{"field": name, "message": "This field is required"} for name in missing_fields],
        )


# ── Remote API failures ──


class RemoteServerError(AppException):
    """
    The remote investor API answered, but not with success (502).

    ``upstream_status`` keeps the status code the remote API returned;
    ``message`` is the server-provided message when one was available.
    """

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(status_code=502, message=message)


class RemoteUnavailableError(AppException):
    """No response was received from the remote investor API (503)."""

    def __init__(self, message: str = "Remote investor API is unreachable"):
        super().__init__(status_code=503, message=message)


class UploadFailedError(AppException):
    """File upload did not produce a usable URL (502)."""

    def __init__(self, message: str):
        super().__init__(status_code=502, message=message)


class SubmissionError(AppException):
    """Unexpected failure while submitting a draft (500)."""

    def __init__(self, message: str):
        super().__init__(status_code=500, message=message)


# ────────────────────────────────────────────────────────────────────────────
# FastAPI exception handler registration
# ────────────────────────────────────────────────────────────────────────────


def add_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI application instance."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        """Handle domain-specific exceptions raised by the service layer."""
        content = {"error": True, "message": exc.message}
        if exc.details is not None:
            content["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle standard HTTP exceptions (e.g. 404 from path-not-found)."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": True, "message": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Handle Pydantic / FastAPI request-validation errors.

        Returns a 422 with a concise list of validation issues so the form
        can point at the offending input.
        """
        errors = []
        for err in exc.errors():
            loc = " -> ".join(str(part) for part in err["loc"])
            errors.append({"field": loc, "message": err["msg"]})
        return JSONResponse(
            status_code=422,
            content={"error": True, "message": "Validation failed", "details": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected exceptions."""
        logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": True,
                "message": "Internal Server Error. Please contact support.",
            },
        )
