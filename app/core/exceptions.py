"""
Error taxonomy and FastAPI exception handlers.

Two layers:
- store errors (raised by app.services.store, no HTTP knowledge);
- API errors (carry a status code and a client-safe message).

Handlers turn both into the JSON envelope
``{"status": "error", "message": ..., "code": ..., "errors": {...}}``.
Unexpected failures are logged with their traceback and answered with a
generic message; raw exception text is never sent to the client.
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.services.validation import Violation, violations_to_dict

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


# =============================================================================
# Store errors
# =============================================================================


class StoreError(Exception):
    """Persistence layer failure (driver error, failed commit, bad query)."""


class EntityNotFoundError(StoreError):
    """No entity of the expected type has the given id."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConstraintViolationError(StoreError):
    """A write would break a field or relational invariant."""

    def __init__(self, violations: list[Violation]):
        super().__init__("; ".join(f"{v.path}: {v.message}" for v in violations))
        self.violations = violations


class InvalidQueryError(StoreError):
    """Unknown sort column or order direction passed to a filtered query."""


# =============================================================================
# API errors
# =============================================================================


class ApiError(Exception):
    """Base for errors that map directly onto an HTTP response."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result: dict[str, Any] = {
            "status": "error",
            "message": self.message,
            "code": self.code,
        }
        if self.errors:
            result["errors"] = self.errors
        return result


class BadRequestError(ApiError):
    """Malformed body (invalid JSON, wrong shape)."""

    def __init__(self, message: str = "Invalid JSON data", errors: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="BAD_REQUEST",
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=errors,
        )


class ValidationFailedError(ApiError):
    """One or more field constraints failed; carries every violation."""

    def __init__(self, violations: list[Violation]):
        super().__init__(
            message="Validation failed",
            code="VALIDATION_FAILED",
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=violations_to_dict(violations),
        )
        self.violations = violations

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.errors or {}
        result["violations"] = [
            {"propertyPath": v.path, "message": v.message} for v in self.violations
        ]
        return result


class NotFoundError(ApiError):
    """Referenced resource does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class InternalError(ApiError):
    """Unexpected failure; the message is always the generic one."""

    def __init__(self) -> None:
        super().__init__(message=INTERNAL_ERROR_MESSAGE)


# =============================================================================
# Handlers
# =============================================================================


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Convert ApiError to its JSON envelope."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def entity_not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    """Path id did not resolve: 404."""
    return await api_error_handler(request, NotFoundError(f"{exc.entity} not found"))


async def constraint_violation_handler(
    request: Request, exc: ConstraintViolationError
) -> JSONResponse:
    """Uniqueness or relation invariant broken at write time: 400."""
    return await api_error_handler(request, ValidationFailedError(exc.violations))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Path/query/body type errors detected by FastAPI: 400 keyed by field."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "body", err.get("msg", "Invalid value"))
    return await api_error_handler(request, BadRequestError("Invalid request", errors=errors))


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Persistence failure: log details, answer generically."""
    logger.exception("Store error on %s %s: %s", request.method, request.url.path, exc)
    return await api_error_handler(request, InternalError())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything not mapped above."""
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return await api_error_handler(request, InternalError())
