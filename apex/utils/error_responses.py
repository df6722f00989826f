"""Builders for the structured error payloads returned by every handler.

Request ids and timestamps are filled in here so :mod:`apex.main` handlers
only decide the category, status and wording of each failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from apex.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from apex.services.errors import ApexError
from apex.utils.request_context import get_request_id

__all__ = [
    "build_apex_error_response",
    "build_error_response",
    "build_validation_error_response",
]


def _current_timestamp() -> datetime:
    """Return the timestamp stamped on error payloads (patched in tests)."""

    return datetime.now(UTC)


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    error_type: ErrorType = ErrorType.VALIDATION_ERROR,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    return ValidationErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str | None,
    status_code: int,
    path: str,
    retry_after: int | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        retry_after=retry_after,
    )


def build_apex_error_response(exc: ApexError, *, path: str) -> ErrorResponse:
    """Render a domain exception using the status and category it declares.

    ``detail`` carries the exception class name so clients can branch on the
    precise failure (e.g. ``InsufficientBalanceError``) without parsing text.
    """

    return build_error_response(
        error_type=exc.error_type,
        message=exc.message,
        detail=type(exc).__name__,
        status_code=exc.status_code,
        path=path,
        retry_after=exc.retry_after,
    )
