from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from leaveflow.models.enums import LeaveStatus, ViolationKind


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    kind: str | None = None
    retryable: bool = False


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """An unknown request, leave type, entitlement, policy or user."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class InvalidRangeError(AppError):
    """A date range that is malformed or covers no working days."""

    def __init__(self, message: str = "start date must not be after end date") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InsufficientBalanceError(AppError):
    """The entitlement cannot cover the requested days."""

    def __init__(self, remaining: int, requested: int) -> None:
        self.remaining = remaining
        self.requested = requested
        super().__init__(
            f"Insufficient leave balance: {remaining} day(s) remaining, {requested} requested",
            status_code=status.HTTP_409_CONFLICT,
        )


class ConflictError(AppError):
    """The requested dates overlap an open request, or overlap could not be ruled out."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        self.retryable = retryable
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class PolicyViolationError(AppError):
    """A leave-type or organization policy rule rejected the submission."""

    def __init__(self, kind: ViolationKind, message: str) -> None:
        self.kind = kind
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class UnauthorizedTransitionError(AppError):
    """The actor may not perform this transition on the request."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class InvalidStateTransitionError(AppError):
    """The request is no longer PENDING."""

    def __init__(self, current_status: LeaveStatus, action: str) -> None:
        self.current_status = current_status
        super().__init__(
            f"Cannot {action} a leave request with status {current_status}",
            status_code=status.HTTP_409_CONFLICT,
        )


class LedgerError(AppError):
    """An entitlement row is out of step with the request being settled."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class DuplicateError(AppError):
    """A uniqueness rule was violated."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class ResourceInUseError(AppError):
    """The resource is referenced elsewhere and cannot be changed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    kind = getattr(exc, "kind", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
            kind=str(kind) if kind is not None else None,
            retryable=getattr(exc, "retryable", False),
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
