"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if detail:
            self.problem_details["detail"] = detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def code(self) -> Optional[str]:
        """Application-specific error code, when one was attached."""
        return self.problem_details.get("code")


class NotFoundError(ProblemDetailsException):
    """Exception for unknown resources and reservations."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://example.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class InvalidIntervalError(ProblemDetailsException):
    """Exception for malformed, zero-length or out-of-calendar intervals."""

    def __init__(
        self,
        detail: str = "The requested interval is not valid",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": "INVALID_INTERVAL", "retryable": False}
        if start is not None:
            extensions["start"] = start.isoformat()
        if end is not None:
            extensions["end"] = end.isoformat()

        super().__init__(
            status_code=422,
            title="Invalid Interval",
            detail=detail,
            type_uri="https://example.com/problems/invalid-interval",
            instance=instance,
            extensions=extensions,
        )


class InvalidTransitionError(ProblemDetailsException):
    """Exception when a reservation cannot move to the requested status."""

    def __init__(
        self,
        reservation_id: str,
        current_status: str,
        target_status: str,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = (
                f"Reservation {reservation_id} cannot move from "
                f"'{current_status}' to '{target_status}'"
            )

        super().__init__(
            status_code=409,
            title="Invalid Transition",
            detail=detail,
            type_uri="https://example.com/problems/invalid-transition",
            instance=instance,
            extensions={
                "code": "INVALID_TRANSITION",
                "retryable": False,
                "reservation_id": reservation_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class BookingConflictError(ConflictError):
    """Exception when a requested interval overlaps an active reservation."""

    def __init__(self, resource_id: str, requested: Any, conflicting: Any):
        super().__init__(
            detail=(
                f"Resource {resource_id} is already booked for "
                f"{conflicting.start.isoformat()} - {conflicting.end.isoformat()}"
            ),
            conflicting_resource={
                "resource_id": resource_id,
                "requested": {
                    "start": requested.start.isoformat(),
                    "end": requested.end.isoformat(),
                },
                "conflicting": {
                    "start": conflicting.start.isoformat(),
                    "end": conflicting.end.isoformat(),
                },
            }
        )
        self.resource_id = resource_id
        self.requested = requested
        self.conflicting = conflicting
        self.problem_details.update({
            "code": "CONFLICT",
            "retryable": False
        })


class ResourceBusyError(ConflictError):
    """Exception when the per-resource booking lock could not be acquired in time."""

    def __init__(self, resource_id: str, timeout_seconds: float):
        super().__init__(
            detail=f"Resource {resource_id} is busy; retry the request",
            conflicting_resource={"resource_id": resource_id}
        )
        self.problem_details.update({
            "code": "RESOURCE_BUSY",
            "retryable": True,
            "lock_timeout_seconds": timeout_seconds
        })


class HoldExpiredError(InvalidTransitionError):
    """Exception when a pending reservation's hold lapsed before confirmation."""

    def __init__(self, reservation_id: str, expired_at: datetime):
        super().__init__(
            reservation_id=reservation_id,
            current_status="cancelled",
            target_status="confirmed",
            detail=f"Hold for reservation {reservation_id} expired at {expired_at.isoformat()}"
        )
        self.problem_details.update({
            "code": "HOLD_EXPIRED",
            "expired_at": expired_at.isoformat()
        })


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
