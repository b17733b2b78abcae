"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs.

Every problem body also carries an ``error`` member holding the detail
message, which is the field the web client displays.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .timeutils import isoformat_z, utcnow

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://villaingrosso.com/problems"


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
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details: Dict[str, Any] = {
            "type": self.type_uri,
            "title": title,
            "status": status_code,
            "error": detail or title,
        }

        if detail:
            self.problem_details["detail"] = detail

        if instance:
            self.problem_details["instance"] = instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=detail or title,
            headers=headers,
        )


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        violations: Optional[List[Dict[str, str]]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if violations:
            extensions["violations"] = violations

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/validation-error",
            instance=instance,
            extensions=extensions,
        )


class DuplicateAccountError(ProblemDetailsException):
    """Raised when a username or email is already registered."""

    def __init__(self, field: str, instance: Optional[str] = None):
        super().__init__(
            status_code=400,
            title="Account Already Exists",
            detail=f"{field.capitalize()} already exists",
            type_uri=f"{PROBLEM_BASE_URI}/duplicate-account",
            instance=instance,
            extensions={"field": field},
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "Not authenticated",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/authentication-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors."""

    def __init__(
        self,
        detail: str = "Not authorized",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/access-forbidden",
            instance=instance,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[Any] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id is not None:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions: Dict[str, Any] = {"resource_type": resource_type}
        if resource_id is not None:
            extensions["resource_id"] = str(resource_id)

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-not-found",
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
            type_uri=f"{PROBLEM_BASE_URI}/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class InvalidStatusTransitionError(ProblemDetailsException):
    """Raised when a booking cannot move from its current status to the requested one."""

    def __init__(self, booking_id: int, current_status: str, requested_status: str):
        super().__init__(
            status_code=409,
            title="Invalid Status Transition",
            detail=f"Booking {booking_id} cannot change from '{current_status}' to '{requested_status}'",
            type_uri=f"{PROBLEM_BASE_URI}/invalid-status-transition",
            extensions={
                "booking_id": booking_id,
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )


class InsufficientQuantityError(ProblemDetailsException):
    """Exception when requested quantity exceeds available quantity."""

    def __init__(
        self,
        requested_quantity: int,
        available_quantity: int,
        item_id: Optional[int] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"Requested quantity ({requested_quantity}) exceeds available quantity ({available_quantity})"
            if item_id is not None:
                detail += f" for item {item_id}"

        extensions: Dict[str, Any] = {
            "requested_quantity": requested_quantity,
            "available_quantity": available_quantity,
        }
        if item_id is not None:
            extensions["item_id"] = item_id

        super().__init__(
            status_code=409,
            title="Insufficient Quantity",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/insufficient-quantity",
            instance=instance,
            extensions=extensions,
        )


class ExternalServiceError(ProblemDetailsException):
    """Raised when a third-party API call fails and the caller asked for its result."""

    def __init__(self, service: str, detail: Optional[str] = None):
        super().__init__(
            status_code=502,
            title="Upstream Service Error",
            detail=detail or f"The {service} service could not complete the request",
            type_uri=f"{PROBLEM_BASE_URI}/upstream-service-error",
            extensions={"service": service},
        )


class ServiceUnavailableError(ProblemDetailsException):
    """Raised when a feature depends on an integration that is not configured."""

    def __init__(self, service: str, detail: Optional[str] = None):
        super().__init__(
            status_code=503,
            title="Service Unavailable",
            detail=detail or f"The {service} integration is not configured",
            type_uri=f"{PROBLEM_BASE_URI}/service-unavailable",
            extensions={"service": service},
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/internal-server-error",
            instance=instance,
            extensions={
                "error_id": error_id or str(uuid.uuid4()),
                "timestamp": isoformat_z(utcnow()),
            },
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    content = dict(exc.problem_details)
    content.setdefault("instance", request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render plain ``HTTPException`` instances (404 routes, 405 methods) as problem details."""
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": f"about:blank#{exc.status_code}",
            "title": detail,
            "status": exc.status_code,
            "detail": detail,
            "error": detail,
            "instance": request.url.path,
        },
        headers=getattr(exc, "headers", None),
        media_type="application/problem+json",
    )


def _format_violation(error: Dict[str, Any]) -> Dict[str, str]:
    # Drop the leading "body"/"query" segment so paths read like field names
    location = [str(part) for part in error.get("loc", ())]
    if len(location) > 1 and location[0] in ("body", "query", "path", "header", "cookie"):
        location = location[1:]
    return {"path": ".".join(location), "message": error.get("msg", "Invalid value")}


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI request validation failures to a 400 problem response."""
    violations = [_format_violation(error) for error in exc.errors()]
    detail = violations[0]["message"] if len(violations) == 1 else "The request data failed validation"
    if len(violations) == 1 and violations[0]["path"]:
        detail = f"{violations[0]['path']}: {detail}"

    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "violations": violations},
    )

    return JSONResponse(
        status_code=400,
        content={
            "type": f"{PROBLEM_BASE_URI}/validation-error",
            "title": "Validation Error",
            "status": 400,
            "detail": detail,
            "error": detail,
            "instance": request.url.path,
            "violations": violations,
        },
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
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        extra={"error_id": error_id, "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    return await problem_details_handler(request, InternalServerError(error_id=error_id))
