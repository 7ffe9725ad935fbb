"""
CaddieAI Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a message and optional context dict. Global
       exception handlers (registered in main.py) catch these and return
       structured JSON error responses with the matching HTTP status code.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    CaddieError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── SessionLimitError        → 429 Too Many Requests
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    ├── EmailDeliveryError       → 503 Service Unavailable
    └── CircuitBreakerOpenError  → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class CaddieError(Exception):
    """
    Base exception for all CaddieAI application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CaddieError):
    """
    Raised when client input fails a business rule.

    Schema-level validation (types, ranges) is already handled by Pydantic
    with a 422; this covers rules that need the service layer.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthorizationError(CaddieError):
    """
    Raised when a user acts on a resource owned by someone else.

    When:  Creating a voice session for a round that belongs to another user.
    HTTP:  403 Forbidden
    """

    def __init__(
        self,
        message: str = "You do not have access to this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(CaddieError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that into
    NotFoundError where the caller cannot proceed without the record.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(CaddieError):
    """
    Raised when a write would violate a uniqueness rule.

    When:  A course (or a user's saved course) with the same name exists.
    HTTP:  409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class SessionLimitError(CaddieError):
    """
    Raised when a user already holds an active voice session and the caller
    asked not to replace it.

    HTTP: 429 Too Many Requests
    """

    def __init__(
        self,
        user_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if user_id is not None:
            ctx["user_id"] = user_id
        super().__init__(
            message="An active voice session already exists for this user",
            context=ctx,
        )


class DatabaseError(CaddieError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original
    exception type and identifiers are kept in `context` for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(CaddieError):
    """
    Raised by the SMTP transport when a message could not be delivered
    after all retries.

    EmailService converts this into a False result; it only reaches the
    HTTP layer when a caller uses the transport directly.
    """

    def __init__(
        self,
        message: str = "Email delivery is temporarily unavailable",
        recipient: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if recipient:
            ctx["recipient"] = recipient
        super().__init__(message=message, context=ctx)
        self.recipient = recipient


class CircuitBreakerOpenError(CaddieError):
    """
    Raised when the SMTP circuit breaker is OPEN.

    State machine:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all sends for the recovery timeout)
        → After the timeout → HALF-OPEN (allow one test send)
        → Success → CLOSED; failure → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Email service is temporarily unavailable due to repeated failures. "
            f"Delivery will resume in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(CaddieError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
