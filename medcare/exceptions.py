"""
MedCare Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for each failure category.
Why:   Services raise typed errors; global handlers in main.py turn them into
       JSON responses with the right status code, so routes stay free of
       try/except blocks.
How:   Each exception carries a user-safe message and an optional context
       dict that is logged but never returned verbatim for server errors.

Exception Hierarchy:
    MedCareError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    ├── PaymentGatewayError      → 500 Internal Server Error
    ├── CircuitBreakerOpenError  → 503 Service Unavailable
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class MedCareError(Exception):
    """
    Base exception for all MedCare application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, not returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MedCareError):
    """
    Raised when client input fails a business rule.

    When:    Malformed camp id, rating outside 1-5, non-positive payment amount.
    HTTP:    400 Bad Request
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


class AuthenticationError(MedCareError):
    """
    Raised when the session credential is missing or invalid.

    Both cases share one message so the response does not reveal which
    one occurred; the distinction is kept in `reason` for logging only.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        reason: str = "missing",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="unauthorized access", context=context)
        self.reason = reason


class AuthorizationError(MedCareError):
    """
    Raised when an authenticated user lacks the role a route requires.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        required_role: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if required_role:
            ctx["required_role"] = required_role
        super().__init__(message="forbidden access", context=ctx)
        self.required_role = required_role


class NotFoundError(MedCareError):
    """
    Raised when a requested resource does not exist (or is not owned by the caller).

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(MedCareError):
    """
    Raised when a write that must modify a row modified none.

    When:    The camp counter update matched nothing (camp deleted between
             the read and the write).
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "The resource changed while the request was being processed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(MedCareError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the SQL error
    is logged server-side only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentGatewayError(MedCareError):
    """
    Raised when the payment gateway fails after all retries.

    HTTP:    500 Internal Server Error (with Retry-After when known)
    """

    def __init__(
        self,
        message: str = "Payment service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(MedCareError):
    """
    Raised when the payment gateway circuit breaker is OPEN.

    CLOSED → failures counted → OPEN (reject for recovery_time seconds)
    → HALF_OPEN (one trial call) → CLOSED on success, OPEN on failure.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Payment service is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(MedCareError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests
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
