"""
Tutorials API: Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions for the error scenarios the API answers.
How:   Each exception carries a client-safe `message` and an optional `context`
       dict. Global exception handlers (registered in main.py) turn raised
       ones into structured JSON responses with the matching HTTP status code.
Who:   Raised by the connector and the tutorial service. The CORS, body size
       and rate limit middleware reject before routing and build the same
       body from these exceptions through responses.error_response().

Exception Hierarchy:
    TutorialsAPIError (base)         → 500 Internal Server Error
    ├── ValidationError              → 400 Bad Request
    ├── NotFoundError                → 404 Not Found
    ├── PayloadTooLargeError         → 413 Payload Too Large
    ├── CORSRejectedError            → 403 Forbidden
    ├── RateLimitExceededError       → 429 Too Many Requests
    └── DatabaseError                → 500 Internal Server Error
        └── DatabaseConnectionError  → 503 Service Unavailable

`context` is logged server-side and never returned to the client.
"""

from typing import Any, Dict, Optional


class TutorialsAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TutorialsAPIError):
    """
    Raised when client input fails validation.

    When:    Blank title, malformed tutorial id, update request with no fields.
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


class NotFoundError(TutorialsAPIError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /api/tutorials/{id} with a well-formed id that
             addresses no record.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"Not found {resource} with id {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class PayloadTooLargeError(TutorialsAPIError):
    """Request body exceeded the configured size cap. HTTP 413."""

    def __init__(
        self,
        limit: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["limit"] = limit
        super().__init__(message="Payload too large", context=ctx)
        self.limit = limit


class CORSRejectedError(TutorialsAPIError):
    """Request carried an Origin header outside the allow-list. HTTP 403."""

    def __init__(
        self,
        origin: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["origin"] = origin
        super().__init__(message="Not allowed by CORS", context=ctx)
        self.origin = origin


class RateLimitExceededError(TutorialsAPIError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with a Retry-After header.
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


class DatabaseError(TutorialsAPIError):
    """
    Raised when a store operation fails (timeout, connection lost mid-request).

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. The driver error
    is kept in `context` for the server log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseConnectionError(DatabaseError):
    """
    Raised when the connector cannot open, or is not holding, a connection.

    At startup this is fatal: the lifecycle controller exits with status 1.
    During a request it is answered with 503 Service Unavailable.
    """

    def __init__(
        self,
        message: str = "The database is currently unavailable.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
