"""
ContactBook Backend - Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for every error the API can return.
Why:   Services raise typed errors; a single set of global handlers (main.py)
       turns them into the wire shape
       ``{"error": {"code", "message", "details"?, "requestId"}}``.
How:   Each exception carries an ErrorKind, a machine-readable code, a
       human-readable message and optional structured details. The HTTP
       status is looked up from the kind, never stored ad hoc.

Exception Hierarchy:
    ContactBookError (base)
    ├── ValidationError          → 400 VALIDATION_ERROR
    ├── UnauthorizedError        → 401 UNAUTHORIZED / INVALID_CREDENTIALS
    ├── NotFoundError            → 404 *_NOT_FOUND
    ├── ConflictError            → 409 USER_EXISTS / DUPLICATE_EMAIL
    ├── RateLimitExceededError   → 429 RATE_LIMIT_EXCEEDED
    └── DatabaseError            → 500 DATABASE_ERROR
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}

# Client-facing text for every 5xx; the real message only goes to the logs
GENERIC_SERVER_MESSAGE = "Something went wrong on the server."


class ContactBookError(Exception):
    """
    Base exception for all ContactBook application errors.

    Attributes:
        kind:     Error category; determines the HTTP status
        code:     Machine-readable error code (e.g. "DUPLICATE_EMAIL")
        message:  Human-readable description
        details:  Optional structured payload returned to the client
        context:  Extra debug info (logged, never returned)
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(ContactBookError):
    """Client input failed shape/type checks. ``details`` lists every violation."""

    kind = ErrorKind.VALIDATION
    default_code = "VALIDATION_ERROR"
    default_message = "Invalid request data"


class UnauthorizedError(ContactBookError):
    """Missing, malformed, expired or wrong credentials."""

    kind = ErrorKind.UNAUTHORIZED
    default_code = "UNAUTHORIZED"
    default_message = "Not authenticated."


class NotFoundError(ContactBookError):
    """
    The resource does not exist, or belongs to someone else.

    Ownership mismatch is reported exactly like absence so callers cannot
    probe for other users' record IDs.
    """

    kind = ErrorKind.NOT_FOUND
    default_code = "NOT_FOUND"
    default_message = "The requested resource was not found"


class ConflictError(ContactBookError):
    """A uniqueness rule would be violated."""

    kind = ErrorKind.CONFLICT
    default_code = "CONFLICT"
    default_message = "The resource already exists"


class RateLimitExceededError(ContactBookError):
    """Client exceeded the per-address request budget for the current window."""

    kind = ErrorKind.RATE_LIMITED
    default_code = "RATE_LIMIT_EXCEEDED"
    default_message = "Too many requests, please try again later."

    def __init__(self, retry_after: int = 60, context: Optional[Dict[str, Any]] = None):
        super().__init__(context=context)
        self.retry_after = retry_after


class DatabaseError(ContactBookError):
    """
    A database operation failed unexpectedly.

    The client always sees the generic server message; the original error
    type is kept in ``context`` for the logs.
    """

    kind = ErrorKind.INTERNAL
    default_code = "DATABASE_ERROR"
    default_message = "A database error occurred. Please try again later."
