"""
Nexus Forum Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and stores; caught by global handlers.

Exception Hierarchy:
    ForumError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   └── ConflictError        → 400 Bad Request (unique key already taken)
    ├── AuthError                → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ForumError(Exception):
    """
    Base exception for all forum application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only when error
                  details are enabled)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ForumError):
    """
    Raised when client input fails validation or violates a store constraint.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "parent post 7 belongs to a different topic",
            "details": {"field": "parent_id"}
        }
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


class ConflictError(ValidationError):
    """
    Raised when a unique natural key (username, email) is already taken.

    Subclasses ValidationError so callers that only care about "bad input"
    keep working; HTTP status stays 400.
    """

    def __init__(
        self,
        message: str = "Username or email already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field=field, context=context)


class AuthError(ForumError):
    """
    Raised when credentials or a token cannot be verified.

    HTTP: 401 Unauthorized

    The default message is deliberately identical for "unknown user" and
    "wrong password".
    """

    def __init__(
        self,
        message: str = "Invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ForumError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found
    When: GET /api/topics/{id} or POST /api/posts/{id}/like with an unknown id.
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


class DatabaseError(ForumError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error

    The raw driver error is kept in context["original_error"] and only
    returned to clients when EXPOSE_ERROR_DETAILS is enabled.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
