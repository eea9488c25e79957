"""
ThoughtJar Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and messages that never leak internal details.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, the auth gate and the identity verifier.

Exception Hierarchy:
    ThoughtJarError (base)
    ├── ValidationError            → 400 Bad Request (required field missing)
    ├── AuthenticationError        → 401 Unauthorized (uniform, no detail)
    ├── NotFoundError              → 404 Not Found (missing OR not owned)
    ├── DatabaseError              → 500 Internal Server Error
    └── IdentityVerificationError  → never returned; the auth gate converts it
                                     to AuthenticationError after logging
"""

from typing import Any, Dict, Optional


class ThoughtJarError(Exception):
    """
    Base exception for all ThoughtJar application errors.

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


class ValidationError(ThoughtJarError):
    """
    Raised when the client omitted a field the handler requires.

    When:    Missing thought/folder id on update or delete, missing folder
             name, missing thought text or section on create.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Missing thought ID",
            "details": {"field": "id"}
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


class AuthenticationError(ThoughtJarError):
    """
    Raised by the auth gate when a request carries no usable bearer credential.

    The message is fixed: callers learn nothing about why the token was
    refused. The reason travels in `context` for the server log only.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Unauthorized", context=context)


class NotFoundError(ThoughtJarError):
    """
    Raised when an owner-scoped statement matched zero rows.

    "Does not exist" and "belongs to someone else" are the same outcome:
    the statement filters on both id and owner, so there is nothing to
    tell them apart with.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found or unauthorized"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(ThoughtJarError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, constraint violation (e.g. a duplicate
             folder name for the same owner), deadlock, etc.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Detailed error info (constraint name, driver message) is logged
        server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityVerificationError(ThoughtJarError):
    """
    Raised by an IdentityVerifier when a token cannot be verified.

    Covers expired, malformed, wrongly signed and wrong-audience tokens, as
    well as "no verification key available".
    """

    def __init__(
        self,
        message: str = "Token verification failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
