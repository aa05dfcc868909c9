"""
Conduit Articles Backend — Custom Exception Hierarchy
======================================================

What:  Application-specific exceptions, one per client-facing failure kind.
How:   Each exception carries a user-facing message plus an optional context
       dict (logged, never returned). Global handlers registered in main.py
       turn them into JSON error responses with the matching status code.
Who:   Raised by the article checks, the auth guard and the service layer.

Exception Hierarchy:
    ConduitError (base)       → 500 Internal Server Error
    ├── BadRequestError       → 400 Bad Request (resource state mismatch)
    ├── UnauthorizedError     → 401 Unauthorized (missing/invalid token)
    ├── ForbiddenError        → 403 Forbidden (not the article's author)
    └── DatabaseError         → 500 Internal Server Error (generic message)
"""

from typing import Any, Dict, Optional


class ConduitError(Exception):
    """
    Base exception for all Conduit application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    error_code: str = "internal_server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(ConduitError):
    """
    Raised when a request conflicts with the current state of a resource.

    When:    Slug already taken or not found, favorite already present or
             missing, a create/update/delete that did not take effect.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "bad_request"

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(ConduitError):
    """
    Raised by the auth guard when no valid token identifies the requester.

    HTTP:    401 Unauthorized (with WWW-Authenticate: Token)
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(ConduitError):
    """
    Raised when an authenticated user acts on a resource they do not own.

    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ConduitError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original
    exception type goes into `context` for the server-side log only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
