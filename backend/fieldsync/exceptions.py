"""
FieldSync Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each error class of the API.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn them into the common
       error envelope `{"success": false, "message": ..., "error"?: ...}`.
Who:   Raised by services; caught by the global handlers.

Exception Hierarchy:
    FieldSyncError (base)
    ├── ValidationError       → 400 Bad Request
    ├── AuthenticationError   → 401 Unauthorized
    ├── ConflictError         → 409 Conflict
    └── DatabaseError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class FieldSyncError(Exception):
    """
    Base exception for all FieldSync application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, NOT returned to the client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FieldSyncError):
    """
    Raised when a request lacks required fields or carries a malformed body.

    Checked before any datastore access.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if fields:
            ctx["fields"] = list(fields)
        super().__init__(message=message, context=ctx)
        self.fields = list(fields or [])


class AuthenticationError(FieldSyncError):
    """
    No inspector matches the supplied identifier and secret.

    Deliberately the same for "unknown identifier" and "wrong secret".
    """

    status_code = 401

    def __init__(
        self,
        message: str = "ID de Inspector o contraseña incorrectos.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConflictError(FieldSyncError):
    """The inspector identifier being registered already exists."""

    status_code = 409

    def __init__(
        self,
        message: str = "Este ID de inspector ya está registrado.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(FieldSyncError):
    """
    Raised when a datastore operation fails.

    `detail` is the driver's own error text, returned to the client in the
    `error` field for diagnostics. It never contains bound statement
    parameters. Leave it None where even that is too much (login).
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Error en la base de datos.",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.detail = detail
