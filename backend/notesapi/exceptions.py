"""
Notes API - Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for the error kinds the API reports.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into
       JSON error responses with the matching HTTP status code.
Who:   Raised by the storage layer and route handlers; caught by the handlers.

Exception Hierarchy:
    NotesAPIError (base)
    ├── ValidationError              → 400 Bad Request
    ├── NotFoundError                → 404 Not Found
    └── DatabaseError                → 500 Internal Server Error
        └── DatabaseConnectionError  → 500 / fatal at startup
"""

from typing import Any, Dict, Optional


class NotesAPIError(Exception):
    """
    Base exception for all Notes API errors.

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


class ValidationError(NotesAPIError):
    """
    Raised when client input fails validation.

    When:    Malformed note id, body that is not a JSON object, missing or
             empty title/content, missing search query.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Title and content required",
            "details": {"field": "title"}
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


class NotFoundError(NotesAPIError):
    """
    Raised when a requested note does not exist.

    When:    get/update/delete with an id that matches no row.
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


class DatabaseError(NotesAPIError):
    """
    Raised when a database statement fails.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Driver errors,
    SQL text and connection details go into `context` and are logged
    server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseConnectionError(DatabaseError):
    """
    Raised when the store cannot be initialized.

    When:    Invalid connection string, unknown driver, database unreachable,
             or the notes table cannot be created.
    """

    def __init__(
        self,
        message: str = "Could not connect to the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
