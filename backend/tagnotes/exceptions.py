"""
TagNotes Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the three failure kinds the core
       can produce.
How:   Each exception carries a message and an optional context dict. Global
       exception handlers (registered in main.py) map each type to an HTTP
       status code and a structured JSON body. Nothing inspects message text.
Who:   Raised by NotesService; caught by the handlers in main.py.

Exception Hierarchy:
    TagNotesError (base)
    ├── ValidationError   → 400 Bad Request (client-supplied data breaks a rule)
    ├── NotFoundError     → 404 Not Found   (referenced note id does not exist)
    └── DatabaseError     → 500 Internal Server Error (store unreachable/rejected)
"""

from typing import Any, Dict, Optional


class TagNotesError(Exception):
    """
    Base exception for all TagNotes application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TagNotesError):
    """
    Raised when note input violates a validation rule.

    When:    Missing/blank/too long title or content, or tags of the wrong shape.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Title must be at most 100 characters",
            "details": {"field": "title", "max_length": 100}
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


class NotFoundError(TagNotesError):
    """
    Raised when a requested note does not exist.

    The storage layer reports absence as `None` / `changed=False`; NotesService
    is the only place that turns that into this exception.
    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class DatabaseError(TagNotesError):
    """
    Raised when a storage operation fails.

    What:    A query or write failed (connection lost, constraint violation...).
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. `context` records
    which operation failed and the driver's exception type; it is logged
    server-side and never sent in the response.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
