"""Error taxonomy for booking operations.

Every error carries the HTTP status the API layer answers with.
"""


class BookingError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    """Raised when a clinic, doctor or appointment does not exist."""
    status_code = 404


class ValidationError(BookingError):
    """Raised for missing or malformed input and forbidden transitions."""
    status_code = 400


class ConflictError(BookingError):
    """Raised when a slot is already held by a non-cancelled appointment."""
    status_code = 400


class PermissionDeniedError(BookingError):
    """Raised when the caller may not touch the requested appointment."""
    status_code = 403
