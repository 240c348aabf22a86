"""
Errors raised by the booking engine.

Every error is caller-facing: it is raised synchronously from the operation
that detected it and turned into a JSON response by the handler in app.main.
"""
from fastapi import status


class BookingEngineError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code, "details": self.details}


class ValidationError(BookingEngineError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BookingEngineError):
    """Unknown instructor, student or booking."""
    status_code = status.HTTP_404_NOT_FOUND


class AvailabilityError(BookingEngineError):
    """Requested time is outside the resolved window, or the instructor is absent."""
    status_code = status.HTTP_409_CONFLICT


class ConflictError(BookingEngineError):
    """Overlap with another booking of the same instructor or student."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, scope: str | None = None, booking_ids=None):
        details = {}
        if scope:
            details["scope"] = scope
        if booking_ids:
            details["conflicting_booking_ids"] = list(booking_ids)
        super().__init__(message, details=details)
        self.scope = scope


class DuplicatePendingError(BookingEngineError):
    """Student already has a pending booking."""
    status_code = status.HTTP_409_CONFLICT


class StateError(BookingEngineError):
    """Illegal booking or payment status transition."""
    status_code = status.HTTP_409_CONFLICT
