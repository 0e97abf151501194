"""Booking error taxonomy, rendered to HTTP by the handler in main.py."""

from __future__ import annotations


class BookingError(Exception):
    status_code = 500
    message = "Booking operation failed"

    def __init__(self, message: str | None = None, **extra):
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, **self.extra}


class ValidationError(BookingError):
    status_code = 400
    message = "Invalid request"


class MissingFields(ValidationError):
    message = "Patient name, contact, and issue description are required"


class InvalidRating(ValidationError):
    message = "Rating must be between 1 and 5"


class MissingEmail(ValidationError):
    message = "An email address is required to submit a booking"

    def __init__(self, message: str | None = None):
        super().__init__(message, requires_email=True)


class KYCRequired(BookingError):
    status_code = 403
    message = "KYC verification required"

    def __init__(self, message: str | None = None):
        super().__init__(message, requires_kyc=True)


class InvalidTransition(BookingError):
    status_code = 400
    message = "Order is not in a state that allows this action"


class NotFound(BookingError):
    status_code = 404
    message = "Not found"


class OrderNotFound(NotFound):
    message = "Booking not found"


class PatientNotFound(NotFound):
    message = "Patient not found"


class PersistenceError(BookingError):
    status_code = 500
    message = "Failed to access booking store"

    def __init__(self, message: str | None = None, details: str = ""):
        super().__init__(message, details=details or "Unknown error")
