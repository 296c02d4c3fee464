"""
Booking error taxonomy.

Every business failure raised by the scheduling and booking layers is a
``BookingError``. The ``kind`` tells the HTTP layer how to surface it so
callers can tell "pick another slot" apart from "fix your input" and
"try again later".
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    SYSTEM = "system"
    UPSTREAM = "upstream"


class BookingError(Exception):
    """Base class for all booking-domain failures."""

    code: str = "booking_error"
    kind: ErrorKind = ErrorKind.SYSTEM
    default_message: str = "Booking operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --- Validation ---

class InvalidRequestError(BookingError):
    code = "invalid_request"
    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class InvalidDateError(InvalidRequestError):
    code = "invalid_date"
    default_message = "Invalid date"


class InvalidServiceError(InvalidRequestError):
    code = "invalid_service"
    default_message = "Invalid service"


class MissingContactInfoError(InvalidRequestError):
    code = "missing_contact_info"
    default_message = "Contact info required"


# --- Conflict ---

class SlotUnavailableError(BookingError):
    code = "slot_unavailable"
    kind = ErrorKind.CONFLICT
    default_message = "Time slot not available"


class CancellationNotAllowedError(BookingError):
    code = "cancellation_not_allowed"
    kind = ErrorKind.CONFLICT
    default_message = "Cannot cancel this booking"


class InvalidTransitionError(BookingError):
    """Raised when a status change is not allowed from the current status."""

    code = "invalid_transition"
    kind = ErrorKind.CONFLICT
    default_message = "Status change not allowed"


class PaymentAlreadyCompletedError(BookingError):
    code = "already_paid"
    kind = ErrorKind.CONFLICT
    default_message = "Booking already paid"


class PaymentNotCompletedError(BookingError):
    code = "payment_not_completed"
    kind = ErrorKind.CONFLICT
    default_message = "Payment not completed"


# --- Forbidden ---

class NotAuthorizedError(BookingError):
    """The caller proved neither staff access nor ownership of the booking."""

    code = "not_authorized"
    kind = ErrorKind.FORBIDDEN
    default_message = "Not authorized"


# --- Not found ---

class BookingNotFoundError(BookingError):
    code = "booking_not_found"
    kind = ErrorKind.NOT_FOUND
    default_message = "Booking not found"


class ServiceNotFoundError(BookingError):
    code = "service_not_found"
    kind = ErrorKind.NOT_FOUND
    default_message = "Service not found"


class ContactNotFoundError(BookingError):
    code = "contact_not_found"
    kind = ErrorKind.NOT_FOUND
    default_message = "Contact not found"


# --- System / upstream ---

class BookingCreationError(BookingError):
    code = "booking_creation_failed"
    kind = ErrorKind.SYSTEM
    default_message = "Failed to create booking"


class PaymentGatewayError(BookingError):
    code = "payment_gateway_error"
    kind = ErrorKind.UPSTREAM
    default_message = "Payment provider error"


class DuplicateKeyError(Exception):
    """Raised by a store when a unique constraint would be violated."""
