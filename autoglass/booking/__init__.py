from autoglass.booking.ledger import BookingLedger, CancellationOutcome, generate_booking_number
from autoglass.booking.policy import calculate_refund, can_cancel, hours_until
from autoglass.booking.state_machine import check_transition

__all__ = [
    "BookingLedger",
    "CancellationOutcome",
    "generate_booking_number",
    "calculate_refund",
    "can_cancel",
    "hours_until",
    "check_transition",
]
