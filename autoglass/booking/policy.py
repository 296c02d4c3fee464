"""Cancellation eligibility and refund calculation."""

from datetime import datetime, time
from zoneinfo import ZoneInfo

from autoglass.config import PolicyConfig
from autoglass.schemas.booking_schema import OPEN_STATUSES, Booking


def hours_until(booking: Booking, now: datetime, tz: ZoneInfo) -> float:
    """Hours from ``now`` to the start of the appointment day in ``tz``.

    The time slot is ignored: an afternoon appointment tomorrow is as close
    as a morning one. Negative once the day has begun.
    """
    day_start = datetime.combine(booking.appointment.date, time(0, 0), tzinfo=tz)
    return (day_start.timestamp() - now.timestamp()) / 3600


def can_cancel(booking: Booking, now: datetime, tz: ZoneInfo, policy: PolicyConfig) -> bool:
    """Customers may cancel open bookings at least the cutoff ahead of the appointment day."""
    if booking.status not in OPEN_STATUSES:
        return False
    return hours_until(booking, now, tz) >= policy.cancellation_cutoff_hours


def calculate_refund(booking: Booking, now: datetime, tz: ZoneInfo, policy: PolicyConfig) -> float:
    """Advisory refund for a cancellation at ``now``.

    Full refund at or beyond ``full_refund_hours``, a partial refund down
    to the cancellation cutoff, nothing after that.
    """
    hours = hours_until(booking, now, tz)
    paid = booking.payment.paid_amount
    if hours >= policy.full_refund_hours:
        return paid
    if hours >= policy.cancellation_cutoff_hours:
        return round(paid * policy.partial_refund_ratio, 2)
    return 0.0
