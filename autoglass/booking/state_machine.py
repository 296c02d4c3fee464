"""
Booking status state machine.

Statuses only move forward along the explicit transitions below. A
booking that is cancelled, completed or marked a no-show never changes
status again.

Usage:
    changed = check_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    assert changed
"""

import logging
from dataclasses import dataclass

from autoglass.errors import InvalidTransitionError
from autoglass.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """A single valid status change."""
    from_status: BookingStatus
    to_status: BookingStatus


TRANSITIONS: list[Transition] = [
    # --- Happy path ---
    Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED),
    Transition(BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS),
    Transition(BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED),

    # --- Cancellation ---
    Transition(BookingStatus.PENDING, BookingStatus.CANCELLED),
    Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED),

    # --- Missed appointment ---
    Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
]

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW}
)

_ALLOWED: dict[BookingStatus, set[BookingStatus]] = {}
for _t in TRANSITIONS:
    _ALLOWED.setdefault(_t.from_status, set()).add(_t.to_status)


def allowed_targets(current: BookingStatus) -> list[BookingStatus]:
    """Statuses reachable from ``current`` in one step."""
    return sorted(_ALLOWED.get(BookingStatus(current), set()), key=lambda s: s.value)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in _ALLOWED.get(BookingStatus(current), set())


def check_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Validate a status change.

    Returns True when the status actually changes and False when
    ``target`` re-asserts the current non-terminal status (a no-op).

    Raises:
        InvalidTransitionError: if the change is not allowed.
    """
    current = BookingStatus(current)
    target = BookingStatus(target)
    if current == target and current not in TERMINAL_STATUSES:
        return False
    if can_transition(current, target):
        return True
    valid = ", ".join(s.value for s in allowed_targets(current)) or "none"
    logger.warning("Rejected status change %s -> %s", current.value, target.value)
    raise InvalidTransitionError(
        f"Cannot change status from '{current.value}' to '{target.value}'. "
        f"Allowed: {valid}"
    )
