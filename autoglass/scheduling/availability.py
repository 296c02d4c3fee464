"""
Availability resolution.

Combines the generated slots for a day with staff blocks, existing
bookings and the same-day notice window to decide which slots can still
be booked.

Algorithm for ``available_slots(day)``:
    1. Normalize the input to a calendar day in the business timezone
    2. Past days have no availability
    3. Any all-day block empties the day; other blocks remove single slots
    4. Pending, confirmed and in-progress bookings consume capacity
    5. Slots at capacity are removed
    6. Today, slots starting within the notice window are removed
"""

import logging
import re
from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from autoglass.clock import Clock
from autoglass.config import ScheduleConfig
from autoglass.errors import InvalidDateError, InvalidRequestError
from autoglass.scheduling.slots import SlotGenerator, weekday_name
from autoglass.schemas.booking_schema import ACTIVE_STATUSES, Booking
from autoglass.schemas.calendar_schema import DayOverview, TimeSlot
from autoglass.store import BlockedSlotStore, BookingStore

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

DateInput = Union[date, datetime, str]

MAX_OVERVIEW_DAYS = 92


def parse_day(value: DateInput, tz=None) -> date:
    """Normalize a date input to a calendar day.

    Strings must be ``YYYY-MM-DD`` and are built from their components so
    no timezone conversion can shift the day. Aware datetimes are first
    converted to ``tz`` when given.
    """
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    match = _DATE_RE.match(str(value).strip())
    if not match:
        raise InvalidDateError(f"Invalid date: {value!r}, expected YYYY-MM-DD")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise InvalidDateError(f"Invalid date: {value!r}") from None


class AvailabilityResolver:
    """Answers "which slots are free on this day" against live bookings and blocks."""

    def __init__(
        self,
        schedule: ScheduleConfig,
        bookings: BookingStore,
        blocked_slots: BlockedSlotStore,
        clock: Clock,
    ) -> None:
        self._schedule = schedule
        self._bookings = bookings
        self._blocked = blocked_slots
        self._clock = clock
        self._generator = SlotGenerator(schedule)

    @property
    def generator(self) -> SlotGenerator:
        return self._generator

    def today(self) -> date:
        return self._clock.now().date()

    async def available_slots(self, day: DateInput) -> list[TimeSlot]:
        target = parse_day(day, self._clock.tz)
        today = self.today()
        if target < today:
            return []

        next_day = target + timedelta(days=1)

        blocked = await self._blocked.find_in_range(target, next_day)
        if any(b.is_all_day for b in blocked):
            logger.debug("%s is blocked for the whole day", target)
            return []
        blocked_times = {b.time_slot for b in blocked if b.time_slot}

        bookings = await self._bookings.find_in_range(target, next_day, ACTIVE_STATUSES)
        booked = Counter(b.appointment.time_slot for b in bookings)

        cutoff: Optional[datetime] = None
        if target == today:
            cutoff = self._clock.now() + timedelta(hours=self._schedule.min_notice_hours)

        available = []
        for slot in self._generator.generate_slots(target):
            if slot.time in blocked_times:
                continue
            if booked[slot.time] >= self._schedule.max_bookings_per_slot:
                continue
            if cutoff is not None and self._slot_start(target, slot.time) <= cutoff:
                continue
            available.append(slot)
        return available

    async def is_slot_available(self, day: DateInput, time_slot: str) -> bool:
        """True when ``time_slot`` is in ``available_slots(day)``."""
        slots = await self.available_slots(day)
        return any(slot.time == time_slot for slot in slots)

    async def calendar_overview(
        self,
        start: Optional[DateInput] = None,
        end: Optional[DateInput] = None,
    ) -> list[DayOverview]:
        """Per-day summary of opening hours and slot counts for a date range (inclusive)."""
        first = parse_day(start, self._clock.tz) if start is not None else self.today()
        last = (
            parse_day(end, self._clock.tz)
            if end is not None
            else self.today() + timedelta(days=self._schedule.advance_booking_days)
        )
        if last < first:
            raise InvalidRequestError("End date must not be before start date")
        max_days = max(MAX_OVERVIEW_DAYS, self._schedule.advance_booking_days + 1)
        if (last - first).days + 1 > max_days:
            raise InvalidRequestError(f"Date range may span at most {max_days} days")

        overview: list[DayOverview] = []
        current = first
        while current <= last:
            hours = self._generator.hours_for(current)
            day_info = DayOverview(
                date=current,
                day_of_week=weekday_name(current),
                is_open=hours.is_open,
                business_hours=hours.label,
            )
            if hours.is_open:
                day_info.available_slots = len(await self.available_slots(current))
                day_info.total_slots = len(self._generator.generate_slots(current))
            overview.append(day_info)
            current += timedelta(days=1)
        return overview

    async def bookings_for_date(self, day: DateInput) -> list[Booking]:
        """Every booking on the day, any status, ordered by time slot."""
        target = parse_day(day, self._clock.tz)
        bookings = await self._bookings.find_in_range(target, target + timedelta(days=1))
        return sorted(bookings, key=lambda b: b.appointment.time_slot)

    def _slot_start(self, day: date, time_slot: str) -> datetime:
        hours, minutes = (int(part) for part in time_slot.split(":"))
        return datetime.combine(day, time(hours, minutes), tzinfo=self._clock.tz)
