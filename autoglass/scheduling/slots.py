"""
Slot generation from business hours.

Produces the ordered list of candidate appointment slots for a calendar
day. Pure and deterministic: the output depends only on the schedule
configuration and the weekday.
"""

from datetime import date

from autoglass.config import WEEKDAYS, DayHours, ScheduleConfig, minutes_of
from autoglass.schemas.calendar_schema import TimeSlot


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def format_time_display(time24: str) -> str:
    """Convert ``"13:05"`` to ``"1:05 PM"``; noon and midnight show as 12."""
    hours, minutes = (int(part) for part in time24.split(":"))
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"


class SlotGenerator:
    """Turns a day's business hours into fixed-length slots."""

    def __init__(self, schedule: ScheduleConfig) -> None:
        self._schedule = schedule

    def hours_for(self, day: date) -> DayHours:
        return self._schedule.hours_for(weekday_name(day))

    def generate_slots(self, day: date) -> list[TimeSlot]:
        """Return every slot from opening time, stepping by the slot duration, until close.

        A closed weekday yields an empty list.
        """
        hours = self.hours_for(day)
        if not hours.is_open:
            return []

        slots: list[TimeSlot] = []
        current = minutes_of(hours.open)
        close = minutes_of(hours.close)
        while current < close:
            time_str = f"{current // 60:02d}:{current % 60:02d}"
            slots.append(TimeSlot(time=time_str, display=format_time_display(time_str)))
            current += self._schedule.slot_duration_minutes
        return slots
