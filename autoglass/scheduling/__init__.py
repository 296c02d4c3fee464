from autoglass.scheduling.availability import AvailabilityResolver, parse_day
from autoglass.scheduling.blocked_slots import BlockedSlotRegistry
from autoglass.scheduling.slots import SlotGenerator, format_time_display

__all__ = [
    "AvailabilityResolver",
    "BlockedSlotRegistry",
    "SlotGenerator",
    "format_time_display",
    "parse_day",
]
