"""Time slot, blocked slot and calendar overview models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from autoglass.schemas.booking_schema import CamelModel


class TimeSlot(CamelModel):
    """A single bookable slot. Generated per query, never stored."""

    time: str
    display: str


class BlockReason(str, Enum):
    HOLIDAY = "holiday"
    MAINTENANCE = "maintenance"
    STAFF_UNAVAILABLE = "staff-unavailable"
    FULLY_BOOKED = "fully-booked"
    OTHER = "other"


class BlockedSlot(CamelModel):
    """Staff-managed exclusion of one slot or a whole day."""

    id: str
    date: date
    time_slot: Optional[str] = None
    reason: BlockReason = BlockReason.OTHER
    description: str = ""
    is_all_day: bool = False
    created_by: Optional[str] = None
    created_at: datetime


class DayOverview(CamelModel):
    date: date
    day_of_week: str
    is_open: bool
    business_hours: str
    available_slots: Optional[int] = Field(default=None)
    total_slots: Optional[int] = Field(default=None)
