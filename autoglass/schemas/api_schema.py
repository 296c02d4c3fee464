"""Request bodies accepted by the HTTP API (camelCase on the wire)."""

from typing import Optional

from pydantic import Field

from autoglass.schemas.booking_schema import (
    BookingStatus,
    CamelModel,
    Location,
    Vehicle,
)
from autoglass.schemas.calendar_schema import BlockReason


class InsuranceInfo(CamelModel):
    company: str = ""
    policy_number: str = ""
    claim_number: str = ""


class CreateBookingRequest(CamelModel):
    """Booking form submission. Contact fields are required for guests only."""

    service_id: str
    vehicle: Vehicle
    appointment_date: str
    time_slot: str
    is_mobile_service: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[Location] = None
    notes: str = ""
    use_insurance: bool = False
    insurance_info: Optional[InsuranceInfo] = None


class CancelBookingRequest(CamelModel):
    """Guests prove ownership with the booking number and contact email."""

    reason: Optional[str] = None
    booking_number: Optional[str] = None
    email: Optional[str] = None


class StatusUpdateRequest(CamelModel):
    status: BookingStatus
    reason: Optional[str] = None
    technician_notes: str = ""


class BlockSlotRequest(CamelModel):
    date: str
    time_slot: Optional[str] = None
    is_all_day: bool = False
    reason: BlockReason = BlockReason.OTHER
    description: str = ""


class CreateOrderRequest(CamelModel):
    booking_number: str = Field(min_length=1)


class CaptureOrderRequest(CamelModel):
    booking_number: str = Field(min_length=1)
    order_id: str = ""


class ContactRequest(CamelModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    service: str = ""
    message: str = ""


class ContactUpdateRequest(CamelModel):
    status: Optional[str] = None
    assigned_to: Optional[str] = None


class ContactRespondRequest(CamelModel):
    message: str = ""
