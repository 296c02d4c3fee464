"""Contact-form submissions and the staff follow-up trail."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from autoglass.schemas.booking_schema import CamelModel


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    RESPONDED = "responded"
    CONVERTED = "converted"
    CLOSED = "closed"


class ContactSource(str, Enum):
    WEBSITE = "website"
    PHONE = "phone"
    EMAIL = "email"
    REFERRAL = "referral"
    OTHER = "other"


class ContactResponse(CamelModel):
    message: str
    responded_by: str
    responded_at: datetime


class Contact(CamelModel):
    """A website enquiry. Staff triage it and may convert it into a booking."""

    id: str
    name: str = Field(max_length=100)
    email: str
    phone: str
    service: str
    message: str = Field(default="", max_length=2000)
    status: ContactStatus = ContactStatus.NEW
    source: ContactSource = ContactSource.WEBSITE
    assigned_to: Optional[str] = None
    responses: list[ContactResponse] = Field(default_factory=list)
    converted_to_booking: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    updated_at: datetime
