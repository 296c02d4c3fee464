"""Booking aggregate and its embedded snapshots."""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


# Statuses that consume slot capacity.
ACTIVE_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS}
)

# Statuses a customer can still act on (cancel, confirm, reschedule).
OPEN_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit-paid"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    PAYPAL = "paypal"
    CARD = "card"
    CASH = "cash"
    INSURANCE = "insurance"


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    FULL_PAYMENT = "full-payment"
    REFUND = "refund"


class LocationType(str, Enum):
    SHOP = "shop"
    CUSTOMER_LOCATION = "customer-location"


class CancelledBy(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SYSTEM = "system"


class ReminderChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


class GuestInfo(CamelModel):
    """Inline contact snapshot for bookings made without an account."""

    first_name: str
    last_name: str
    email: str
    phone: str


class CustomerRef(CamelModel):
    """Authenticated customer identity with the contact details resolved at booking time."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ServiceSnapshot(CamelModel):
    """Service as it was priced when the booking was made."""

    service_id: str
    name: str
    price: float
    estimated_duration: Optional[int] = None


class Vehicle(CamelModel):
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    vin: str = ""
    license_plate: str = ""
    color: str = ""


class Appointment(CamelModel):
    date: date
    time_slot: str
    is_mobile_service: bool = False

    def starts_at(self, tz: ZoneInfo) -> datetime:
        """Appointment start as an aware datetime in the business timezone."""
        hours, minutes = (int(part) for part in self.time_slot.split(":"))
        return datetime.combine(self.date, time(hours, minutes), tzinfo=tz)


class Address(CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


class Location(CamelModel):
    type: LocationType = LocationType.SHOP
    address: Address = Field(default_factory=Address)
    notes: str = ""


class Transaction(CamelModel):
    transaction_id: Optional[str] = None
    order_id: Optional[str] = None
    amount: float
    type: TransactionType
    status: str
    timestamp: datetime


class Payment(CamelModel):
    status: PaymentStatus = PaymentStatus.PENDING
    method: PaymentMethod = PaymentMethod.PAYPAL
    total_amount: float
    paid_amount: float = 0.0
    deposit_amount: float = 0.0
    transactions: list[Transaction] = Field(default_factory=list)


class Insurance(CamelModel):
    use_insurance: bool = False
    company: str = ""
    policy_number: str = ""
    claim_number: str = ""


class BookingNotes(CamelModel):
    customer: str = ""
    internal: str = ""
    reschedule_requested: bool = False
    reschedule_requested_at: Optional[datetime] = None


class Cancellation(CamelModel):
    cancelled_at: datetime
    reason: str
    cancelled_by: CancelledBy
    refund_issued: bool = False


class Reminder(CamelModel):
    type: ReminderChannel
    sent_at: datetime
    scheduled_for: date


class Completion(CamelModel):
    completed_at: datetime
    technician_notes: str = ""


class Booking(CamelModel):
    """The central booking record.

    ``service`` and ``vehicle`` are snapshots taken at creation time and
    are never refreshed from the live catalog.
    """

    id: str
    booking_number: str
    customer: Optional[CustomerRef] = None
    guest_info: Optional[GuestInfo] = None
    service: ServiceSnapshot
    vehicle: Vehicle
    appointment: Appointment
    location: Location = Field(default_factory=Location)
    status: BookingStatus = BookingStatus.PENDING
    payment: Payment
    insurance: Optional[Insurance] = None
    notes: BookingNotes = Field(default_factory=BookingNotes)
    assigned_technician: Optional[str] = None
    completion: Optional[Completion] = None
    cancellation: Optional[Cancellation] = None
    reminders: list[Reminder] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @property
    def contact_email(self) -> Optional[str]:
        if self.customer and self.customer.email:
            return self.customer.email
        return self.guest_info.email if self.guest_info else None

    @property
    def contact_phone(self) -> Optional[str]:
        if self.customer and self.customer.phone:
            return self.customer.phone
        return self.guest_info.phone if self.guest_info else None

    @property
    def contact_first_name(self) -> str:
        if self.customer and self.customer.first_name:
            return self.customer.first_name
        return self.guest_info.first_name if self.guest_info else ""

    def summary(self) -> dict:
        """Public view returned to the booking client."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            include={"id", "booking_number", "service", "appointment", "vehicle", "payment", "status"},
        )
