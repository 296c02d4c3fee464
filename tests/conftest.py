"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from autoglass.booking import BookingLedger
from autoglass.clock import FixedClock
from autoglass.config import BusinessConfig, DayHours, PolicyConfig, ScheduleConfig
from autoglass.notifications import Notifier
from autoglass.scheduling import AvailabilityResolver, BlockedSlotRegistry
from autoglass.services import ServiceCatalog
from autoglass.store import InMemoryBlockedSlotStore, InMemoryBookingStore

TZ = ZoneInfo("America/Denver")

WEEKDAY_HOURS = DayHours(open="08:00", close="18:00", is_open=True)

DEFAULT_HOURS = {
    "monday": WEEKDAY_HOURS,
    "tuesday": WEEKDAY_HOURS,
    "wednesday": WEEKDAY_HOURS,
    "thursday": WEEKDAY_HOURS,
    "friday": WEEKDAY_HOURS,
    "saturday": DayHours(open="09:00", close="16:00", is_open=True),
    "sunday": DayHours(),
}

# Monday 2 June 2025, 09:00 business time.
NOW = datetime(2025, 6, 2, 9, 0)

GUEST = {
    "first_name": "Maria",
    "last_name": "Lopez",
    "email": "maria@example.com",
    "phone": "555-123-4567",
}

VEHICLE = {"make": "Toyota", "model": "Camry", "year": 2019}


def make_schedule(**overrides) -> ScheduleConfig:
    values = dict(
        hours_by_weekday=DEFAULT_HOURS,
        slot_duration_minutes=30,
        buffer_minutes=15,
        max_bookings_per_slot=2,
        advance_booking_days=30,
        min_notice_hours=2.0,
    )
    values.update(overrides)
    return ScheduleConfig(**values)


def make_policy() -> PolicyConfig:
    return PolicyConfig(
        full_refund_hours=48,
        cancellation_cutoff_hours=24,
        partial_refund_ratio=0.5,
        no_show_grace_hours=2,
        stale_pending_hours=24,
    )


def make_business(notify_phone: str = "", notify_email: str = "") -> BusinessConfig:
    return BusinessConfig(
        name="Los Auto & Glass",
        phone="(385) 424-6781",
        notify_phone=notify_phone,
        notify_email=notify_email,
        website="lossautoglass.com",
        timezone="America/Denver",
        frontend_url="http://localhost:3000",
    )


class FakeSms:
    """Records outgoing texts instead of calling Twilio."""

    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.sent: list[tuple[str, str]] = []

    async def send(self, to: str, body: str) -> bool:
        self.sent.append((to, body))
        return self.ok


class FakeEmail:
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.sent: list[tuple[str, str]] = []

    async def send(self, to: str, subject: str, html: str) -> bool:
        self.sent.append((to, subject))
        return self.ok


class FakePaymentGateway:
    def __init__(self, capture_status: str = "COMPLETED") -> None:
        self.capture_status = capture_status
        self.charges: list[tuple[float, str]] = []
        self.captures: list[str] = []

    async def create_charge(self, amount: float, reference: str) -> dict:
        self.charges.append((amount, reference))
        order_id = f"ORDER-{len(self.charges)}"
        return {"order_id": order_id, "approval_url": f"https://paypal.test/approve/{order_id}"}

    async def capture_charge(self, order_id: str) -> dict:
        self.captures.append(order_id)
        amount = self.charges[-1][0] if self.charges else 0.0
        return {
            "status": self.capture_status,
            "captured_amount": amount if self.capture_status == "COMPLETED" else 0.0,
            "transaction_id": f"TXN-{order_id}",
        }


@pytest.fixture
def clock():
    return FixedClock(NOW, TZ)


@pytest.fixture
def schedule():
    return make_schedule()


@pytest.fixture
def policy():
    return make_policy()


@pytest.fixture
def booking_store():
    return InMemoryBookingStore()


@pytest.fixture
def blocked_store():
    return InMemoryBlockedSlotStore()


@pytest.fixture
def resolver(schedule, booking_store, blocked_store, clock):
    return AvailabilityResolver(schedule, booking_store, blocked_store, clock)


@pytest.fixture
def registry(blocked_store, clock):
    return BlockedSlotRegistry(blocked_store, clock)


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def email():
    return FakeEmail()


@pytest.fixture
def notifier(sms, email):
    return Notifier(make_business(notify_phone="3855550100"), sms=sms, email=email)


@pytest.fixture
def payments():
    return FakePaymentGateway()


@pytest.fixture
def ledger(resolver, booking_store, notifier, clock, policy, payments):
    return BookingLedger(
        ServiceCatalog(), resolver, booking_store, notifier, clock,
        policy=policy, payments=payments,
    )


async def create_booking(
    ledger: BookingLedger,
    day: str = "2025-06-05",
    time_slot: str = "10:00",
    service_id: str = "repair",
    guest: Optional[dict] = None,
    **kwargs,
):
    """Create a guest booking with sensible defaults."""
    return await ledger.create(
        service_id,
        VEHICLE,
        day,
        time_slot,
        guest=GUEST if guest is None else guest,
        **kwargs,
    )
