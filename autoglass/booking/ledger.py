"""
Booking ledger.

Owns the booking lifecycle: creation against live availability, status
changes through the state machine, customer cancellation with the
refund policy, the PayPal payment sub-flow, and the status changes
driven by inbound SMS and the housekeeping sweeps.

Customer notifications are dispatched in the background and never
affect the outcome of the operation that triggered them.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from autoglass.booking.policy import calculate_refund, can_cancel
from autoglass.booking.state_machine import check_transition
from autoglass.clock import Clock
from autoglass.config import PolicyConfig
from autoglass.errors import (
    BookingCreationError,
    BookingNotFoundError,
    CancellationNotAllowedError,
    DuplicateKeyError,
    InvalidRequestError,
    InvalidServiceError,
    MissingContactInfoError,
    NotAuthorizedError,
    PaymentAlreadyCompletedError,
    PaymentGatewayError,
    PaymentNotCompletedError,
    SlotUnavailableError,
)
from autoglass.notifications import Channel, Notifier, Template
from autoglass.payments import PaymentGateway
from autoglass.scheduling.availability import AvailabilityResolver, DateInput, parse_day
from autoglass.scheduling.slots import format_time_display
from autoglass.schemas.booking_schema import (
    Appointment,
    Booking,
    BookingStatus,
    Cancellation,
    CancelledBy,
    Completion,
    CustomerRef,
    GuestInfo,
    Insurance,
    Location,
    LocationType,
    Payment,
    PaymentStatus,
    ServiceSnapshot,
    Transaction,
    TransactionType,
    Vehicle,
)
from autoglass.services import ServiceCatalog
from autoglass.store import BookingStore

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

DEFAULT_CANCEL_REASON = "Customer requested cancellation"
SMS_CANCEL_REASON = "Cancelled via SMS"
STAFF_CANCEL_REASON = "Cancelled by staff"
STALE_PENDING_REASON = "Auto-cancelled: No payment received within 24 hours"

ModelInput = Union[BaseModel, dict[str, Any]]


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_booking_number(now: datetime) -> str:
    """Human-friendly reference: base-36 epoch milliseconds plus 4 random characters."""
    millis = int(now.timestamp() * 1000)
    return f"{_base36(millis)}-{uuid.uuid4().hex[:4]}".upper()


def _as_dict(value: Optional[ModelInput]) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump()
    return dict(value)


def _guest_from(guest: Optional[ModelInput]) -> Optional[GuestInfo]:
    """Build guest contact info, or None unless every field is present."""
    data = _as_dict(guest)
    values = {
        name: str(data.get(name) or "").strip()
        for name in ("first_name", "last_name", "email", "phone")
    }
    if not all(values.values()):
        return None
    return GuestInfo(**values)


@dataclass
class CancellationOutcome:
    booking: Booking
    refund_amount: float


class BookingLedger:
    def __init__(
        self,
        catalog: ServiceCatalog,
        resolver: AvailabilityResolver,
        store: BookingStore,
        notifier: Notifier,
        clock: Clock,
        policy: Optional[PolicyConfig] = None,
        payments: Optional[PaymentGateway] = None,
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._policy = policy or PolicyConfig()
        self._payments = payments

    @property
    def policy(self) -> PolicyConfig:
        return self._policy

    # --- Creation ---

    async def create(
        self,
        service_id: str,
        vehicle: ModelInput,
        day: DateInput,
        time_slot: str,
        guest: Optional[ModelInput] = None,
        customer: Optional[ModelInput] = None,
        is_mobile_service: bool = False,
        location: Optional[ModelInput] = None,
        insurance: Optional[ModelInput] = None,
        notes: str = "",
    ) -> Booking:
        """Create a pending booking for an available slot.

        Raises:
            InvalidServiceError: unknown service id.
            SlotUnavailableError: the slot is not offered or is full.
            MissingContactInfoError: no customer and incomplete guest details.
            BookingCreationError: the store rejected the booking number.
        """
        service = self._catalog.get(service_id)
        if service is None:
            raise InvalidServiceError()

        target = parse_day(day, self._clock.tz)
        # Check-then-insert: two concurrent requests may both pass this check.
        if not await self._resolver.is_slot_available(target, time_slot):
            raise SlotUnavailableError()

        customer_ref = CustomerRef.model_validate(_as_dict(customer)) if customer else None
        guest_info = None if customer_ref else _guest_from(guest)
        if customer_ref is None and guest_info is None:
            raise MissingContactInfoError()

        location_data = _as_dict(location)
        location_data["type"] = (
            LocationType.CUSTOMER_LOCATION if is_mobile_service else LocationType.SHOP
        )

        now = self._clock.now()
        try:
            booking = Booking(
                id=uuid.uuid4().hex,
                booking_number=generate_booking_number(now),
                customer=customer_ref,
                guest_info=guest_info,
                service=ServiceSnapshot(
                    service_id=service.id,
                    name=service.name,
                    price=service.base_price,
                    estimated_duration=service.estimated_duration,
                ),
                vehicle=Vehicle.model_validate(_as_dict(vehicle)),
                appointment=Appointment(
                    date=target, time_slot=time_slot, is_mobile_service=is_mobile_service
                ),
                location=Location.model_validate(location_data),
                payment=Payment(total_amount=service.base_price),
                insurance=Insurance.model_validate(_as_dict(insurance)) if insurance else None,
                notes={"customer": notes or ""},
                created_at=now,
                updated_at=now,
            )
        except ValidationError as exc:
            raise InvalidRequestError(f"Invalid booking details: {exc.errors()[0]['msg']}") from exc

        try:
            saved = await self._store.insert(booking)
        except DuplicateKeyError as exc:
            logger.error("Booking number collision for %s: %s", booking.booking_number, exc)
            raise BookingCreationError() from exc

        logger.info(
            "Booking %s created: %s on %s at %s",
            saved.booking_number, service.id, target, time_slot,
        )
        self._notify_customer(saved, Template.CONFIRMATION)
        return saved

    # --- Lookup ---

    async def get(self, booking_id: str) -> Booking:
        booking = await self._store.get(booking_id)
        if booking is None:
            raise BookingNotFoundError()
        return booking

    async def get_by_number(self, booking_number: str) -> Booking:
        booking = await self._store.find_by_number((booking_number or "").strip().upper())
        if booking is None:
            raise BookingNotFoundError()
        return booking

    async def lookup(self, booking_number: str, email: str) -> Booking:
        """Guest self-service lookup. A wrong email is reported as not found."""
        if not booking_number or not email:
            raise InvalidRequestError("Booking number and email required")
        booking = await self.get_by_number(booking_number)
        contact = (booking.contact_email or "").lower()
        if contact != email.strip().lower():
            raise BookingNotFoundError()
        return booking

    async def authorize(
        self,
        booking_id: str,
        staff: bool = False,
        customer_id: Optional[str] = None,
        booking_number: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Booking:
        """Load a booking the caller may act on.

        Access is granted to staff, to the signed-in customer who owns the
        booking, or to a guest quoting the booking number together with the
        contact email (matched the same way as ``lookup``). Unknown ids are
        reported as not found before any ownership check.
        """
        booking = await self.get(booking_id)
        if staff:
            return booking
        if customer_id and booking.customer and booking.customer.id == customer_id:
            return booking
        if booking_number and email:
            number_matches = booking.booking_number == booking_number.strip().upper()
            email_matches = (booking.contact_email or "").lower() == email.strip().lower()
            if number_matches and email_matches:
                return booking
        logger.warning("Refused access to booking %s", booking.booking_number)
        raise NotAuthorizedError()

    async def list_for_customer(
        self,
        customer_id: str,
        status: Optional[Union[BookingStatus, str]] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        """A signed-in customer's own bookings, newest first."""
        if not customer_id:
            raise NotAuthorizedError("Customer sign-in required")
        return await self.list_bookings(status=status, page=page, limit=limit, customer_id=customer_id)

    async def find_active_by_phone(self, phone: str) -> Optional[Booking]:
        """Most recent pending or confirmed booking whose contact phone matches."""
        return await self._store.find_latest_by_phone(
            phone, [BookingStatus.PENDING, BookingStatus.CONFIRMED]
        )

    async def list_bookings(
        self,
        status: Optional[Union[BookingStatus, str]] = None,
        day: Optional[DateInput] = None,
        page: int = 1,
        limit: int = 20,
        customer_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Booking listing, newest first, with pagination metadata."""
        if page < 1 or limit < 1:
            raise InvalidRequestError("page and limit must be positive")
        if status in (None, "", "all"):
            status_filter = None
        else:
            try:
                status_filter = BookingStatus(status)
            except ValueError:
                raise InvalidRequestError(f"Unknown status: {status!r}") from None
        target = parse_day(day, self._clock.tz) if day else None

        bookings, total = await self._store.list_page(
            status=status_filter,
            day=target,
            customer_id=customer_id,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {
            "bookings": bookings,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    async def stats(self) -> dict[str, Any]:
        """Dashboard counters relative to today in the business timezone."""
        now = self._clock.now()
        today = now.date()
        # Weeks start on Sunday.
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)
        month_start = today.replace(day=1)

        bookings = await self._store.all()
        return {
            "today_bookings": sum(1 for b in bookings if b.appointment.date == today),
            "week_bookings": sum(1 for b in bookings if b.appointment.date >= week_start),
            "month_revenue": round(
                sum(
                    b.payment.paid_amount
                    for b in bookings
                    if b.payment.status == PaymentStatus.PAID
                    and b.created_at.astimezone(self._clock.tz).date() >= month_start
                ),
                2,
            ),
            "confirmed_today": sum(
                1
                for b in bookings
                if b.appointment.date == today and b.status == BookingStatus.CONFIRMED
            ),
            "pending_payments": sum(
                1 for b in bookings if b.payment.status == PaymentStatus.PENDING
            ),
        }

    # --- Status changes ---

    async def set_status(
        self,
        booking_id: str,
        status: Union[BookingStatus, str],
        staff_id: Optional[str] = None,
        reason: Optional[str] = None,
        technician_notes: str = "",
    ) -> Booking:
        """Staff status change. Cancelling here skips the 24-hour rule."""
        try:
            target = BookingStatus(status)
        except ValueError:
            raise InvalidRequestError(f"Unknown status: {status!r}") from None

        booking = await self.get(booking_id)
        if not check_transition(booking.status, target):
            return booking

        now = self._clock.now()
        changes: dict[str, Any] = {"status": target}
        if target == BookingStatus.CANCELLED:
            changes["cancellation"] = Cancellation(
                cancelled_at=now,
                reason=reason or STAFF_CANCEL_REASON,
                cancelled_by=CancelledBy.ADMIN,
            )
        elif target == BookingStatus.COMPLETED:
            changes["completion"] = Completion(completed_at=now, technician_notes=technician_notes)

        updated = await self._update(booking.id, changes)
        logger.info(
            "Booking %s status %s -> %s by %s",
            updated.booking_number, booking.status.value, target.value, staff_id or "staff",
        )
        if target == BookingStatus.CANCELLED:
            self._notify_customer(updated, Template.CANCELLATION)
        return updated

    async def cancel(
        self,
        booking_id: str,
        actor: CancelledBy = CancelledBy.CUSTOMER,
        reason: Optional[str] = None,
    ) -> CancellationOutcome:
        """Cancel under the customer policy and quote the refund owed."""
        booking = await self.get(booking_id)
        now = self._clock.now()
        if not can_cancel(booking, now, self._clock.tz, self._policy):
            raise CancellationNotAllowedError()
        refund = calculate_refund(booking, now, self._clock.tz, self._policy)

        check_transition(booking.status, BookingStatus.CANCELLED)
        updated = await self._update(
            booking.id,
            {
                "status": BookingStatus.CANCELLED,
                "cancellation": Cancellation(
                    cancelled_at=now,
                    reason=reason or DEFAULT_CANCEL_REASON,
                    cancelled_by=actor,
                ),
            },
        )
        logger.info("Booking %s cancelled by %s (refund %.2f)", updated.booking_number, actor.value, refund)
        self._notify_customer(updated, Template.CANCELLATION)
        return CancellationOutcome(booking=updated, refund_amount=refund)

    async def confirm(self, booking: Booking) -> Booking:
        """Customer confirmation, e.g. replying Y to a reminder."""
        if not check_transition(booking.status, BookingStatus.CONFIRMED):
            return booking
        return await self._update(booking.id, {"status": BookingStatus.CONFIRMED})

    async def cancel_via_sms(self, booking: Booking) -> Booking:
        """Cancel from an SMS reply.

        Unlike ``cancel`` this does not enforce the cancellation cutoff; a
        customer texting C on the morning of the appointment is honoured.
        """
        check_transition(booking.status, BookingStatus.CANCELLED)
        return await self._update(
            booking.id,
            {
                "status": BookingStatus.CANCELLED,
                "cancellation": Cancellation(
                    cancelled_at=self._clock.now(),
                    reason=SMS_CANCEL_REASON,
                    cancelled_by=CancelledBy.CUSTOMER,
                ),
            },
        )

    async def request_reschedule(self, booking: Booking) -> Booking:
        return await self._update(
            booking.id,
            {
                "notes.reschedule_requested": True,
                "notes.reschedule_requested_at": self._clock.now(),
            },
        )

    async def mark_no_show(self, booking: Booking) -> Booking:
        check_transition(booking.status, BookingStatus.NO_SHOW)
        return await self._update(booking.id, {"status": BookingStatus.NO_SHOW})

    async def expire_unpaid(self, booking: Booking) -> Booking:
        """System cancellation of a booking that was never paid for."""
        check_transition(booking.status, BookingStatus.CANCELLED)
        return await self._update(
            booking.id,
            {
                "status": BookingStatus.CANCELLED,
                "cancellation": Cancellation(
                    cancelled_at=self._clock.now(),
                    reason=STALE_PENDING_REASON,
                    cancelled_by=CancelledBy.SYSTEM,
                ),
            },
        )

    # --- Payment ---

    def _gateway(self) -> PaymentGateway:
        if self._payments is None:
            raise PaymentGatewayError("Payments are not configured")
        return self._payments

    async def start_payment(self, booking_number: str) -> dict[str, Any]:
        """Open a checkout order for the full booking amount."""
        gateway = self._gateway()
        booking = await self.get_by_number(booking_number)
        if booking.payment.status == PaymentStatus.PAID:
            raise PaymentAlreadyCompletedError()

        charge = await gateway.create_charge(booking.payment.total_amount, booking.booking_number)
        transactions = [*booking.payment.transactions, Transaction(
            order_id=charge["order_id"],
            amount=booking.payment.total_amount,
            type=TransactionType.FULL_PAYMENT,
            status="created",
            timestamp=self._clock.now(),
        )]
        await self._update(booking.id, {"payment.transactions": transactions})
        logger.info("Payment order %s opened for %s", charge["order_id"], booking.booking_number)
        return {"order_id": charge["order_id"], "approval_url": charge.get("approval_url")}

    async def capture_payment(self, booking_number: str, order_id: str) -> Booking:
        """Capture an approved order and confirm the booking."""
        if not order_id:
            raise InvalidRequestError("Order ID required")
        gateway = self._gateway()
        booking = await self.get_by_number(booking_number)
        if booking.payment.status == PaymentStatus.PAID:
            raise PaymentAlreadyCompletedError()

        result = await gateway.capture_charge(order_id)
        if result.get("status") != "COMPLETED":
            logger.warning(
                "Capture of %s for %s returned %s", order_id, booking.booking_number, result.get("status")
            )
            raise PaymentNotCompletedError()

        now = self._clock.now()
        captured = float(result.get("captured_amount") or booking.payment.total_amount)
        transactions = list(booking.payment.transactions)
        for index, txn in enumerate(transactions):
            if txn.order_id == order_id:
                transactions[index] = txn.model_copy(update={
                    "status": "completed",
                    "transaction_id": result.get("transaction_id"),
                    "amount": captured,
                    "timestamp": now,
                })
                break
        else:
            transactions.append(Transaction(
                transaction_id=result.get("transaction_id"),
                order_id=order_id,
                amount=captured,
                type=TransactionType.FULL_PAYMENT,
                status="completed",
                timestamp=now,
            ))

        changes: dict[str, Any] = {
            "payment.status": PaymentStatus.PAID,
            "payment.paid_amount": captured,
            "payment.transactions": transactions,
        }
        if booking.status == BookingStatus.PENDING:
            changes["status"] = BookingStatus.CONFIRMED
        updated = await self._update(booking.id, changes)
        logger.info("Payment captured for %s: %.2f", updated.booking_number, captured)
        return updated

    async def payment_status(self, booking_number: str) -> dict[str, Any]:
        booking = await self.get_by_number(booking_number)
        return {
            "booking_number": booking.booking_number,
            "payment_status": booking.payment.status.value,
            "total_amount": booking.payment.total_amount,
            "paid_amount": booking.payment.paid_amount,
        }

    # --- Internals ---

    async def _update(self, booking_id: str, changes: dict[str, Any]) -> Booking:
        changes.setdefault("updated_at", self._clock.now())
        updated = await self._store.update_fields(booking_id, changes)
        if updated is None:
            raise BookingNotFoundError()
        return updated

    def _notify_customer(self, booking: Booking, template: Template) -> None:
        data = notification_data(booking)
        self._notifier.dispatch(Channel.EMAIL, template, booking.contact_email, data)
        self._notifier.dispatch(Channel.SMS, template, booking.contact_phone, data)


def notification_data(booking: Booking) -> dict[str, Any]:
    """Template fields for customer messages about ``booking``."""
    vehicle = booking.vehicle
    return {
        "booking_number": booking.booking_number,
        "first_name": booking.contact_first_name,
        "service_name": booking.service.name,
        "date": booking.appointment.date,
        "time_display": format_time_display(booking.appointment.time_slot),
        "vehicle": f"{vehicle.year} {vehicle.make} {vehicle.model}",
        "total_amount": booking.payment.total_amount,
    }
