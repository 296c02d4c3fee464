"""
Document store contracts and the in-memory implementation.

Bookings, blocked slots and contact-form submissions are kept as plain documents (dicts keyed by
model field name) and validated into pydantic models at the edges, the
way a document database driver would hand them back. Every write touches
a single document; there is no cross-document locking.

In production the same contracts would be backed by a document database
collection with a unique index on ``booking_number``.
"""

import copy
import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional, Protocol

from autoglass.errors import DuplicateKeyError
from autoglass.schemas.booking_schema import Booking, BookingStatus, PaymentStatus
from autoglass.schemas.calendar_schema import BlockedSlot
from autoglass.schemas.contact_schema import Contact, ContactStatus
from autoglass.utils import phone_suffix

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    async def insert(self, booking: Booking) -> Booking: ...

    async def get(self, booking_id: str) -> Optional[Booking]: ...

    async def find_by_number(self, booking_number: str) -> Optional[Booking]: ...

    async def find_in_range(
        self,
        start: date,
        end: date,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> list[Booking]: ...

    async def find_before(self, end: date, statuses: Iterable[BookingStatus]) -> list[Booking]: ...

    async def find_latest_by_phone(
        self, phone: str, statuses: Iterable[BookingStatus]
    ) -> Optional[Booking]: ...

    async def find_stale_pending(self, created_before: datetime) -> list[Booking]: ...

    async def list_page(
        self,
        status: Optional[BookingStatus] = None,
        day: Optional[date] = None,
        customer_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Booking], int]: ...

    async def all(self) -> list[Booking]: ...

    async def update_fields(self, booking_id: str, changes: dict[str, Any]) -> Optional[Booking]: ...


class BlockedSlotStore(Protocol):
    async def insert(self, blocked: BlockedSlot) -> BlockedSlot: ...

    async def find_in_range(self, start: date, end: date) -> list[BlockedSlot]: ...

    async def delete(self, blocked_id: str) -> bool: ...


class ContactStore(Protocol):
    async def insert(self, contact: Contact) -> Contact: ...

    async def get(self, contact_id: str) -> Optional[Contact]: ...

    async def list_page(
        self,
        status: Optional[ContactStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Contact], int]: ...

    async def count(self, status: Optional[ContactStatus] = None) -> int: ...

    async def update_fields(self, contact_id: str, changes: dict[str, Any]) -> Optional[Contact]: ...


def _set_path(document: dict[str, Any], dotted: str, value: Any) -> None:
    """Assign ``value`` at a dotted path like ``"payment.status"``."""
    *parents, leaf = dotted.split(".")
    target = document
    for key in parents:
        if target.get(key) is None:
            target[key] = {}
        target = target[key]
    target[leaf] = value


def _to_document(value: Any) -> Any:
    """Convert models (and lists of models) to plain document values."""
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, list):
        return [_to_document(item) for item in value]
    if isinstance(value, str) or not hasattr(value, "value"):
        return value
    return value.value


class InMemoryBookingStore:
    """Booking collection held in a dict, with a unique booking_number index."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._numbers: dict[str, str] = {}

    def _load(self, document: dict[str, Any]) -> Booking:
        return Booking.model_validate(copy.deepcopy(document))

    async def insert(self, booking: Booking) -> Booking:
        if booking.booking_number in self._numbers:
            raise DuplicateKeyError(f"booking_number {booking.booking_number} already exists")
        if booking.id in self._documents:
            raise DuplicateKeyError(f"id {booking.id} already exists")
        self._documents[booking.id] = booking.model_dump()
        self._numbers[booking.booking_number] = booking.id
        return self._load(self._documents[booking.id])

    async def get(self, booking_id: str) -> Optional[Booking]:
        document = self._documents.get(booking_id)
        return self._load(document) if document else None

    async def find_by_number(self, booking_number: str) -> Optional[Booking]:
        booking_id = self._numbers.get(booking_number)
        return await self.get(booking_id) if booking_id else None

    async def find_in_range(
        self,
        start: date,
        end: date,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> list[Booking]:
        wanted = {BookingStatus(s).value for s in statuses} if statuses is not None else None
        return [
            self._load(doc)
            for doc in self._documents.values()
            if start <= doc["appointment"]["date"] < end
            and (wanted is None or BookingStatus(doc["status"]).value in wanted)
        ]

    async def find_before(self, end: date, statuses: Iterable[BookingStatus]) -> list[Booking]:
        wanted = {BookingStatus(s).value for s in statuses}
        return [
            self._load(doc)
            for doc in self._documents.values()
            if doc["appointment"]["date"] < end and BookingStatus(doc["status"]).value in wanted
        ]

    async def find_latest_by_phone(
        self, phone: str, statuses: Iterable[BookingStatus]
    ) -> Optional[Booking]:
        suffix = phone_suffix(phone)
        if not suffix:
            return None
        wanted = {BookingStatus(s).value for s in statuses}
        matches = []
        for doc in self._documents.values():
            if BookingStatus(doc["status"]).value not in wanted:
                continue
            phones = [
                (doc.get("guest_info") or {}).get("phone"),
                (doc.get("customer") or {}).get("phone"),
            ]
            if any(p and phone_suffix(p) == suffix for p in phones):
                matches.append(doc)
        if not matches:
            return None
        latest = max(matches, key=lambda doc: doc["created_at"])
        return self._load(latest)

    async def find_stale_pending(self, created_before: datetime) -> list[Booking]:
        return [
            self._load(doc)
            for doc in self._documents.values()
            if BookingStatus(doc["status"]) == BookingStatus.PENDING
            and PaymentStatus(doc["payment"]["status"]) == PaymentStatus.PENDING
            and doc["created_at"] < created_before
        ]

    async def list_page(
        self,
        status: Optional[BookingStatus] = None,
        day: Optional[date] = None,
        customer_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Booking], int]:
        matches = [
            doc
            for doc in self._documents.values()
            if (status is None or BookingStatus(doc["status"]) == status)
            and (day is None or doc["appointment"]["date"] == day)
            and (customer_id is None or (doc.get("customer") or {}).get("id") == customer_id)
        ]
        matches.sort(key=lambda doc: doc["created_at"], reverse=True)
        page = matches[skip:skip + limit]
        return [self._load(doc) for doc in page], len(matches)

    async def all(self) -> list[Booking]:
        return [self._load(doc) for doc in self._documents.values()]

    async def update_fields(self, booking_id: str, changes: dict[str, Any]) -> Optional[Booking]:
        document = self._documents.get(booking_id)
        if document is None:
            return None
        if "booking_number" in changes:
            raise ValueError("booking_number is immutable")
        updated = copy.deepcopy(document)
        for path, value in changes.items():
            _set_path(updated, path, _to_document(value))
        # Validate before committing so a bad update never lands half-applied.
        booking = Booking.model_validate(copy.deepcopy(updated))
        self._documents[booking_id] = booking.model_dump()
        return booking


class InMemoryBlockedSlotStore:
    """Blocked-slot collection held in a dict."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    async def insert(self, blocked: BlockedSlot) -> BlockedSlot:
        if blocked.id in self._documents:
            raise DuplicateKeyError(f"id {blocked.id} already exists")
        self._documents[blocked.id] = blocked.model_dump()
        return BlockedSlot.model_validate(copy.deepcopy(self._documents[blocked.id]))

    async def find_in_range(self, start: date, end: date) -> list[BlockedSlot]:
        return [
            BlockedSlot.model_validate(copy.deepcopy(doc))
            for doc in self._documents.values()
            if start <= doc["date"] < end
        ]

    async def delete(self, blocked_id: str) -> bool:
        removed = self._documents.pop(blocked_id, None)
        if removed is None:
            logger.debug("Blocked slot %s not found; nothing to delete", blocked_id)
        return removed is not None


class InMemoryContactStore:
    """Contact-form collection held in a dict."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    def _load(self, document: dict[str, Any]) -> Contact:
        return Contact.model_validate(copy.deepcopy(document))

    async def insert(self, contact: Contact) -> Contact:
        if contact.id in self._documents:
            raise DuplicateKeyError(f"id {contact.id} already exists")
        self._documents[contact.id] = contact.model_dump()
        return self._load(self._documents[contact.id])

    async def get(self, contact_id: str) -> Optional[Contact]:
        document = self._documents.get(contact_id)
        return self._load(document) if document else None

    def _matching(self, status: Optional[ContactStatus]) -> list[dict[str, Any]]:
        return [
            doc
            for doc in self._documents.values()
            if status is None or ContactStatus(doc["status"]) == status
        ]

    async def list_page(
        self,
        status: Optional[ContactStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Contact], int]:
        matches = self._matching(status)
        matches.sort(key=lambda doc: doc["created_at"], reverse=True)
        return [self._load(doc) for doc in matches[skip:skip + limit]], len(matches)

    async def count(self, status: Optional[ContactStatus] = None) -> int:
        return len(self._matching(status))

    async def update_fields(self, contact_id: str, changes: dict[str, Any]) -> Optional[Contact]:
        document = self._documents.get(contact_id)
        if document is None:
            return None
        updated = copy.deepcopy(document)
        for path, value in changes.items():
            _set_path(updated, path, _to_document(value))
        contact = Contact.model_validate(copy.deepcopy(updated))
        self._documents[contact_id] = contact.model_dump()
        return contact
