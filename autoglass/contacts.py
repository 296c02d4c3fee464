"""
Contact-form desk.

Website enquiries are stored as ``Contact`` documents. A new submission
texts and emails the shop and sends the customer an auto-reply; staff
then work through the queue, recording responses until the enquiry is
closed or converted into a booking.
"""

import logging
import math
import re
import uuid
from typing import Any, Optional, Union

from pydantic import ValidationError

from autoglass.clock import Clock
from autoglass.errors import ContactNotFoundError, InvalidRequestError
from autoglass.notifications import Channel, Notifier, Template
from autoglass.schemas.contact_schema import Contact, ContactResponse, ContactStatus
from autoglass.store import ContactStore

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _status_filter(status: Optional[Union[ContactStatus, str]]) -> Optional[ContactStatus]:
    if status in (None, "", "all"):
        return None
    try:
        return ContactStatus(status)
    except ValueError:
        raise InvalidRequestError(f"Unknown status: {status!r}") from None


class ContactDesk:
    def __init__(self, store: ContactStore, notifier: Notifier, clock: Clock) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock

    async def submit(
        self,
        name: str,
        email: str,
        phone: str,
        service: str,
        message: str = "",
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Contact:
        """Store an enquiry and notify the shop and the customer.

        Raises:
            InvalidRequestError: a required field is blank, the email is
                malformed, or a field is over its length limit.
        """
        name, phone, service = (name or "").strip(), (phone or "").strip(), (service or "").strip()
        email = (email or "").strip().lower()
        if not name:
            raise InvalidRequestError("Name is required")
        if not _EMAIL_PATTERN.match(email):
            raise InvalidRequestError("Please provide a valid email")
        if not phone:
            raise InvalidRequestError("Phone number is required")
        if not service:
            raise InvalidRequestError("Please select a service")

        now = self._clock.now()
        try:
            contact = Contact(
                id=uuid.uuid4().hex,
                name=name,
                email=email,
                phone=phone,
                service=service,
                message=(message or "").strip(),
                ip_address=ip_address,
                user_agent=user_agent,
                created_at=now,
                updated_at=now,
            )
        except ValidationError as exc:
            error = exc.errors()[0]
            field_name = ".".join(str(part) for part in error["loc"])
            raise InvalidRequestError(f"{field_name}: {error['msg']}") from exc

        saved = await self._store.insert(contact)
        logger.info("Contact %s received from %s", saved.id, saved.email)

        data = {
            "name": saved.name,
            "email": saved.email,
            "phone": saved.phone,
            "service": saved.service,
            "message": saved.message,
        }
        self._notifier.notify_staff(Template.CONTACT_NOTIFICATION, data)
        self._notifier.dispatch(Channel.SMS, Template.CONTACT_AUTO_REPLY, saved.phone, data)
        return saved

    async def get(self, contact_id: str) -> Contact:
        contact = await self._store.get(contact_id)
        if contact is None:
            raise ContactNotFoundError()
        return contact

    async def list_contacts(
        self,
        status: Optional[Union[ContactStatus, str]] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        """Staff queue, newest first. ``status="all"`` means no filter."""
        if page < 1 or limit < 1:
            raise InvalidRequestError("page and limit must be positive")
        contacts, total = await self._store.list_page(
            status=_status_filter(status), skip=(page - 1) * limit, limit=limit
        )
        return {
            "contacts": contacts,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    async def update(
        self,
        contact_id: str,
        status: Optional[Union[ContactStatus, str]] = None,
        assigned_to: Optional[str] = None,
    ) -> Contact:
        """Change the status and/or assignee. Omitted fields are left as they are."""
        changes: dict[str, Any] = {}
        new_status = _status_filter(status)
        if new_status is not None:
            changes["status"] = new_status
        if assigned_to:
            changes["assigned_to"] = assigned_to
        if not changes:
            return await self.get(contact_id)
        return await self._update(contact_id, changes)

    async def respond(self, contact_id: str, message: str, responded_by: str) -> Contact:
        """Record a staff response and mark the enquiry responded."""
        if not (message or "").strip():
            raise InvalidRequestError("Response message is required")
        contact = await self.get(contact_id)
        response = ContactResponse(
            message=message.strip(),
            responded_by=responded_by,
            responded_at=self._clock.now(),
        )
        updated = await self._update(
            contact.id,
            {"responses": [*contact.responses, response], "status": ContactStatus.RESPONDED},
        )
        logger.info("Contact %s responded by %s", contact_id, responded_by)
        return updated

    async def pending_count(self) -> int:
        """Enquiries nobody has opened yet."""
        return await self._store.count(ContactStatus.NEW)

    async def _update(self, contact_id: str, changes: dict[str, Any]) -> Contact:
        updated = await self._store.update_fields(
            contact_id, {**changes, "updated_at": self._clock.now()}
        )
        if updated is None:
            raise ContactNotFoundError()
        return updated
