"""
Best-effort notification dispatch.

``Notifier.notify`` renders a template and hands it to the matching
channel, returning whether the provider accepted it. ``dispatch`` does
the same in a background task so the caller never waits on, or fails
because of, a side channel. Pending tasks are tracked and can be
drained on shutdown.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional, Protocol

from autoglass.config import BusinessConfig
from autoglass.notifications.templates import Template, render_email, render_sms

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


class SmsSender(Protocol):
    async def send(self, to: str, body: str) -> bool: ...


class EmailSender(Protocol):
    async def send(self, to: str, subject: str, html: str) -> bool: ...


class Notifier:
    def __init__(
        self,
        business: BusinessConfig,
        sms: Optional[SmsSender] = None,
        email: Optional[EmailSender] = None,
    ) -> None:
        self._business = business
        self._sms = sms
        self._email = email
        self._pending: set[asyncio.Task] = set()

    @property
    def business(self) -> BusinessConfig:
        return self._business

    async def notify(
        self,
        channel: Channel,
        template: Template,
        recipient: Optional[str],
        data: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Send one message. Never raises; failures are logged and reported as False."""
        if not recipient:
            logger.debug("No %s recipient for %s; skipping", channel.value, template.value)
            return False
        data = data or {}
        try:
            if channel == Channel.SMS:
                if self._sms is None:
                    return False
                return await self._sms.send(recipient, render_sms(template, data, self._business))
            if self._email is None:
                return False
            subject, html = render_email(template, data, self._business)
            return await self._email.send(recipient, subject, html)
        except Exception:
            logger.warning(
                "Failed to send %s %s to %s", template.value, channel.value, recipient, exc_info=True
            )
            return False

    def dispatch(
        self,
        channel: Channel,
        template: Template,
        recipient: Optional[str],
        data: Optional[dict[str, Any]] = None,
    ) -> asyncio.Task:
        """Fire-and-forget ``notify``. Must be called from a running event loop."""
        task = asyncio.create_task(self.notify(channel, template, recipient, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def alert_staff(self, message: str) -> None:
        """Text the staff notification number, when one is configured."""
        if not self._business.notify_phone:
            logger.info("Staff alert (no notify phone configured): %s", message)
            return
        self.dispatch(Channel.SMS, Template.STAFF_ALERT, self._business.notify_phone, {"message": message})

    def notify_staff(self, template: Template, data: dict[str, Any]) -> None:
        """Send ``template`` to the staff phone and inbox, whichever are configured."""
        if self._business.notify_phone:
            self.dispatch(Channel.SMS, template, self._business.notify_phone, data)
        if self._business.notify_email:
            self.dispatch(Channel.EMAIL, template, self._business.notify_email, data)

    async def drain(self) -> None:
        """Wait for every dispatched notification to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
