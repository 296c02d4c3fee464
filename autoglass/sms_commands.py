"""
Inbound SMS command protocol.

Customers reply to confirmation and reminder texts with one-word
commands. The sender is matched to their most recent open booking by
the last 10 digits of the phone number.

    Y / YES / CONFIRM    confirm the booking
    C / CANCEL           cancel the booking
    R / RESCHEDULE       flag the booking for a call back
    HELP / INFO          contact details and the command list
    STOP / UNSUBSCRIBE   logged; the carrier handles the opt-out

The webhook always answers with an empty TwiML document so Twilio does
not retry or send a reply of its own.
"""

import logging
from enum import Enum
from typing import Optional

from autoglass.booking.ledger import BookingLedger, notification_data
from autoglass.logging_context import get_request_logger
from autoglass.notifications import Channel, Notifier, Template

logger = get_request_logger(__name__)

EMPTY_TWIML = "<Response></Response>"


class SmsCommand(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    HELP = "help"
    STOP = "stop"
    UNKNOWN = "unknown"


_COMMANDS: dict[str, SmsCommand] = {
    "Y": SmsCommand.CONFIRM,
    "YES": SmsCommand.CONFIRM,
    "CONFIRM": SmsCommand.CONFIRM,
    "C": SmsCommand.CANCEL,
    "CANCEL": SmsCommand.CANCEL,
    "R": SmsCommand.RESCHEDULE,
    "RESCHEDULE": SmsCommand.RESCHEDULE,
    "HELP": SmsCommand.HELP,
    "INFO": SmsCommand.HELP,
    "STOP": SmsCommand.STOP,
    "UNSUBSCRIBE": SmsCommand.STOP,
}


def parse_command(body: str) -> SmsCommand:
    return _COMMANDS.get(body.strip().upper(), SmsCommand.UNKNOWN)


class SmsCommandHandler:
    def __init__(self, ledger: BookingLedger, notifier: Notifier) -> None:
        self._ledger = ledger
        self._notifier = notifier

    async def handle(self, from_phone: Optional[str], body: Optional[str]) -> str:
        """Apply one inbound message. Always returns the empty TwiML document."""
        if not from_phone or body is None:
            logger.warning("Ignoring SMS webhook without sender or body")
            return EMPTY_TWIML
        try:
            await self._apply(from_phone, body)
        except Exception:
            logger.exception("SMS command from %s failed", from_phone)
        return EMPTY_TWIML

    async def _apply(self, phone: str, body: str) -> None:
        command = parse_command(body)
        logger.info("Incoming SMS from %s: %s", phone, body.strip().upper())

        if command == SmsCommand.HELP:
            self._reply(phone, Template.HELP)
            return
        if command == SmsCommand.STOP:
            logger.info("%s opted out of SMS", phone)
            return
        if command == SmsCommand.UNKNOWN:
            self._reply(phone, Template.UNKNOWN_COMMAND)
            return

        booking = await self._ledger.find_active_by_phone(phone)
        if booking is None:
            self._reply(phone, Template.NO_BOOKING)
            return

        if command == SmsCommand.CONFIRM:
            booking = await self._ledger.confirm(booking)
            self._reply(phone, Template.CONFIRMATION_ACK, notification_data(booking))
            logger.info("Booking %s confirmed via SMS", booking.booking_number)

        elif command == SmsCommand.CANCEL:
            booking = await self._ledger.cancel_via_sms(booking)
            self._reply(phone, Template.CANCELLATION, notification_data(booking))
            self._notifier.alert_staff(
                f"CANCELLATION\n\nBooking {booking.booking_number} was cancelled via SMS by customer."
                f"\n\nPhone: {phone}"
            )
            logger.info("Booking %s cancelled via SMS", booking.booking_number)

        elif command == SmsCommand.RESCHEDULE:
            booking = await self._ledger.request_reschedule(booking)
            self._reply(phone, Template.RESCHEDULE_REQUEST, notification_data(booking))
            self._notifier.alert_staff(
                f"RESCHEDULE REQUEST\n\nBooking {booking.booking_number}\nPhone: {phone}"
                "\n\nPlease call customer to reschedule."
            )
            logger.info("Reschedule requested for %s", booking.booking_number)

    def _reply(self, phone: str, template: Template, data: Optional[dict] = None) -> None:
        self._notifier.dispatch(Channel.SMS, template, phone, data)
