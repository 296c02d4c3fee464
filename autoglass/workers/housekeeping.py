"""Background sweeps: appointment reminders, no-shows and unpaid bookings.

Each sweep is a plain coroutine that can be called directly (tests, a
manual admin trigger) and returns how many bookings it touched.
``start_housekeeping`` runs them on their schedules and returns an async
callable that stops every loop.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from autoglass.booking.ledger import BookingLedger, notification_data
from autoglass.clock import Clock
from autoglass.config import HousekeepingConfig, PolicyConfig
from autoglass.errors import BookingError
from autoglass.notifications import Channel, Notifier, Template
from autoglass.schemas.booking_schema import OPEN_STATUSES, BookingStatus, Reminder, ReminderChannel
from autoglass.store import BookingStore

logger = logging.getLogger(__name__)


class Housekeeping:
    def __init__(
        self,
        ledger: BookingLedger,
        store: BookingStore,
        notifier: Notifier,
        clock: Clock,
        policy: PolicyConfig,
    ) -> None:
        self._ledger = ledger
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._policy = policy

    async def send_reminders(self) -> int:
        """Remind every open booking for tomorrow by email and SMS.

        Channels are independent; a reminder entry is recorded for each
        channel that was accepted by its provider.
        """
        tomorrow = self._clock.now().date() + timedelta(days=1)
        bookings = await self._store.find_in_range(
            tomorrow, tomorrow + timedelta(days=1), OPEN_STATUSES
        )
        reminded = 0
        for booking in bookings:
            data = notification_data(booking)
            sent = []
            if await self._notifier.notify(Channel.EMAIL, Template.REMINDER, booking.contact_email, data):
                sent.append(ReminderChannel.EMAIL)
            if await self._notifier.notify(Channel.SMS, Template.REMINDER, booking.contact_phone, data):
                sent.append(ReminderChannel.SMS)
            if not sent:
                continue
            now = self._clock.now()
            reminders = [
                *booking.reminders,
                *(Reminder(type=channel, sent_at=now, scheduled_for=tomorrow) for channel in sent),
            ]
            await self._store.update_fields(booking.id, {"reminders": reminders})
            reminded += 1
            logger.info(
                "Reminder sent for %s via %s",
                booking.booking_number, ", ".join(c.value for c in sent),
            )
        return reminded

    async def mark_no_shows(self) -> int:
        """Confirmed bookings that started more than the grace period ago become no-shows."""
        cutoff = self._clock.now() - timedelta(hours=self._policy.no_show_grace_hours)
        candidates = await self._store.find_before(
            cutoff.date() + timedelta(days=1), [BookingStatus.CONFIRMED]
        )
        marked = 0
        for booking in candidates:
            if booking.appointment.starts_at(self._clock.tz) >= cutoff:
                continue
            try:
                await self._ledger.mark_no_show(booking)
            except BookingError as exc:
                logger.warning("Could not mark %s as no-show: %s", booking.booking_number, exc)
                continue
            marked += 1
            logger.info("Booking %s marked as no-show", booking.booking_number)
        return marked

    async def cancel_stale_pending(self) -> int:
        """Cancel unpaid pending bookings older than the payment window. No notifications."""
        created_before = self._clock.now() - timedelta(hours=self._policy.stale_pending_hours)
        stale = await self._store.find_stale_pending(created_before)
        cancelled = 0
        for booking in stale:
            try:
                await self._ledger.expire_unpaid(booking)
            except BookingError as exc:
                logger.warning("Could not auto-cancel %s: %s", booking.booking_number, exc)
                continue
            cancelled += 1
        if cancelled:
            logger.info("Auto-cancelled %d unpaid bookings", cancelled)
        return cancelled


def seconds_until_hour(now: datetime, hour: int) -> float:
    """Seconds from ``now`` to the next ``hour``:00 in ``now``'s timezone."""
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def _wait(stop_event: asyncio.Event, timeout: float) -> bool:
    """Sleep up to ``timeout`` seconds. Returns True when asked to stop."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        return False
    return True


async def _run_daily(
    name: str,
    sweep: Callable[[], Awaitable[int]],
    hour: int,
    clock: Clock,
    stop_event: asyncio.Event,
) -> None:
    while not stop_event.is_set():
        if await _wait(stop_event, seconds_until_hour(clock.now(), hour)):
            break
        try:
            await sweep()
        except Exception:
            logger.exception("%s sweep failed", name)


async def _run_interval(
    name: str,
    sweep: Callable[[], Awaitable[int]],
    interval_seconds: float,
    stop_event: asyncio.Event,
) -> None:
    while not stop_event.is_set():
        try:
            await sweep()
        except Exception:
            logger.exception("%s sweep failed", name)
        if await _wait(stop_event, interval_seconds):
            break


async def start_housekeeping(
    housekeeping: Housekeeping,
    config: HousekeepingConfig,
    clock: Clock,
) -> Callable[[], Awaitable[None]]:
    """Start the sweep loops and return an async stop() function."""
    stop_event = asyncio.Event()
    tasks = [
        asyncio.create_task(
            _run_daily("reminder", housekeeping.send_reminders, config.reminder_hour, clock, stop_event),
            name="housekeeping-reminders",
        ),
        asyncio.create_task(
            _run_interval("no-show", housekeeping.mark_no_shows, config.no_show_interval_seconds, stop_event),
            name="housekeeping-no-shows",
        ),
        asyncio.create_task(
            _run_daily(
                "stale-pending", housekeeping.cancel_stale_pending,
                config.pending_cleanup_hour, clock, stop_event,
            ),
            name="housekeeping-stale-pending",
        ),
    ]

    async def _stop() -> None:
        stop_event.set()
        _, pending = await asyncio.wait(tasks, timeout=5)
        for task in pending:
            task.cancel()
        logger.info("Housekeeping stopped")

    logger.info(
        "Housekeeping started (reminders at %02d:00, no-show check every %ss, cleanup at %02d:00)",
        config.reminder_hour, config.no_show_interval_seconds, config.pending_cleanup_hour,
    )
    return _stop
