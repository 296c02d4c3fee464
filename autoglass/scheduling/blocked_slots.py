"""Staff-managed slot and whole-day blocks."""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from autoglass.clock import Clock
from autoglass.errors import InvalidRequestError
from autoglass.scheduling.availability import DateInput, parse_day
from autoglass.schemas.calendar_schema import BlockedSlot, BlockReason
from autoglass.store import BlockedSlotStore

logger = logging.getLogger(__name__)


class BlockedSlotRegistry:
    """Creates and removes blocks. Overlapping blocks are allowed."""

    def __init__(self, store: BlockedSlotStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def block(
        self,
        day: DateInput,
        time_slot: Optional[str] = None,
        is_all_day: bool = False,
        reason: BlockReason | str = BlockReason.OTHER,
        description: str = "",
        created_by: Optional[str] = None,
    ) -> BlockedSlot:
        if not is_all_day and not time_slot:
            raise InvalidRequestError("A time slot is required unless blocking the whole day")
        try:
            reason = BlockReason(reason or BlockReason.OTHER)
        except ValueError:
            raise InvalidRequestError(f"Unknown block reason: {reason!r}") from None

        blocked = BlockedSlot(
            id=uuid.uuid4().hex,
            date=parse_day(day, self._clock.tz),
            time_slot=None if is_all_day else time_slot,
            reason=reason,
            description=description or "",
            is_all_day=is_all_day,
            created_by=created_by,
            created_at=self._clock.now(),
        )
        saved = await self._store.insert(blocked)
        logger.info(
            "Blocked %s %s (%s) by %s",
            saved.date, saved.time_slot or "all day", saved.reason.value, created_by or "unknown",
        )
        return saved

    async def unblock(self, blocked_id: str) -> None:
        """Delete a block. Unknown ids are ignored."""
        removed = await self._store.delete(blocked_id)
        if removed:
            logger.info("Unblocked %s", blocked_id)

    async def list_for_range(self, start: DateInput, end: DateInput) -> list[BlockedSlot]:
        """Blocks between ``start`` and ``end`` inclusive, ordered by date then slot."""
        first = parse_day(start, self._clock.tz)
        last = parse_day(end, self._clock.tz)
        blocks = await self._store.find_in_range(first, last + timedelta(days=1))
        return sorted(blocks, key=lambda b: (b.date, b.time_slot or ""))
