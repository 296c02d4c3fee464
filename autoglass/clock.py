"""Time sources for availability, refund and housekeeping logic."""

from datetime import datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Anything that can tell the current business-local time."""

    tz: ZoneInfo

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in the business timezone."""

    def __init__(self, tz: ZoneInfo) -> None:
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """A clock frozen at a given instant until moved explicitly."""

    def __init__(self, current: datetime, tz: ZoneInfo | None = None) -> None:
        if current.tzinfo is None:
            if tz is None:
                raise ValueError("FixedClock needs an aware datetime or a timezone")
            current = current.replace(tzinfo=tz)
        self.tz = tz or current.tzinfo  # type: ignore[assignment]
        self._current = current.astimezone(self.tz)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=self.tz)
        self._current = current.astimezone(self.tz)

    def advance(self, **kwargs: float) -> None:
        self._current = self._current + timedelta(**kwargs)
