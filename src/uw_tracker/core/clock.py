"""Civil time for the tracker.

Business dates and display times are computed in a fixed UTC offset. The
business day starts at ``day_boundary_hour`` rather than midnight, so a
timestamp at 01:30 local still belongs to the previous calendar day.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone

from uw_tracker.core.settings import settings


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class Stamp:
    """A status-change instant in both human and sortable form."""

    display: str
    sortable: int


def format_display_time(local: datetime) -> str:
    """Format a local datetime as ``8:42 AM``."""
    hour = local.hour % 12 or 12
    suffix = "PM" if local.hour >= 12 else "AM"
    return f"{hour}:{local.minute:02d} {suffix}"


class Clock:
    """Clock adapter for a fixed civil timezone."""

    def __init__(
        self,
        *,
        utc_offset_hours: int | None = None,
        day_boundary_hour: int | None = None,
        now_fn: Callable[[], datetime] = utcnow,
    ) -> None:
        offset = settings.civil_utc_offset_hours if utc_offset_hours is None else utc_offset_hours
        self.tz = timezone(timedelta(hours=offset))
        self.day_boundary_hour = (
            settings.day_boundary_hour if day_boundary_hour is None else day_boundary_hour
        )
        self._now_fn = now_fn

    def local_now(self) -> datetime:
        return self._now_fn().astimezone(self.tz)

    def today(self) -> str:
        """Return the current civil date as ``YYYY-MM-DD``."""
        local = self.local_now()
        if local.hour < self.day_boundary_hour:
            local -= timedelta(days=1)
        return local.date().isoformat()

    def now(self) -> Stamp:
        """Return display and epoch-millisecond forms of the same instant."""
        instant = self._now_fn()
        return Stamp(
            display=format_display_time(instant.astimezone(self.tz)),
            sortable=int(instant.timestamp() * 1000),
        )


class FixedClock(Clock):
    """Clock pinned to a settable instant, for tests and replays."""

    def __init__(self, instant: datetime, **kwargs) -> None:
        self.instant = instant
        super().__init__(now_fn=lambda: self.instant, **kwargs)

    def advance(self, **delta: float) -> None:
        self.instant = self.instant + timedelta(**delta)
