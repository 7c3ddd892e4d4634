"""Clock and timezone provider — pure functions over aware datetimes.

The scheduler and the task cycle never call ``datetime.now()`` directly;
they take a ``now`` (UTC) from a Clock callable so tests can pin time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

Clock = Callable[[], datetime]

DAY_ABBREVIATIONS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class InvalidTimezoneError(ValueError):
    """Raised when a user's timezone is not a known IANA zone name."""

    def __init__(self, tz_name: str) -> None:
        super().__init__(f"Unknown timezone: {tz_name!r}")
        self.tz_name = tz_name


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError) as exc:
        raise InvalidTimezoneError(tz_name) from exc


def to_local(now: datetime, tz_name: str) -> datetime:
    """Convert an aware instant to the wall clock of *tz_name*."""
    return now.astimezone(get_zone(tz_name))


def format_hhmm(local: datetime) -> str:
    return local.strftime("%H:%M")


def day_abbrev(local: datetime) -> str:
    """English weekday abbreviation, independent of the process locale."""
    return DAY_ABBREVIATIONS[local.weekday()]


def same_local_day(stamp: datetime | None, local_now: datetime) -> bool:
    """True if *stamp* falls on the same calendar day as *local_now* in its zone."""
    if stamp is None:
        return False
    return stamp.astimezone(local_now.tzinfo).date() == local_now.date()
