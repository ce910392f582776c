"""Timestamp normalisation and the human-readable labels shown in threads."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive values (SQLite round-trips) as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@lru_cache(maxsize=16)
def resolve_timezone(name: str) -> tzinfo:
    if name.upper() in {"UTC", "Z"}:
        return timezone.utc
    return ZoneInfo(name)


def _localize(value: datetime, tz: tzinfo) -> datetime:
    return as_utc(value).astimezone(tz)


def _clock(value: datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{hour}:{value:%M} {'AM' if value.hour < 12 else 'PM'}"


def divider_label(value: datetime, tz: tzinfo = timezone.utc) -> str:
    """Label for a time divider, e.g. ``Mar 4, 2:05 PM``."""

    local = _localize(value, tz)
    return f"{local:%b} {local.day}, {_clock(local)}"


def message_time_label(value: datetime, now: datetime, tz: tzinfo = timezone.utc) -> str:
    """``2:05 PM`` today, ``Yesterday`` the day before, ``Mar 4`` otherwise."""

    local = _localize(value, tz)
    today = _localize(now, tz).date()
    if local.date() == today:
        return _clock(local)
    if local.date() == today - timedelta(days=1):
        return "Yesterday"
    return f"{local:%b} {local.day}"


_MINUTES_PER_DAY = 1440
_MINUTES_PER_ALMOST_TWO_DAYS = 2520
_MINUTES_PER_MONTH = 43200


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''}"


def _calendar_months_between(earlier: datetime, later: datetime) -> int:
    months = (later.year - earlier.year) * 12 + (later.month - earlier.month)
    if months > 0 and (later.day, later.time()) < (earlier.day, earlier.time()):
        months -= 1
    return months


def relative_time_label(value: datetime, now: datetime) -> str:
    """Coarse distance from ``now`` used in the conversation directory.

    Rounds to the nearest unit, so 45 minutes already reads as ``about 1 hour ago``.
    """

    earlier, later = as_utc(value), as_utc(now)
    seconds = max(int((later - earlier).total_seconds()), 0)
    minutes = _round_half_up(seconds / 60)

    if minutes < 1:
        distance = "less than a minute"
    elif minutes < 45:
        distance = _plural(minutes, "minute")
    elif minutes < 90:
        distance = "about 1 hour"
    elif minutes < _MINUTES_PER_DAY:
        distance = f"about {_plural(_round_half_up(minutes / 60), 'hour')}"
    elif minutes < _MINUTES_PER_ALMOST_TWO_DAYS:
        distance = "1 day"
    elif minutes < _MINUTES_PER_MONTH:
        distance = _plural(_round_half_up(minutes / _MINUTES_PER_DAY), "day")
    elif minutes < _MINUTES_PER_MONTH * 2:
        distance = f"about {_plural(_round_half_up(minutes / _MINUTES_PER_MONTH), 'month')}"
    else:
        months = _calendar_months_between(earlier, later)
        if months < 12:
            distance = _plural(_round_half_up(minutes / _MINUTES_PER_MONTH), "month")
        else:
            years, remainder = divmod(months, 12)
            if remainder < 3:
                distance = f"about {_plural(years, 'year')}"
            elif remainder < 9:
                distance = f"over {_plural(years, 'year')}"
            else:
                distance = f"almost {_plural(years + 1, 'year')}"
    return f"{distance} ago"
