"""Gemini time base.

Tritech Gemini records store times as float seconds since
1980-01-01 00:00:00 local UK time.  UK time equals UTC at that date, but
the epoch is still built through the tz database so the conversion is
explicit.  Headers keep integer millisecond ticks; calendar conversion
happens only for display.
"""

from __future__ import annotations

import datetime

import pytz

EPOCH_TIMEZONE = "Europe/London"

GEMINI_EPOCH = pytz.timezone(EPOCH_TIMEZONE).localize(
    datetime.datetime(1980, 1, 1, 0, 0, 0)
).astimezone(pytz.utc)

TICKS_PER_SECOND = 1000


def seconds_to_ticks(seconds: float) -> int:
    """Convert on-disk float seconds to integer millisecond ticks."""
    return int(round(seconds * TICKS_PER_SECOND))


def ticks_to_datetime(ticks: int, tz: str = "UTC") -> datetime.datetime:
    """Convert Gemini ticks to a timezone-aware datetime in zone *tz*.

    Raises
    ------
    pytz.UnknownTimeZoneError
        If *tz* is not in the tz database.
    """
    utc = GEMINI_EPOCH + datetime.timedelta(milliseconds=ticks)
    return utc.astimezone(pytz.timezone(tz))


def datetime_to_ticks(when: datetime.datetime) -> int:
    """Inverse of :func:`ticks_to_datetime` for aware datetimes."""
    if when.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    delta = when.astimezone(pytz.utc) - GEMINI_EPOCH
    return (delta.days * 86_400 + delta.seconds) * TICKS_PER_SECOND + delta.microseconds // 1000
