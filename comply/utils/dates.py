# comply/utils/dates.py
"""
Date helpers shared by the server sweep, the HTTP layer and the sync client.

Timestamps are persisted as naive UTC. Every calendar-day comparison goes
through ``date_only`` so that client and server agree near midnight.
"""

from datetime import date, datetime
from typing import Optional, Union

import pytz

from comply.config.settings import AppConfig

DateLike = Union[date, datetime]


def get_timezone(name: Optional[str] = None):
    return pytz.timezone(name or AppConfig.TIMEZONE)


def utcnow() -> datetime:
    """Current time as naive UTC, the storage representation"""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize an incoming timestamp to naive UTC; naive input is taken as UTC"""
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def date_only(value: DateLike, tz=None) -> date:
    """Calendar date of ``value`` in the canonical time zone"""
    if not isinstance(value, datetime):
        return value
    zone = tz or get_timezone()
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(zone).date()


def days_between(start: DateLike, end: DateLike, tz=None) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative when end is earlier)"""
    return (date_only(end, tz) - date_only(start, tz)).days


def today(tz=None) -> date:
    return date_only(utcnow(), tz)
