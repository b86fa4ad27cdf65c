# app/utils/dates.py
"""
Date helpers shared by the timeline engine, event aggregation and routers.

All instants are handled as naive UTC datetimes, the same way the database
columns store them.
"""
from datetime import datetime, timezone
from typing import Optional, Union

from dateutil import parser as date_parser

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Current wall-clock instant as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO 8601 string (or pass through a datetime).

    Empty strings and None mean "no date", which is how a cleared phase start
    date arrives from clients.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, str) and not value.strip():
        return None
    return to_naive_utc(date_parser.isoparse(value))


def days_between(start: datetime, end: datetime) -> int:
    """
    Whole days from start to end, truncated toward zero.

    A span of 2.9 days is 2, and -2.9 days is -2.
    """
    seconds = (end - start).total_seconds()
    return int(seconds / SECONDS_PER_DAY)


def format_day(value: Optional[datetime], fmt: str = "%d/%m/%Y") -> str:
    if value is None:
        return "Not started"
    return value.strftime(fmt)
