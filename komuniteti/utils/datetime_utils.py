"""
Date and time helpers for the maintenance workflow engine.

Timestamps are stored as naive UTC datetimes so they compare the same
way on every database backend.
"""

from datetime import date, datetime, timezone
from typing import Union


class DateTimeHelper:
    """Date and time manipulation utilities"""

    @staticmethod
    def utcnow() -> datetime:
        """Current UTC time as a naive datetime"""
        return datetime.now(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def to_naive_utc(dt: datetime) -> datetime:
        """Convert an aware datetime to naive UTC; naive values are assumed UTC"""
        if dt.tzinfo is None:
            return dt
        return dt.astimezone(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def hours_between(start: datetime, end: datetime) -> float:
        """Elapsed hours from start to end"""
        start = DateTimeHelper.to_naive_utc(start)
        end = DateTimeHelper.to_naive_utc(end)
        return (end - start).total_seconds() / 3600

    @staticmethod
    def month_key(dt: Union[date, datetime]) -> str:
        """Calendar month of dt as YYYY-MM"""
        return f"{dt.year:04d}-{dt.month:02d}"


utcnow = DateTimeHelper.utcnow
