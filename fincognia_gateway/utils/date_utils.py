"""Date manipulation utilities

Timestamps cross the domain boundary as epoch milliseconds; calendar logic runs on
naive local datetimes so that day and month buckets follow the device's clock.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

MILLIS_PER_DAY = 24 * 60 * 60 * 1000


def from_epoch_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime"""
    return datetime.fromtimestamp(millis / 1000)


def to_epoch_millis(value: datetime) -> int:
    """Convert a naive local (or aware) datetime to epoch milliseconds"""
    return int(round(value.timestamp() * 1000))


def now_millis() -> int:
    return to_epoch_millis(datetime.now())


def local_day(millis: int) -> date:
    """Calendar day a timestamp falls on"""
    return from_epoch_millis(millis).date()


def start_of_day(value: Optional[datetime] = None) -> datetime:
    """Local midnight of the given moment (default: now)"""
    value = value or datetime.now()
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def generate_day_starts(start: datetime, days: int) -> List[datetime]:
    """Generate consecutive calendar-day starts beginning at start (inclusive)"""
    return [start + timedelta(days=i) for i in range(days)]

