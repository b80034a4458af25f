# utils/datetime_utils.py

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, tzinfo
from typing import Optional, Union

import pytz

DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_TZ = pytz.timezone(DEFAULT_TIMEZONE)


def get_timezone(name: Optional[str] = None) -> tzinfo:
    if not name:
        return DEFAULT_TZ
    return pytz.timezone(name)


def now_local(tz: Optional[tzinfo] = None) -> datetime:
    return datetime.now(tz or DEFAULT_TZ)


def ensure_aware(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Naive datetimes are taken as local time in ``tz``."""
    if dt.tzinfo is not None and dt.tzinfo.utcoffset(dt) is not None:
        return dt
    zone = tz or DEFAULT_TZ
    if hasattr(zone, "localize"):
        return zone.localize(dt)
    return dt.replace(tzinfo=zone)


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def parse_datetime(value: Union[str, datetime], tz: Optional[tzinfo] = None) -> datetime:
    if isinstance(value, datetime):
        return ensure_aware(value, tz)
    return ensure_aware(datetime.fromisoformat(value), tz)


class Clock(ABC):
    """Source of the current time"""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    """Wall clock in a fixed time zone"""

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or DEFAULT_TZ

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock that only moves when told to"""

    def __init__(self, current: datetime, tz: Optional[tzinfo] = None):
        self.tz = tz or DEFAULT_TZ
        self.current = ensure_aware(current, self.tz)

    def now(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> datetime:
        self.current = ensure_aware(value, self.tz)
        return self.current

    def advance(self, **delta) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current
