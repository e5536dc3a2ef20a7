"""Clinic-local time helpers.

Timestamps are stored as naive UTC. Anything that talks about "today" (task
urgency, surgery windows, daily push) resolves the day in the clinic timezone.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from ..config import CLINIC_TIMEZONE

CLINIC_TZ = ZoneInfo(CLINIC_TIMEZONE)


def utcnow() -> datetime:
    """Naive UTC now, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clinic_now() -> datetime:
    return datetime.now(CLINIC_TZ)


def to_clinic_tz(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(CLINIC_TZ)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an incoming datetime for storage; naive input is assumed UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(value: datetime) -> date:
    return to_clinic_tz(value).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a clinic-local day as aware datetimes."""
    start = datetime.combine(day, time.min, tzinfo=CLINIC_TZ)
    return start, start + timedelta(days=1)


def day_bounds_utc(day: date) -> tuple[datetime, datetime]:
    """Same as day_bounds but as naive UTC, ready for column comparisons."""
    start, end = day_bounds(day)
    return to_naive_utc(start), to_naive_utc(end)
