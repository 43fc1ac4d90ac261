# salon/core.py
#
# Date/time helpers shared by the scheduling modules.
# Calendar values cross the API as "YYYY-MM-DD" and "HH:MM" in the salon's
# local wall clock; stored appointment times are aware UTC instants.

import uuid
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from .config import SALON_TIMEZONE


def local_zone() -> ZoneInfo:
    return ZoneInfo(SALON_TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def parse_day(value: str) -> date:
    return date.fromisoformat(value)


def format_day(day: date) -> str:
    return day.isoformat()


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def label_to_minutes(value: str) -> int:
    t = parse_hhmm(value)
    return t.hour * 60 + t.minute


def minutes_to_label(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_of(day: date) -> int:
    """Weekday with Sunday=0 ... Saturday=6."""
    return day.isoweekday() % 7


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are read as local wall clock."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_zone())
    return value.astimezone(timezone.utc)


def local_today(now: datetime = None) -> date:
    return as_utc(now or utcnow()).astimezone(local_zone()).date()


def local_instant(day: date, label: str) -> datetime:
    """'YYYY-MM-DD' + 'HH:MM' on the local wall clock -> UTC instant."""
    wall = datetime.combine(day, parse_hhmm(label), tzinfo=local_zone())
    return wall.astimezone(timezone.utc)


def local_day(instant: datetime) -> date:
    return as_utc(instant).astimezone(local_zone()).date()


def local_label(instant: datetime) -> str:
    return as_utc(instant).astimezone(local_zone()).strftime("%H:%M")


def local_display(instant: datetime) -> str:
    return as_utc(instant).astimezone(local_zone()).strftime("%d/%m/%Y %H:%M")


def end_after(start: datetime, minutes: int) -> datetime:
    return start + timedelta(minutes=minutes)


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open intervals; touching ends do not overlap
    return start_a < end_b and start_b < end_a
