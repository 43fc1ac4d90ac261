# salon/availability.py
#
# Bookable dates and slot labels derived from weekly business hours and
# per-date overrides. Nothing here is persisted; everything is recomputed
# from the state snapshot on demand.

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterator, List, Mapping, Optional

from .collisions import find_collision
from .core import end_after, format_day, label_to_minutes, local_instant, local_today, minutes_to_label, weekday_of
from .data import BOOKING_HORIZON_DAYS, SLOT_MINUTES
from .schemas import AppState, DayConfig, Service


@dataclass(frozen=True)
class Slot:
    time: str
    occupied: bool


def resolve_config(
    day: date,
    business_hours: Mapping[int, DayConfig],
    date_overrides: Mapping[str, DayConfig],
) -> Optional[DayConfig]:
    """Override for that exact date wins; otherwise the weekday's hours."""
    override = date_overrides.get(format_day(day))
    if override is not None:
        return override
    return business_hours.get(weekday_of(day))


def is_open(day: date, state: AppState) -> bool:
    config = resolve_config(day, state.business_hours, state.date_overrides)
    return config is not None and config.is_open


def bookable_dates(
    state: AppState,
    now: Optional[datetime] = None,
    horizon_days: int = BOOKING_HORIZON_DAYS,
) -> List[date]:
    # today is never bookable; the window starts tomorrow
    today = local_today(now)
    candidates = (today + timedelta(days=offset) for offset in range(1, horizon_days + 1))
    return [day for day in candidates if is_open(day, state)]


def group_by_month(dates: List[date]) -> Dict[str, List[date]]:
    groups: Dict[str, List[date]] = {}
    for day in dates:
        groups.setdefault(day.strftime("%B %Y"), []).append(day)
    return groups


def time_slots(config: Optional[DayConfig], slot_minutes: int = SLOT_MINUTES) -> Iterator[str]:
    """Labels from start (inclusive) to end (exclusive), slot_minutes apart.

    >>> list(time_slots(DayConfig(is_open=True, start="09:00", end="10:00")))
    ['09:00', '09:30']
    """
    if config is None or not config.is_open:
        return
    current = label_to_minutes(config.start)
    end = label_to_minutes(config.end)
    while current < end:
        yield minutes_to_label(current)
        current += slot_minutes


def slots_for_date(state: AppState, day: date) -> List[str]:
    return list(time_slots(resolve_config(day, state.business_hours, state.date_overrides)))


def within_horizon(day: date, now: Optional[datetime] = None) -> bool:
    # tomorrow through the last day of the booking horizon
    today = local_today(now)
    return today < day <= today + timedelta(days=BOOKING_HORIZON_DAYS)


def is_bookable(state: AppState, day: date, label: str, now: Optional[datetime] = None) -> bool:
    if not within_horizon(day, now):
        return False
    return label in slots_for_date(state, day)


def slot_board(
    state: AppState,
    day: date,
    service: Service,
    employee_id: str,
    exclude_appointment_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Slot]:
    """Every slot of the day, flagged when a booking of `service` there would collide.

    Days outside the booking horizon have no board.
    """
    board = []
    if not within_horizon(day, now):
        return board
    for label in slots_for_date(state, day):
        start = local_instant(day, label)
        end = end_after(start, service.duration)
        hit = find_collision(state.appointments, employee_id, start, end, exclude_id=exclude_appointment_id)
        board.append(Slot(time=label, occupied=hit is not None))
    return board
