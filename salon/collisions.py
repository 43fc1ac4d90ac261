# salon/collisions.py

from datetime import datetime
from typing import Iterable, Iterator, Optional

from .core import overlaps
from .data import SENTINEL_EMPLOYEE_ID
from .schemas import Appointment, AppointmentStatus


def same_employee(candidate_employee_id: str, appointment: Appointment) -> bool:
    # the sentinel stands for "any staff member" and matches every appointment
    if candidate_employee_id == SENTINEL_EMPLOYEE_ID:
        return True
    return appointment.employee_id == candidate_employee_id


def colliding(
    appointments: Iterable[Appointment],
    employee_id: str,
    start: datetime,
    end: datetime,
    exclude_id: Optional[str] = None,
) -> Iterator[Appointment]:
    for a in appointments:
        if a.status == AppointmentStatus.cancelled:
            continue
        if exclude_id is not None and a.id == exclude_id:
            continue
        if not same_employee(employee_id, a):
            continue
        if overlaps(start, end, a.start_time, a.end_time):
            yield a


def find_collision(
    appointments: Iterable[Appointment],
    employee_id: str,
    start: datetime,
    end: datetime,
    exclude_id: Optional[str] = None,
) -> Optional[Appointment]:
    return next(colliding(appointments, employee_id, start, end, exclude_id), None)


def is_occupied(
    appointments: Iterable[Appointment],
    employee_id: str,
    start: datetime,
    end: datetime,
    exclude_id: Optional[str] = None,
) -> bool:
    return find_collision(appointments, employee_id, start, end, exclude_id) is not None
