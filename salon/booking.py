# salon/booking.py

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from .availability import is_bookable
from .collisions import find_collision
from .core import as_utc, end_after, format_day, local_instant, local_day, new_id, utcnow
from .data import ARRIVAL_WINDOW_HOURS, SENTINEL_EMPLOYEE_ID, SENTINEL_EMPLOYEE_NAME
from .intents import (
    AddAppointment,
    Outcome,
    PushAdminNotification,
    RejectionKind,
    UpdateAppointment,
    missing,
    notification,
    reject,
)
from .schemas import Appointment, AppointmentStatus, AppState, Employee, NotificationType

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (AppointmentStatus.pending, AppointmentStatus.confirmed)


def employees_for_service(state: AppState, service_id: str) -> List[Employee]:
    # 1) staff assigned to the service
    assigned = [e for e in state.employees if service_id in e.services]
    if assigned:
        return assigned
    # 2) nobody assigned: anyone on the roster
    if state.employees:
        return list(state.employees)
    # 3) empty roster: the general-staff sentinel so booking is never blocked
    return [Employee(id=SENTINEL_EMPLOYEE_ID, name=SENTINEL_EMPLOYEE_NAME, services=[service_id])]


def has_active_booking(state: AppState, client_id: str, service_id: str, now: Optional[datetime] = None) -> bool:
    now = as_utc(now or utcnow())
    return any(
        a.client_id == client_id
        and a.service_id == service_id
        and a.status in ACTIVE_STATUSES
        and a.start_time > now
        for a in state.appointments
    )


def book(
    state: AppState,
    client_id: str,
    service_id: str,
    employee_id: str,
    day: date,
    time_label: str,
    now: Optional[datetime] = None,
    id_factory=new_id,
) -> Outcome:
    action = "book"

    client = state.client(client_id)
    if client is None:
        return missing(action, "client", client_id)
    service = state.service(service_id)
    if service is None:
        return missing(action, "service", service_id)
    employee = next((e for e in employees_for_service(state, service_id) if e.id == employee_id), None)
    if employee is None:
        return missing(action, "employee", employee_id)

    if has_active_booking(state, client_id, service_id, now):
        return reject(
            action,
            RejectionKind.already_booked,
            f"You already have an upcoming {service.name} appointment",
        )

    if not is_bookable(state, day, time_label, now):
        return reject(action, RejectionKind.outside_hours, f"{format_day(day)} {time_label} is not a bookable slot")

    start = local_instant(day, time_label)
    end = end_after(start, service.duration)
    if find_collision(state.appointments, employee.id, start, end) is not None:
        return reject(action, RejectionKind.slot_occupied, "Time slot is already taken")

    appointment = Appointment(
        id=id_factory(),
        client_id=client.id,
        service_id=service.id,
        employee_id=employee.id,
        start_time=start,
        end_time=end,
        status=AppointmentStatus.pending,
        confirmed_by_client=False,
        price_at_booking=service.price,
    )
    note = notification(
        f"New booking request: {client.name or 'client'} for {service.name}",
        NotificationType.alert,
        now=now,
        id_factory=id_factory,
    )
    logger.info("Booked %s for client %s at %s", service.name, client.id, start.isoformat())
    return Outcome.accepted(action, appointment, AddAppointment(appointment=appointment), PushAdminNotification(notification=note))


def set_status(state: AppState, appointment_id: str, status: AppointmentStatus) -> Outcome:
    """Admin confirm / cancel. Cancellation is terminal."""
    action = "set_status"
    appointment = state.appointment(appointment_id)
    if appointment is None:
        return missing(action, "appointment", appointment_id)
    if status == AppointmentStatus.pending:
        return reject(action, RejectionKind.not_allowed, "Only confirm or cancel are allowed")
    if appointment.status == AppointmentStatus.cancelled:
        return reject(action, RejectionKind.not_allowed, "Appointment already cancelled")

    changes = {"status": status}
    return Outcome.accepted(
        action,
        appointment.model_copy(update=changes),
        UpdateAppointment(appointment_id=appointment.id, changes=changes),
    )


def within_arrival_window(appointment: Appointment, now: Optional[datetime] = None) -> bool:
    remaining = appointment.start_time - as_utc(now or utcnow())
    return timedelta(0) < remaining <= timedelta(hours=ARRIVAL_WINDOW_HOURS)


def confirm_arrival(state: AppState, appointment_id: str, client_id: str, now: Optional[datetime] = None) -> Outcome:
    action = "confirm_arrival"
    appointment = state.appointment(appointment_id)
    if appointment is None or appointment.client_id != client_id:
        return missing(action, "appointment", appointment_id)
    if appointment.status != AppointmentStatus.confirmed:
        return reject(action, RejectionKind.not_allowed, "Appointment is not confirmed yet")
    if not within_arrival_window(appointment, now):
        return reject(
            action,
            RejectionKind.not_allowed,
            f"Arrival can be confirmed only in the {ARRIVAL_WINDOW_HOURS} hours before the appointment",
        )

    changes = {"confirmed_by_client": True}
    return Outcome.accepted(
        action,
        appointment.model_copy(update=changes),
        UpdateAppointment(appointment_id=appointment.id, changes=changes),
    )


def request_receipt(
    state: AppState,
    appointment_id: str,
    client_id: str,
    now: Optional[datetime] = None,
    id_factory=new_id,
) -> Outcome:
    action = "request_receipt"
    appointment = state.appointment(appointment_id)
    if appointment is None or appointment.client_id != client_id:
        return missing(action, "appointment", appointment_id)
    client = state.client(client_id)

    changes = {"receipt_requested": True}
    day = local_day(appointment.start_time).strftime("%d/%m/%Y")
    name = client.name if client is not None and client.name else "client"
    note = notification(
        f"{name} requested a receipt for the treatment on {day}",
        NotificationType.info,
        now=now,
        id_factory=id_factory,
    )
    return Outcome.accepted(
        action,
        appointment.model_copy(update=changes),
        UpdateAppointment(appointment_id=appointment.id, changes=changes),
        PushAdminNotification(notification=note),
    )


def attach_receipt(state: AppState, appointment_id: str, receipt_image: str) -> Outcome:
    action = "attach_receipt"
    appointment = state.appointment(appointment_id)
    if appointment is None:
        return missing(action, "appointment", appointment_id)

    changes = {"receipt_image": receipt_image}
    return Outcome.accepted(
        action,
        appointment.model_copy(update=changes),
        UpdateAppointment(appointment_id=appointment.id, changes=changes),
    )
