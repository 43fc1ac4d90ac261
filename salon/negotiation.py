# salon/negotiation.py
#
# Moving an existing appointment: a direct reschedule when the new slot is
# free, otherwise a swap request parked on the appointment occupying it,
# which only that appointment's owner can accept. Also covers the admin's
# change proposals, which the client can approve.

import logging
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .availability import is_bookable
from .collisions import find_collision
from .core import as_utc, end_after, format_day, local_display, local_instant, new_id
from .intents import (
    Outcome,
    PushAdminNotification,
    RejectionKind,
    UpdateAppointment,
    missing,
    notification,
    notify_client,
    reject,
)
from .schemas import Appointment, AppointmentStatus, AppState, ChangeProposal, Client, NotificationType, SwapRequest

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    unlocked_pending = "unlocked_pending"
    unlocked_confirmed_not_arrived = "unlocked_confirmed_not_arrived"
    locked_confirmed_arrived = "locked_confirmed_arrived"
    admin_override_unlocked = "admin_override_unlocked"
    cancelled = "cancelled"


UNLOCKED = (
    LockState.unlocked_pending,
    LockState.unlocked_confirmed_not_arrived,
    LockState.admin_override_unlocked,
)


def lock_state(appointment: Appointment, client: Optional[Client]) -> LockState:
    if appointment.status == AppointmentStatus.cancelled:
        return LockState.cancelled
    if appointment.status == AppointmentStatus.pending:
        return LockState.unlocked_pending
    if not appointment.confirmed_by_client:
        return LockState.unlocked_confirmed_not_arrived
    if client is not None and client.can_reschedule_confirmed:
        return LockState.admin_override_unlocked
    return LockState.locked_confirmed_arrived


def can_reschedule(appointment: Appointment, client: Optional[Client]) -> bool:
    return lock_state(appointment, client) in UNLOCKED


def _duration_minutes(state: AppState, appointment: Appointment) -> int:
    service = state.service(appointment.service_id)
    if service is not None:
        return service.duration
    # service deleted since booking: keep the booked length
    return int((appointment.end_time - appointment.start_time).total_seconds() // 60)


def reschedule(
    state: AppState,
    appointment_id: str,
    client_id: str,
    day: date,
    time_label: str,
    now: Optional[datetime] = None,
    id_factory=new_id,
) -> Outcome:
    """Move the client's appointment, or ask the occupant of the slot to swap.

    The appointment keeps its employee. A free slot moves it right away and
    sends it back to pending for the admin to re-confirm; a taken slot leaves
    it untouched and attaches a swap request to the colliding appointment.
    """
    action = "reschedule"
    appointment = state.appointment(appointment_id)
    if appointment is None or appointment.client_id != client_id:
        return missing(action, "appointment", appointment_id)
    client = state.client(client_id)
    if client is None:
        return missing(action, "client", client_id)

    if not can_reschedule(appointment, client):
        return reject(action, RejectionKind.reschedule_locked, "Rescheduling is locked after arrival was confirmed")
    if not is_bookable(state, day, time_label, now):
        return reject(action, RejectionKind.outside_hours, f"{format_day(day)} {time_label} is not a bookable slot")

    start = local_instant(day, time_label)
    end = end_after(start, _duration_minutes(state, appointment))

    occupant = find_collision(state.appointments, appointment.employee_id, start, end, exclude_id=appointment.id)
    if occupant is not None:
        return propose_swap(state, appointment, occupant, now=now, id_factory=id_factory)

    changes = {
        "start_time": start,
        "end_time": end,
        "status": AppointmentStatus.pending,
        "confirmed_by_client": False,
    }
    logger.info("Rescheduled appointment %s to %s", appointment.id, start.isoformat())
    return Outcome.accepted(
        "rescheduled",
        appointment.model_copy(update=changes),
        UpdateAppointment(appointment_id=appointment.id, changes=changes),
    )


def propose_swap(
    state: AppState,
    moving: Appointment,
    target: Appointment,
    now: Optional[datetime] = None,
    id_factory=new_id,
) -> Outcome:
    action = "propose_swap"
    if target.client_id == moving.client_id:
        return reject(action, RejectionKind.slot_occupied, "Time slot is taken by another of your appointments")
    if target.incoming_swap_request is not None:
        return reject(action, RejectionKind.swap_pending, "That appointment already has a pending swap request")
    owner = state.client(target.client_id)
    if owner is None:
        return missing(action, "client", target.client_id)

    request = SwapRequest(from_appointment_id=moving.id, requesting_client_id=moving.client_id)
    changes = {"incoming_swap_request": request}
    note = notification(
        "You received a swap request for your appointment. Open your file to see the details.",
        NotificationType.info,
        now=now,
        id_factory=id_factory,
    )
    logger.info("Swap requested: appointment %s wants the slot of %s", moving.id, target.id)
    return Outcome.accepted(
        "swap_proposed",
        target.model_copy(update=changes),
        UpdateAppointment(appointment_id=target.id, changes=changes),
        notify_client(owner, note),
    )


def accept_swap(
    state: AppState,
    target_appointment_id: str,
    client_id: str,
    now: Optional[datetime] = None,
    id_factory=new_id,
) -> Outcome:
    """Exchange the time slots of the requester's and the target's appointments.

    Each side keeps its own service length at the new start time. The swapped
    result is not re-checked against third appointments.
    """
    action = "accept_swap"
    target = state.appointment(target_appointment_id)
    if target is None or target.client_id != client_id:
        return missing(action, "appointment", target_appointment_id)
    if target.status == AppointmentStatus.cancelled:
        return reject(action, RejectionKind.not_allowed, "Appointment is cancelled")
    request = target.incoming_swap_request
    if request is None:
        return missing(action, "swap request", target_appointment_id)
    if request.requesting_client_id == client_id:
        return reject(action, RejectionKind.not_allowed, "A swap must be accepted by the other client")

    requested = state.appointment(request.from_appointment_id)
    if requested is None or requested.status == AppointmentStatus.cancelled:
        return missing(action, "appointment", request.from_appointment_id)
    requested_service = state.service(requested.service_id)
    if requested_service is None:
        return missing(action, "service", requested.service_id)
    target_service = state.service(target.service_id)
    if target_service is None:
        return missing(action, "service", target.service_id)

    # requester takes the target's start, target takes the requester's
    requested_start = target.start_time
    requested_end = end_after(requested_start, requested_service.duration)
    target_start = requested.start_time
    target_end = end_after(target_start, target_service.duration)

    requested_changes = {"start_time": requested_start, "end_time": requested_end, "incoming_swap_request": None}
    target_changes = {"start_time": target_start, "end_time": target_end, "incoming_swap_request": None}

    requester = state.client(requested.client_id)
    owner = state.client(target.client_id)
    requester_name = requester.name if requester is not None and requester.name else "client"
    owner_name = owner.name if owner is not None and owner.name else "client"

    intents = [
        UpdateAppointment(appointment_id=requested.id, changes=requested_changes),
        UpdateAppointment(appointment_id=target.id, changes=target_changes),
        PushAdminNotification(
            notification=notification(
                f"Appointments swapped: {requester_name} moved to {local_display(requested_start)} "
                f"and {owner_name} moved to {local_display(target_start)}.",
                NotificationType.info,
                now=now,
                id_factory=id_factory,
            )
        ),
    ]
    if requester is not None:
        intents.append(
            notify_client(
                requester,
                notification(
                    f"Your swap request was accepted! Your new appointment is at {local_display(requested_start)}.",
                    NotificationType.success,
                    now=now,
                    id_factory=id_factory,
                ),
            )
        )
    logger.info("Swapped appointments %s and %s", requested.id, target.id)
    return Outcome.accepted("swapped", target.model_copy(update=target_changes), *intents)


def propose_change(
    state: AppState,
    appointment_id: str,
    start: datetime,
    price_at_booking: Optional[float] = None,
) -> Outcome:
    """Admin suggests a new time (and optionally price) for the client to approve."""
    action = "propose_change"
    appointment = state.appointment(appointment_id)
    if appointment is None:
        return missing(action, "appointment", appointment_id)
    if appointment.status == AppointmentStatus.cancelled:
        return reject(action, RejectionKind.not_allowed, "Appointment is cancelled")

    start = as_utc(start)
    proposal = ChangeProposal(
        start_time=start,
        end_time=end_after(start, _duration_minutes(state, appointment)),
        price_at_booking=appointment.price_at_booking if price_at_booking is None else price_at_booking,
    )
    changes = {"change_proposal": proposal}
    return Outcome.accepted(
        action,
        appointment.model_copy(update=changes),
        UpdateAppointment(appointment_id=appointment.id, changes=changes),
    )


def approve_change(state: AppState, appointment_id: str, client_id: str) -> Outcome:
    action = "approve_change"
    appointment = state.appointment(appointment_id)
    if appointment is None or appointment.client_id != client_id:
        return missing(action, "appointment", appointment_id)
    proposal = appointment.change_proposal
    if proposal is None:
        return missing(action, "change proposal", appointment_id)

    changes = {
        "start_time": proposal.start_time,
        "end_time": proposal.end_time,
        "price_at_booking": proposal.price_at_booking,
        "status": AppointmentStatus.confirmed,
        "change_proposal": None,
    }
    return Outcome.accepted(
        action,
        appointment.model_copy(update=changes),
        UpdateAppointment(appointment_id=appointment.id, changes=changes),
    )
