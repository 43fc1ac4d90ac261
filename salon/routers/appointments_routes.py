# salon/routers/appointments_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from salon.auth import get_current_user
from salon.booking import book, confirm_arrival, request_receipt
from salon.deps import get_state_service, raise_for_rejection, require_role
from salon.negotiation import accept_swap, approve_change, reschedule
from salon.schemas import Appointment, AppointmentStatus, BookingCreate, RescheduleCreate, RescheduleResponse
from salon.state import AppStateService

router = APIRouter(
    tags=["appointments"],
)


@router.post("/appointments", response_model=Appointment, status_code=201)
def create_appointment(
    appt: BookingCreate,
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    outcome = portal.transact(
        lambda state: book(
            state,
            client_id=current_user["id"],
            service_id=appt.service_id,
            employee_id=appt.employee_id,
            day=appt.date,
            time_label=appt.time,
        )
    )
    raise_for_rejection(outcome)
    return outcome.record


@router.get("/clients/me/appointments", response_model=List[Appointment])
def list_my_appointments(
    status: Optional[str] = "all",
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    statuses = [s.value for s in AppointmentStatus]
    if status != "all" and status not in statuses:
        raise HTTPException(status_code=422, detail="status must be 'pending', 'confirmed', 'cancelled', or 'all'")

    appts = [a for a in portal.snapshot().appointments if a.client_id == current_user["id"]]
    if status != "all":
        appts = [a for a in appts if a.status.value == status]
    return sorted(appts, key=lambda a: a.start_time)


@router.post("/appointments/{appt_id}/reschedule", response_model=RescheduleResponse)
def reschedule_appointment(
    appt_id: str,
    move: RescheduleCreate,
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    # Free slot moves the appointment; a taken one sends a swap request
    outcome = portal.transact(
        lambda state: reschedule(state, appt_id, current_user["id"], move.date, move.time)
    )
    raise_for_rejection(outcome)
    return {"action": outcome.action, "appointment": outcome.record}


@router.post("/appointments/{appt_id}/swap/accept", response_model=Appointment)
def accept_swap_request(
    appt_id: str,
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    outcome = portal.transact(lambda state: accept_swap(state, appt_id, current_user["id"]))
    raise_for_rejection(outcome)
    return outcome.record


@router.post("/appointments/{appt_id}/arrival", response_model=Appointment)
def confirm_my_arrival(
    appt_id: str,
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    outcome = portal.transact(lambda state: confirm_arrival(state, appt_id, current_user["id"]))
    raise_for_rejection(outcome)
    return outcome.record


@router.post("/appointments/{appt_id}/proposal/approve", response_model=Appointment)
def approve_proposal(
    appt_id: str,
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    outcome = portal.transact(lambda state: approve_change(state, appt_id, current_user["id"]))
    raise_for_rejection(outcome)
    return outcome.record


@router.post("/appointments/{appt_id}/receipt-request", response_model=Appointment)
def ask_for_receipt(
    appt_id: str,
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    outcome = portal.transact(lambda state: request_receipt(state, appt_id, current_user["id"]))
    raise_for_rejection(outcome)
    return outcome.record
