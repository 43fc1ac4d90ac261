# salon/routers/admin_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from salon import admin
from salon.auth import get_current_user
from salon.booking import attach_receipt, set_status
from salon.core import local_day
from salon.deps import get_state_service, raise_for_rejection, require_role
from salon.negotiation import propose_change
from salon.schemas import (
    AppNotification,
    Appointment,
    AppointmentStatus,
    ChangeProposalCreate,
    ClientPublic,
    DayConfig,
    Employee,
    EmployeeCreate,
    ReceiptUpload,
    RescheduleOverride,
    Service,
    ServiceCreate,
    StatusUpdate,
)
from salon.state import AppStateService


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "admin")
    return current_user


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


# ---- calendar ----

@router.get("/appointments", response_model=List[Appointment])
def list_appointments(
    status: Optional[str] = "all",
    on_date: Optional[date] = None,
    portal: AppStateService = Depends(get_state_service),
):
    statuses = [s.value for s in AppointmentStatus]
    if status not in ("all", "active") and status not in statuses:
        raise HTTPException(
            status_code=422, detail="status must be 'pending', 'confirmed', 'cancelled', 'active', or 'all'"
        )

    appts = portal.snapshot().appointments
    if on_date is not None:
        appts = [a for a in appts if local_day(a.start_time) == on_date]
    if status == "active":
        appts = [a for a in appts if a.status != AppointmentStatus.cancelled]
    elif status != "all":
        appts = [a for a in appts if a.status.value == status]

    return sorted(appts, key=lambda a: a.start_time)


@router.patch("/appointments/{appt_id}/status", response_model=Appointment)
def update_status(
    appt_id: str,
    update: StatusUpdate,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: set_status(state, appt_id, update.status))
    raise_for_rejection(outcome)
    return outcome.record


@router.post("/appointments/{appt_id}/proposal", response_model=Appointment)
def create_proposal(
    appt_id: str,
    proposal: ChangeProposalCreate,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(
        lambda state: propose_change(state, appt_id, proposal.start_time, proposal.price_at_booking)
    )
    raise_for_rejection(outcome)
    return outcome.record


@router.put("/appointments/{appt_id}/receipt", response_model=Appointment)
def upload_receipt(
    appt_id: str,
    receipt: ReceiptUpload,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: attach_receipt(state, appt_id, receipt.receipt_image))
    raise_for_rejection(outcome)
    return outcome.record


# ---- hours ----

@router.put("/business-hours/{weekday}", response_model=DayConfig)
def update_business_hours(
    weekday: int,
    config: DayConfig,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.set_business_hours(state, weekday, config))
    raise_for_rejection(outcome)
    return outcome.record


@router.put("/date-overrides/{day}", response_model=DayConfig)
def update_date_override(
    day: date,
    config: Optional[DayConfig] = None,
    portal: AppStateService = Depends(get_state_service),
):
    # no body: the date becomes a day off
    outcome = portal.transact(lambda state: admin.set_date_override(state, day, config))
    raise_for_rejection(outcome)
    return outcome.record


@router.delete("/date-overrides/{day}", status_code=204)
def delete_date_override(
    day: date,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.clear_date_override(state, day))
    raise_for_rejection(outcome)


# ---- services ----

@router.post("/services", response_model=Service, status_code=201)
def create_service(
    fields: ServiceCreate,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.add_service(state, fields.model_dump()))
    raise_for_rejection(outcome)
    return outcome.record


@router.put("/services/{service_id}", response_model=Service)
def edit_service(
    service_id: str,
    fields: ServiceCreate,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.update_service(state, service_id, fields.model_dump()))
    raise_for_rejection(outcome)
    return outcome.record


@router.delete("/services/{service_id}", status_code=204)
def remove_service(
    service_id: str,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.delete_service(state, service_id))
    raise_for_rejection(outcome)


# ---- employees ----

@router.post("/employees", response_model=Employee, status_code=201)
def create_employee(
    employee: EmployeeCreate,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.add_employee(state, employee.name, employee.services))
    raise_for_rejection(outcome)
    return outcome.record


@router.put("/employees/{employee_id}", response_model=Employee)
def edit_employee(
    employee_id: str,
    employee: EmployeeCreate,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(
        lambda state: admin.update_employee(state, employee_id, employee.name, employee.services)
    )
    raise_for_rejection(outcome)
    return outcome.record


@router.delete("/employees/{employee_id}", status_code=204)
def remove_employee(
    employee_id: str,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.delete_employee(state, employee_id))
    raise_for_rejection(outcome)


# ---- clients & notifications ----

@router.patch("/clients/{client_id}/reschedule-override", response_model=ClientPublic)
def update_reschedule_override(
    client_id: str,
    override: RescheduleOverride,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.set_reschedule_override(state, client_id, override.allowed))
    raise_for_rejection(outcome)

    client = outcome.record
    return {
        "id": client.id,
        "name": client.name,
        "phone": client.phone,
        "can_reschedule_confirmed": client.can_reschedule_confirmed,
    }


@router.get("/notifications", response_model=List[AppNotification])
def list_notifications(portal: AppStateService = Depends(get_state_service)):
    return list(reversed(portal.snapshot().admin_notifications))


@router.post("/notifications/{notification_id}/read", status_code=204)
def read_notification(
    notification_id: str,
    portal: AppStateService = Depends(get_state_service),
):
    outcome = portal.transact(lambda state: admin.mark_admin_notification_read(state, notification_id))
    raise_for_rejection(outcome)
