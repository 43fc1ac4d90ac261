# salon/routers/availability_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from salon.availability import bookable_dates, group_by_month, slot_board
from salon.booking import employees_for_service
from salon.deps import get_state_service
from salon.schemas import AvailabilityResponse, DatesResponse, Employee, Service
from salon.state import AppStateService

router = APIRouter(
    tags=["availability"],
)


@router.get("/services", response_model=List[Service])
def list_services(portal: AppStateService = Depends(get_state_service)):
    return portal.snapshot().services


@router.get("/services/{service_id}/employees", response_model=List[Employee])
def list_service_employees(
    service_id: str,
    portal: AppStateService = Depends(get_state_service),
):
    state = portal.snapshot()
    if state.service(service_id) is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return employees_for_service(state, service_id)


@router.get("/availability/dates", response_model=DatesResponse)
def available_dates(portal: AppStateService = Depends(get_state_service)):
    return {"months": group_by_month(bookable_dates(portal.snapshot()))}


@router.get("/availability/{day}/slots", response_model=AvailabilityResponse)
def available_slots(
    day: date,
    service_id: str,
    employee_id: str,
    exclude_appointment_id: Optional[str] = None,
    portal: AppStateService = Depends(get_state_service),
):
    state = portal.snapshot()

    # 1) Lookup service and the employee offered for it
    booked_service = state.service(service_id)
    if booked_service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    if not any(e.id == employee_id for e in employees_for_service(state, service_id)):
        raise HTTPException(status_code=404, detail="Employee not found")

    # 2) Every slot of the day, flagged when taken
    board = slot_board(state, day, booked_service, employee_id, exclude_appointment_id=exclude_appointment_id)
    return {
        "date": day,
        "employee_id": employee_id,
        "slots": [{"time": s.time, "occupied": s.occupied} for s in board],
    }
