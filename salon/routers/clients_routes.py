# salon/routers/clients_routes.py

from typing import List

from fastapi import APIRouter, Depends

from salon.auth import get_current_user
from salon.clients import mark_notifications_read
from salon.deps import get_state_service, raise_for_rejection, require_role
from salon.schemas import AppNotification, MePublic
from salon.state import AppStateService

router = APIRouter(
    tags=["clients"],
)


@router.get("/me", response_model=MePublic)
def me(current_user: dict = Depends(get_current_user)):
    return {
        "id": current_user["id"],
        "role": current_user["role"],
        "name": current_user["name"],
        "phone": current_user["phone"],
    }


@router.get("/me/notifications", response_model=List[AppNotification])
def my_notifications(
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    client = portal.snapshot().client(current_user["id"])
    return list(reversed(client.notifications)) if client is not None else []


@router.post("/me/notifications/read", response_model=List[AppNotification])
def read_my_notifications(
    portal: AppStateService = Depends(get_state_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    outcome = portal.transact(lambda state: mark_notifications_read(state, current_user["id"]))
    raise_for_rejection(outcome)
    return outcome.record
