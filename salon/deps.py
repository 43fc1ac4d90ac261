# salon/deps.py

from fastapi import HTTPException, Request

from .intents import NotFoundRejection, Outcome, RejectionKind
from .state import AppStateService

CONFLICT = (
    RejectionKind.already_booked,
    RejectionKind.already_registered,
    RejectionKind.slot_occupied,
    RejectionKind.swap_pending,
)


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_state_service(request: Request) -> AppStateService:
    return request.app.state.salon


def raise_for_rejection(outcome: Outcome):
    rejection = outcome.rejection
    if rejection is None:
        return
    if isinstance(rejection, NotFoundRejection):
        raise HTTPException(status_code=404, detail=rejection.message)
    if rejection.kind in CONFLICT:
        raise HTTPException(status_code=409, detail=rejection.message)
    if rejection.kind == RejectionKind.not_allowed:
        raise HTTPException(status_code=403, detail=rejection.message)
    raise HTTPException(status_code=422, detail=rejection.message)
