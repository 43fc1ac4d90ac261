# salon/routers/auth_routes.py

import secrets

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.security import OAuth2PasswordRequestForm

from salon.auth import create_access_token, hash_password, verify_password
from salon.clients import register_client
from salon.config import ADMIN_PASSWORD, ADMIN_USERNAME
from salon.deps import get_state_service, raise_for_rejection
from salon.schemas import ClientCreate, ClientPublic, Token, UserRole
from salon.state import AppStateService

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/register", status_code=201, response_model=ClientPublic)
async def register(
    client: ClientCreate,
    portal: AppStateService = Depends(get_state_service),
):
    # 1) Pull the latest shared copy so a phone registered elsewhere is seen
    await portal.sync(force=True)

    # 2) Hash off the event loop, then create client (phone must be unique)
    password_hash = await run_in_threadpool(hash_password, client.password)
    outcome = portal.transact(
        lambda state: register_client(
            state,
            name=client.name,
            phone=client.phone,
            password_hash=password_hash,
            health_declaration_signed=client.health_declaration_signed,
        )
    )
    raise_for_rejection(outcome)

    # 3) Save right away
    await portal.flush()

    created = outcome.record
    return {
        "id": created.id,
        "name": created.name,
        "phone": created.phone,
        "can_reschedule_confirmed": created.can_reschedule_confirmed,
    }


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    portal: AppStateService = Depends(get_state_service),
):
    # Swagger OAuth2 "password" flow uses the "username" field for the phone
    username = form_data.username.strip()
    password = form_data.password

    if username == ADMIN_USERNAME:
        if not secrets.compare_digest(password.encode(), ADMIN_PASSWORD.encode()):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        token = create_access_token({"sub": ADMIN_USERNAME, "role": UserRole.admin.value})
        return {"access_token": token, "token_type": "bearer"}

    client = portal.snapshot().client_by_phone(username)
    if client is None or not client.password_hash or not verify_password(password, client.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": client.id, "role": UserRole.client.value})
    return {"access_token": token, "token_type": "bearer"}
