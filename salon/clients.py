# salon/clients.py

from .core import new_id
from .intents import AddClient, Outcome, RejectionKind, UpdateClientNotifications, missing, reject
from .schemas import AppState, Client


def register_client(
    state: AppState,
    name: str,
    phone: str,
    password_hash: str,
    health_declaration_signed: bool = False,
    id_factory=new_id,
) -> Outcome:
    action = "register_client"
    phone = phone.strip()
    if state.client_by_phone(phone) is not None:
        return reject(action, RejectionKind.already_registered, "Phone already registered")

    client = Client(
        id=id_factory(),
        name=name,
        phone=phone,
        password_hash=password_hash,
        health_declaration_signed=health_declaration_signed,
        notifications=[],
    )
    return Outcome.accepted(action, client, AddClient(client=client))


def mark_notifications_read(state: AppState, client_id: str) -> Outcome:
    action = "mark_notifications_read"
    client = state.client(client_id)
    if client is None:
        return missing(action, "client", client_id)

    notifications = [n.model_copy(update={"read": True}) for n in client.notifications]
    return Outcome.accepted(
        action,
        notifications,
        UpdateClientNotifications(client_id=client_id, notifications=notifications),
    )
