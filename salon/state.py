# salon/state.py
#
# One in-memory AppState per process. Core functions decide on a snapshot
# and return intents; this module applies them, keeps track of unsaved
# local changes and merges the shared document back in on sync.

import asyncio
import logging
import threading
import time
from typing import Callable, Iterable, Optional

from .config import SYNC_GUARD_SECONDS
from .intents import (
    AddAppointment,
    AddClient,
    Intent,
    Outcome,
    PushAdminNotification,
    UpdateAppointment,
    UpdateClient,
    UpdateClientNotifications,
    UpdateConfig,
)
from .schemas import AppState, Client

logger = logging.getLogger(__name__)

# owned by the admin: a remote copy never overwrites the admin's local edits
CONFIG_FIELDS = ("services", "employees", "business_hours", "date_overrides")


def _with_client(state: AppState, client_id: str, changes: dict) -> AppState:
    clients = [c.model_copy(update=changes) if c.id == client_id else c for c in state.clients]
    update = {"clients": clients}
    if state.current_user is not None and state.current_user.id == client_id:
        update["current_user"] = state.current_user.model_copy(update=changes)
    return state.model_copy(update=update)


def apply_intent(state: AppState, intent: Intent) -> AppState:
    if isinstance(intent, AddAppointment):
        return state.model_copy(update={"appointments": [*state.appointments, intent.appointment]})
    if isinstance(intent, UpdateAppointment):
        appointments = [
            a.model_copy(update=intent.changes) if a.id == intent.appointment_id else a for a in state.appointments
        ]
        return state.model_copy(update={"appointments": appointments})
    if isinstance(intent, UpdateClientNotifications):
        return _with_client(state, intent.client_id, {"notifications": list(intent.notifications)})
    if isinstance(intent, PushAdminNotification):
        return state.model_copy(update={"admin_notifications": [*state.admin_notifications, intent.notification]})
    if isinstance(intent, AddClient):
        return state.model_copy(update={"clients": [*state.clients, intent.client]})
    if isinstance(intent, UpdateClient):
        return _with_client(state, intent.client_id, intent.changes)
    if isinstance(intent, UpdateConfig):
        return state.model_copy(update=intent.changes)
    raise TypeError(f"Unknown intent: {intent!r}")


def apply_intents(state: AppState, intents: Iterable[Intent]) -> AppState:
    for intent in intents:
        state = apply_intent(state, intent)
    return state


def reconcile(local: AppState, remote: AppState, is_admin: bool) -> AppState:
    """Merge a freshly read shared document into the local state.

    The admin keeps its own configuration and takes everything else
    (appointments, clients, notifications) from the remote copy. Anyone else
    adopts the remote document and only keeps who they are.
    """
    if is_admin:
        kept = {field: getattr(local, field) for field in CONFIG_FIELDS}
        kept["current_user"] = local.current_user
        return remote.model_copy(update=kept)

    current: Optional[Client] = local.current_user
    if current is not None:
        current = remote.client(current.id) or current
    return remote.model_copy(update={"current_user": current})


class AppStateService:
    def __init__(
        self,
        store,
        initial: Optional[AppState] = None,
        is_admin: bool = True,
        guard_seconds: float = SYNC_GUARD_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.is_admin = is_admin
        self.guard_seconds = guard_seconds
        self._clock = clock
        self._state = initial if initial is not None else AppState()
        self._lock = threading.RLock()
        self._dirty = False
        self._last_local_update: Optional[float] = None

    @property
    def dirty(self) -> bool:
        return self._dirty

    def snapshot(self) -> AppState:
        """Current state. Intents replace it wholesale, so a held snapshot never changes."""
        with self._lock:
            return self._state

    def dispatch(self, intents: Iterable[Intent]) -> AppState:
        with self._lock:
            self._state = apply_intents(self._state, intents)
            self._dirty = True
            self._last_local_update = self._clock()
            return self._state

    def transact(self, decide: Callable[[AppState], Outcome]) -> Outcome:
        """Decide and apply under one lock so two writers cannot both take a slot."""
        with self._lock:
            outcome = decide(self._state)
            if outcome.ok and outcome.intents:
                self.dispatch(outcome.intents)
            return outcome

    def sync_due(self) -> bool:
        if self._last_local_update is None:
            return True
        return self._clock() - self._last_local_update >= self.guard_seconds

    async def load(self) -> AppState:
        state = await self.store.read()
        with self._lock:
            self._state = state
            self._dirty = False
        return state

    async def flush(self) -> bool:
        with self._lock:
            if not self._dirty:
                return False
            state = self._state
            self._dirty = False
        if not await self.store.write(state):
            # the shared copy missed this state; try again on the next cycle
            with self._lock:
                self._dirty = True
            return False
        return True

    async def sync(self, force: bool = False) -> bool:
        if not force and not self.sync_due():
            logger.debug("Sync skipped, local change younger than %ss", self.guard_seconds)
            return False
        # unsaved local changes go out before the remote copy comes in
        await self.flush()
        if self._dirty:
            logger.debug("Sync skipped, local changes not saved yet")
            return False
        remote = await self.store.read()
        with self._lock:
            if self._dirty:
                logger.debug("Sync dropped, local change landed while reading")
                return False
            self._state = reconcile(self._state, remote, self.is_admin)
        logger.debug("Synced shared document (%d appointments)", len(remote.appointments))
        return True

    async def run(self, interval: float) -> None:
        while True:
            try:
                await self.flush()
                await self.sync()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Sync cycle failed")
            await asyncio.sleep(interval)
