# salon/store.py
#
# Persistence for the shared document: a remote JSON document every portal
# instance reads and overwrites, and a local SQLite backup used whenever the
# remote copy cannot be reached. Reads and writes never raise; failures are
# logged and the last good local copy is served instead.

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .config import REMOTE_DOCUMENT_API_KEY, REMOTE_DOCUMENT_URL, REMOTE_TIMEOUT_SECONDS
from .data import INITIAL_EMPLOYEES, INITIAL_SERVICES
from .db import create_db_and_tables, engine
from .models import LOCAL_DOCUMENT_ID, StateDocument
from .schemas import AppState

logger = logging.getLogger(__name__)


class PersistenceFailure(Exception):
    """Reading or writing the shared document failed."""


def seed_state() -> AppState:
    return AppState.model_validate({"services": INITIAL_SERVICES, "employees": INITIAL_EMPLOYEES})


def coerce_document(raw) -> AppState:
    """Validate a stored document, completing missing collections from the seed."""
    if not isinstance(raw, dict):
        raise PersistenceFailure("Shared document is not a JSON object")

    seed = seed_state().to_document()
    document = {**seed, **raw}
    # a fresh or half-written document must not crash the portal
    if not isinstance(raw.get("services"), list):
        document["services"] = seed["services"]
    if not isinstance(raw.get("clients"), list):
        document["clients"] = []
    if not isinstance(raw.get("appointments"), list):
        document["appointments"] = []
    # a session is never restored from storage
    document.pop("currentUser", None)

    try:
        return AppState.model_validate(document)
    except ValidationError as exc:
        raise PersistenceFailure(f"Shared document is invalid: {exc.error_count()} errors") from exc


def shared_document(state: AppState) -> dict:
    document = state.to_document()
    document.pop("currentUser", None)
    return document


class RemoteDocumentClient:
    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = REMOTE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-Master-Key"] = self.api_key
            headers["X-Access-Key"] = self.api_key
        return headers

    async def fetch(self) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.url, headers=self._headers())
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PersistenceFailure(f"Failed to read shared document: {exc}") from exc

        # JSONBin wraps the document in "record"
        if isinstance(body, dict) and isinstance(body.get("record"), dict):
            return body["record"]
        return body

    async def push(self, document: dict) -> None:
        headers = {**self._headers(), "X-Bin-Versioning": "false"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.put(self.url, headers=headers, json=document)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PersistenceFailure(f"Failed to save shared document: {exc}") from exc


class LocalSnapshotStore:
    def __init__(self, bind=engine):
        self.engine = bind
        create_db_and_tables(bind)

    def load(self) -> Optional[dict]:
        try:
            with Session(self.engine) as session:
                row = session.get(StateDocument, LOCAL_DOCUMENT_ID)
                return None if row is None else row.payload
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Failed to read local snapshot: {exc}") from exc

    def save(self, document: dict) -> None:
        try:
            with Session(self.engine) as session:
                row = session.get(StateDocument, LOCAL_DOCUMENT_ID)
                if row is None:
                    row = StateDocument(id=LOCAL_DOCUMENT_ID, payload=document)
                else:
                    row.payload = document
                    row.updated_at = datetime.now(timezone.utc)
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Failed to save local snapshot: {exc}") from exc


class DocumentStore:
    def __init__(self, local: LocalSnapshotStore, remote: Optional[RemoteDocumentClient] = None):
        self.local = local
        self.remote = remote

    async def read(self) -> AppState:
        if self.remote is not None:
            try:
                state = coerce_document(await self.remote.fetch())
            except PersistenceFailure as exc:
                logger.warning("Remote read failed, using local backup: %s", exc)
            else:
                await self._save_local(shared_document(state))
                return state

        try:
            raw = await asyncio.to_thread(self.local.load)
            if raw is not None:
                return coerce_document(raw)
        except PersistenceFailure as exc:
            logger.warning("Local snapshot unusable, starting from seed data: %s", exc)
        return seed_state()

    async def write(self, state: AppState) -> bool:
        """False when the remote copy was not updated."""
        document = shared_document(state)
        await self._save_local(document)
        if self.remote is None:
            return True
        try:
            await self.remote.push(document)
        except PersistenceFailure as exc:
            logger.warning("Remote write failed: %s", exc)
            return False
        return True

    async def _save_local(self, document: dict) -> None:
        try:
            await asyncio.to_thread(self.local.save, document)
        except PersistenceFailure as exc:
            logger.warning("%s", exc)


def build_store() -> DocumentStore:
    remote = None
    if REMOTE_DOCUMENT_URL:
        remote = RemoteDocumentClient(REMOTE_DOCUMENT_URL, REMOTE_DOCUMENT_API_KEY)
    return DocumentStore(LocalSnapshotStore(engine), remote)
