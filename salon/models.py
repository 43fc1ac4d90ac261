# salon/models.py

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.types import JSON
from sqlmodel import Column, Field, SQLModel

LOCAL_DOCUMENT_ID = 1


class StateDocument(SQLModel, table=True):
    """Local backup of the shared document; a single row."""

    id: Optional[int] = Field(default=None, primary_key=True)
    payload: dict = Field(sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
