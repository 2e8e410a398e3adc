"""
Database Table Definitions.

State is stored as opaque JSON documents, one row per storage key.
The DBModel suffix marks SQLModel tables, as opposed to the pydantic state
models (DialogStack, UserInfo) that end up inside the document.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateDocumentDBModel(SQLModel, table=True):
    """
    Persistence model for one state partition.
    One row per (channel, conversation) or (channel, user) storage key.
    """

    __tablename__ = "bot_state"

    key: str = Field(primary_key=True, index=True)

    # The whole scope document (dialog stack, app records) as JSON.
    # JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
    document: Dict[str, Any] = Field(
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    )

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
