"""Pending action models — in-flight write intents held across turns."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class PendingStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not PendingStatus.PENDING


class PendingAction(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    actor_id: str
    status: PendingStatus = PendingStatus.PENDING
    intent_type: str
    draft_payload: dict[str, Any] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list)
    follow_up_question: str | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    expires_at: datetime


class PendingUpdate(BaseModel):
    """Partial update for a pending action.

    Only fields explicitly set are written, so ``follow_up_question=None``
    clears the question while leaving it out keeps the stored one. A ``None``
    payload or missing-field list is ignored.
    """

    draft_payload: dict[str, Any] | None = None
    missing_fields: list[str] | None = None
    follow_up_question: str | None = None
