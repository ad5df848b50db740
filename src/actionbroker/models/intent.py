"""Intent models — classifier output in, per-turn outcome out."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from actionbroker.models.pending import PendingAction


class ClassifiedIntent(BaseModel):
    intent_type: str
    draft_payload: dict[str, Any] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list)
    follow_up_question: str | None = None


class TurnOutcome(BaseModel):
    pending: PendingAction | None = None
    ready: bool = False
    message: str = ""
    waiting_for: str | None = None
