"""Action models — what the user confirms and what comes back."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, Field

from actionbroker.exceptions import ErrorKind


class ActionType(str, enum.Enum):
    CREATE_TASK = "create_task"
    UPDATE_TASK_STATUS = "update_task_status"
    CREATE_PROGRAMME = "create_programme"
    UPDATE_PROGRAMME_STATUS = "update_programme_status"
    UPDATE_PROGRAMME_FIELDS = "update_programme_fields"


class ActionRequest(BaseModel):
    # Kept as a raw string so unknown types reach the executor's error path.
    action_type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ActionResult(BaseModel):
    success: bool
    message: str
    href: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
