"""Task handlers — create a task, move a task to another status."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from actionbroker.exceptions import NotFoundError
from actionbroker.executor.handlers.base import ActionHandler
from actionbroker.models.action import ActionResult, ActionType
from actionbroker.models.records import AssignmentRecord, TaskRecord
from actionbroker.validation.sanitize import (
    VALID_PRIORITIES,
    VALID_TASK_STATUSES,
    optional_actor_id,
    optional_date,
    optional_text,
    optional_uuid,
    require_enum,
    require_text,
    require_uuid,
    validate_enum,
)


class CreateTaskCommand(BaseModel):
    title: str
    description: str | None = None
    assignee_id: str
    programme_id: str | None = None
    status: str = "todo"
    priority: str = "medium"
    due_date: str | None = None
    evidence_required: bool = False


class UpdateTaskStatusCommand(BaseModel):
    task_id: str
    new_status: str


class CreateTaskHandler(ActionHandler):
    action_type = ActionType.CREATE_TASK

    def validate(self, actor_id: str, payload: dict[str, Any]) -> CreateTaskCommand:
        return CreateTaskCommand(
            title=require_text(payload, "title", self._limits.title, "Task title"),
            description=optional_text(payload, "description", self._limits.description),
            assignee_id=optional_actor_id(payload, "assignee_id") or actor_id,
            programme_id=optional_uuid(payload, "programme_id"),
            status=validate_enum(payload.get("status"), VALID_TASK_STATUSES, "todo"),
            priority=validate_enum(payload.get("priority"), VALID_PRIORITIES, "medium"),
            due_date=optional_date(payload, "due_date"),
            evidence_required=bool(payload.get("evidence_required")),
        )

    async def apply(self, actor_id: str, command: CreateTaskCommand) -> ActionResult:
        task = await self._records.insert_task(
            TaskRecord(
                title=command.title,
                description=command.description,
                status=command.status,
                priority=command.priority,
                due_date=command.due_date,
                programme_id=command.programme_id,
                assignee_id=command.assignee_id,
                created_by=actor_id,
                evidence_required=command.evidence_required,
            )
        )

        await self._secondary(
            "assignment link",
            self._records.insert_assignment(
                AssignmentRecord(
                    task_id=task.id, user_id=command.assignee_id, assigned_by=actor_id
                )
            ),
        )
        await self._audit(
            actor_id,
            "task_created",
            "task",
            task.id,
            {
                "title": task.title,
                "assignee_count": 1,
                "evidence_required": task.evidence_required,
            },
        )

        return ActionResult(
            success=True,
            message=f'Task "{task.title}" created.',
            href=f"/tasks/{task.id}",
        )


class UpdateTaskStatusHandler(ActionHandler):
    action_type = ActionType.UPDATE_TASK_STATUS

    def validate(self, actor_id: str, payload: dict[str, Any]) -> UpdateTaskStatusCommand:
        return UpdateTaskStatusCommand(
            task_id=require_uuid(payload, "task_id"),
            new_status=require_enum(payload, "new_status", VALID_TASK_STATUSES, "status"),
        )

    async def apply(self, actor_id: str, command: UpdateTaskStatusCommand) -> ActionResult:
        current = await self._records.get_task(command.task_id)
        if current is None:
            raise NotFoundError("Task not found")

        await self._records.update_task_status(command.task_id, command.new_status)

        await self._audit(
            actor_id,
            "task_status_updated",
            "task",
            command.task_id,
            {
                "title": current.title,
                "from_status": current.status,
                "to_status": command.new_status,
            },
        )

        return ActionResult(
            success=True,
            message=f'"{current.title}" updated to {command.new_status}.',
            href=f"/tasks/{command.task_id}",
        )
