"""Programme handlers — manager-only writes on programmes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from actionbroker.exceptions import ConflictError, InvalidInputError, NotFoundError
from actionbroker.executor.handlers.base import ActionHandler
from actionbroker.models.action import ActionResult, ActionType
from actionbroker.models.records import ProgrammeRecord
from actionbroker.validation.sanitize import (
    VALID_PROGRAMME_FIELDS,
    VALID_PROGRAMME_STATUSES,
    is_valid_iso_date,
    optional_date,
    optional_text,
    require_enum,
    require_text,
    require_uuid,
    sanitize_text,
    validate_enum,
)

FIELD_LABELS: dict[str, str] = {
    "name": "name",
    "description": "description",
    "start_date": "start date",
    "end_date": "end date",
}


class CreateProgrammeCommand(BaseModel):
    name: str
    description: str | None = None
    status: str = "draft"
    start_date: str | None = None
    end_date: str | None = None


class UpdateProgrammeStatusCommand(BaseModel):
    programme_id: str
    new_status: str


class UpdateProgrammeFieldsCommand(BaseModel):
    programme_id: str
    update_field: str
    update_value: str
    programme_name: str | None = None


class CreateProgrammeHandler(ActionHandler):
    action_type = ActionType.CREATE_PROGRAMME

    def validate(self, actor_id: str, payload: dict[str, Any]) -> CreateProgrammeCommand:
        return CreateProgrammeCommand(
            name=require_text(payload, "name", self._limits.title, "Programme name"),
            description=optional_text(payload, "description", self._limits.description),
            status=validate_enum(payload.get("status"), VALID_PROGRAMME_STATUSES, "draft"),
            start_date=optional_date(payload, "start_date"),
            end_date=optional_date(payload, "end_date"),
        )

    async def apply(self, actor_id: str, command: CreateProgrammeCommand) -> ActionResult:
        programme = await self._records.insert_programme(
            ProgrammeRecord(
                name=command.name,
                description=command.description,
                status=command.status,
                start_date=command.start_date,
                end_date=command.end_date,
                created_by=actor_id,
            )
        )

        await self._audit(
            actor_id, "programme_created", "programme", programme.id, {"name": programme.name}
        )

        return ActionResult(
            success=True,
            message=f'Programme "{programme.name}" created.',
            href=f"/programmes/{programme.id}",
        )


class UpdateProgrammeStatusHandler(ActionHandler):
    action_type = ActionType.UPDATE_PROGRAMME_STATUS

    def validate(self, actor_id: str, payload: dict[str, Any]) -> UpdateProgrammeStatusCommand:
        return UpdateProgrammeStatusCommand(
            programme_id=require_uuid(payload, "programme_id"),
            new_status=require_enum(payload, "new_status", VALID_PROGRAMME_STATUSES, "status"),
        )

    async def apply(self, actor_id: str, command: UpdateProgrammeStatusCommand) -> ActionResult:
        current = await self._records.get_programme(command.programme_id)
        if current is None:
            raise NotFoundError("Programme not found")

        await self._records.update_programme(command.programme_id, "status", command.new_status)

        await self._audit(
            actor_id,
            "programme_status_updated",
            "programme",
            command.programme_id,
            {
                "name": current.name,
                "from_status": current.status,
                "to_status": command.new_status,
            },
        )

        return ActionResult(
            success=True,
            message=f'"{current.name}" updated to {command.new_status}.',
            href=f"/programmes/{command.programme_id}",
        )


class UpdateProgrammeFieldsHandler(ActionHandler):
    action_type = ActionType.UPDATE_PROGRAMME_FIELDS

    def validate(self, actor_id: str, payload: dict[str, Any]) -> UpdateProgrammeFieldsCommand:
        programme_id = require_uuid(payload, "programme_id")
        field = require_enum(payload, "update_field", VALID_PROGRAMME_FIELDS, "field")

        raw_value = payload.get("update_value")
        if field in ("start_date", "end_date"):
            if not is_valid_iso_date(raw_value):
                raise InvalidInputError("Invalid date format. Use YYYY-MM-DD.")
            value = str(raw_value).strip()
        elif field == "name":
            value = sanitize_text(raw_value, self._limits.title)
        else:
            value = sanitize_text(raw_value, self._limits.description)

        if not value:
            raise InvalidInputError("update_value is required")

        return UpdateProgrammeFieldsCommand(
            programme_id=programme_id,
            update_field=field,
            update_value=value,
            programme_name=sanitize_text(payload.get("programme_name"), self._limits.title) or None,
        )

    async def apply(self, actor_id: str, command: UpdateProgrammeFieldsCommand) -> ActionResult:
        current = await self._records.get_programme(command.programme_id)
        if current is None:
            raise NotFoundError("Programme not found")

        if command.update_field == "name":
            clash = await self._records.find_programme_by_name(
                command.update_value, exclude_id=command.programme_id
            )
            if clash is not None:
                raise ConflictError(
                    f'A programme named "{command.update_value}" already exists.'
                )

        old_value = getattr(current, command.update_field)
        await self._records.update_programme(
            command.programme_id, command.update_field, command.update_value
        )

        await self._audit(
            actor_id,
            "programme_field_updated",
            "programme",
            command.programme_id,
            {
                "name": current.name,
                "field": command.update_field,
                "from": old_value,
                "to": command.update_value,
            },
        )

        label = FIELD_LABELS.get(command.update_field, command.update_field)
        return ActionResult(
            success=True,
            message=(
                f'"{command.programme_name or current.name}" {label} '
                f'updated to "{command.update_value}".'
            ),
            href=f"/programmes/{command.programme_id}",
        )
