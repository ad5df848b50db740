"""Confirmation executor — validates and applies one confirmed action.

The payload is re-validated from scratch on every call; whatever a pending
record held earlier is not trusted. Each attempt moves through
received -> validating -> authorized -> executing -> applied, stopping at
rejected or failed on error. Every path ends in an ``ActionResult``.
"""

from __future__ import annotations

import logging

from actionbroker.exceptions import BrokerError, ErrorKind, InvalidInputError
from actionbroker.executor.handlers.base import ActionHandler
from actionbroker.executor.handlers.programmes import (
    CreateProgrammeHandler,
    UpdateProgrammeFieldsHandler,
    UpdateProgrammeStatusHandler,
)
from actionbroker.executor.handlers.tasks import CreateTaskHandler, UpdateTaskStatusHandler
from actionbroker.models.action import ActionRequest, ActionResult, ActionType
from actionbroker.policy.role_gate import RoleGate
from actionbroker.store.records import RecordStore
from actionbroker.validation.sanitize import TextLimits

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Something went wrong executing the action."

_HANDLER_MAP: dict[ActionType, type[ActionHandler]] = {
    ActionType.CREATE_TASK: CreateTaskHandler,
    ActionType.UPDATE_TASK_STATUS: UpdateTaskStatusHandler,
    ActionType.CREATE_PROGRAMME: CreateProgrammeHandler,
    ActionType.UPDATE_PROGRAMME_STATUS: UpdateProgrammeStatusHandler,
    ActionType.UPDATE_PROGRAMME_FIELDS: UpdateProgrammeFieldsHandler,
}


def parse_action_type(value: str) -> ActionType:
    if not value or not value.strip():
        raise InvalidInputError("Missing actionType")
    try:
        return ActionType(value.strip())
    except ValueError:
        raise InvalidInputError(f"Unknown action: {value}") from None


def failure_result(exc: BrokerError) -> ActionResult:
    message = GENERIC_FAILURE_MESSAGE if exc.kind is ErrorKind.PERSISTENCE else str(exc)
    return ActionResult(
        success=False,
        message=message,
        error=str(exc),
        error_kind=exc.kind,
    )


class ConfirmationExecutor:
    def __init__(
        self,
        records: RecordStore,
        gate: RoleGate | None = None,
        limits: TextLimits | None = None,
    ) -> None:
        self._records = records
        self._gate = gate or RoleGate(records)
        self._limits = limits or TextLimits()
        self._handlers: dict[ActionType, ActionHandler] = {}

    def _get_handler(self, action_type: ActionType) -> ActionHandler:
        if action_type not in self._handlers:
            handler_cls = _HANDLER_MAP.get(action_type)
            if handler_cls is None:
                raise InvalidInputError(f"No handler registered for {action_type.value}")
            self._handlers[action_type] = handler_cls(self._records, self._limits)
        return self._handlers[action_type]

    async def execute(self, actor_id: str, request: ActionRequest) -> ActionResult:
        logger.debug("received %s for actor %s", request.action_type, actor_id)
        stage = "validating"
        try:
            action_type = parse_action_type(request.action_type)
            handler = self._get_handler(action_type)
            command = handler.validate(actor_id, request.payload)

            await self._gate.authorize(actor_id, action_type)
            stage = "executing"
            logger.debug("authorized %s for actor %s", action_type.value, actor_id)

            result = await handler.apply(actor_id, command)
        except BrokerError as exc:
            outcome = "failed" if stage == "executing" else "rejected"
            logger.debug("%s %s: %s", outcome, request.action_type, exc)
            return failure_result(exc)

        logger.debug("applied %s for actor %s", action_type.value, actor_id)
        return result
