"""Conversation broker — wires pending state, confirmation and telemetry per turn."""

from __future__ import annotations

import logging
from typing import Any

from actionbroker.exceptions import BrokerError, NotFoundError
from actionbroker.executor.action_executor import GENERIC_FAILURE_MESSAGE, ConfirmationExecutor
from actionbroker.models.action import ActionRequest, ActionResult
from actionbroker.models.intent import ClassifiedIntent, TurnOutcome
from actionbroker.models.pending import PendingAction, PendingUpdate
from actionbroker.observability.telemetry import TelemetrySink
from actionbroker.prompts import field_label, follow_up_question, preview_message
from actionbroker.store.pending import PendingActionStore

logger = logging.getLogger(__name__)


class ConversationBroker:
    def __init__(
        self,
        store: PendingActionStore,
        executor: ConfirmationExecutor,
        telemetry: TelemetrySink,
    ) -> None:
        self._store = store
        self._executor = executor
        self._telemetry = telemetry

    async def active(self, actor_id: str) -> PendingAction | None:
        return await self._store.get_active(actor_id)

    async def begin(self, actor_id: str, intent: ClassifiedIntent) -> TurnOutcome:
        """Start a new intent, superseding whatever the actor had pending."""
        await self._purge_quietly(actor_id)

        missing = [f for f in intent.missing_fields if f]
        question = None
        if missing:
            question = intent.follow_up_question or follow_up_question(missing[0])

        pending = await self._store.create(
            actor_id,
            intent.intent_type,
            intent.draft_payload,
            missing,
            question,
        )
        if missing:
            return TurnOutcome(
                pending=pending,
                ready=False,
                message=question or "",
                waiting_for=field_label(missing[0]),
            )

        await self._telemetry.action_previewed(actor_id, intent.intent_type)
        return TurnOutcome(
            pending=pending, ready=True, message=preview_message(intent.intent_type)
        )

    async def fill(self, actor_id: str, field: str, value: Any) -> TurnOutcome:
        pending = await self._require_active(actor_id)
        payload = {**pending.draft_payload, field: value}
        missing = [f for f in pending.missing_fields if f != field]
        return await self._advance(pending, payload, missing)

    async def skip(self, actor_id: str) -> TurnOutcome:
        """Drop the next missing field without supplying a value."""
        pending = await self._require_active(actor_id)
        return await self._advance(
            pending, pending.draft_payload, pending.missing_fields[1:]
        )

    async def correct(self, actor_id: str, corrections: dict[str, Any]) -> TurnOutcome:
        pending = await self._require_active(actor_id)
        payload = {**pending.draft_payload, **corrections}
        missing = [f for f in pending.missing_fields if f not in corrections]
        return await self._advance(pending, payload, missing)

    async def abort(self, actor_id: str) -> bool:
        pending = await self._store.get_active(actor_id)
        if pending is None:
            return False
        await self._store.cancel(pending.id)
        return True

    async def reset(self, actor_id: str) -> int:
        cleaned = await self._store.cancel_all(actor_id)
        if cleaned:
            await self._telemetry.pending_cleaned(actor_id, cleaned)
        return cleaned

    async def confirm(self, actor_id: str, request: ActionRequest) -> ActionResult:
        try:
            result = await self._executor.execute(actor_id, request)
        except Exception as exc:
            logger.exception("Unexpected error confirming %s", request.action_type)
            result = ActionResult(success=False, message=GENERIC_FAILURE_MESSAGE, error=str(exc))
            await self._telemetry.error(actor_id, str(exc), context=f"confirm:{request.action_type}")

        if result.success:
            await self._telemetry.action_confirmed(actor_id, request.action_type)
            await self._retire_active(actor_id)
        else:
            await self._telemetry.action_failed(
                actor_id, request.action_type or "unknown", result.error or "unknown"
            )
        return result

    async def _advance(
        self, pending: PendingAction, payload: dict[str, Any], missing: list[str]
    ) -> TurnOutcome:
        if missing:
            question = follow_up_question(missing[0])
            updated = await self._store.update(
                pending.id,
                PendingUpdate(
                    draft_payload=payload, missing_fields=missing, follow_up_question=question
                ),
            )
            return TurnOutcome(
                pending=updated,
                ready=False,
                message=question,
                waiting_for=field_label(missing[0]),
            )

        updated = await self._store.update(
            pending.id,
            PendingUpdate(draft_payload=payload, missing_fields=[], follow_up_question=None),
        )
        await self._telemetry.action_previewed(updated.actor_id, updated.intent_type)
        return TurnOutcome(
            pending=updated, ready=True, message=preview_message(updated.intent_type)
        )

    async def _require_active(self, actor_id: str) -> PendingAction:
        pending = await self._store.get_active(actor_id)
        if pending is None:
            raise NotFoundError("Nothing is waiting for more information.")
        return pending

    async def _retire_active(self, actor_id: str) -> None:
        try:
            pending = await self._store.get_active(actor_id)
            if pending is not None:
                await self._store.complete(pending.id)
        except BrokerError as exc:
            logger.warning("Could not complete pending action for actor %s: %s", actor_id, exc)

    async def _purge_quietly(self, actor_id: str) -> None:
        try:
            await self._store.purge_old(actor_id)
        except BrokerError as exc:
            logger.warning("Purge of old pending actions failed for actor %s: %s", actor_id, exc)
