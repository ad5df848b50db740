"""Tests for the conversation broker and the end-to-end confirmation flow."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from actionbroker.broker import ConversationBroker
from actionbroker.exceptions import ErrorKind, NotFoundError, PersistenceError
from actionbroker.executor.action_executor import GENERIC_FAILURE_MESSAGE
from actionbroker.models.action import ActionRequest
from actionbroker.models.intent import ClassifiedIntent
from actionbroker.models.pending import PendingStatus
from actionbroker.models.records import ProgrammeRecord
from actionbroker.observability.telemetry import TelemetrySink


def _intent(intent_type="create_task", payload=None, missing=None, question=None):
    return ClassifiedIntent(
        intent_type=intent_type,
        draft_payload=payload or {},
        missing_fields=missing or [],
        follow_up_question=question,
    )


async def _telemetry_actions(records) -> list[str]:
    entries = await records.get_audit_entries(limit=100)
    return [e.action for e in entries if e.entity_type == "assistant"]


class TestBegin:
    @pytest.mark.asyncio
    async def test_missing_fields_asks_follow_up(self, broker):
        outcome = await broker.begin("u1", _intent(missing=["title", "priority"]))
        assert outcome.ready is False
        assert outcome.message == "What should the task be called?"
        assert outcome.waiting_for == "Task title"
        assert outcome.pending.missing_fields == ["title", "priority"]
        assert outcome.pending.follow_up_question == outcome.message

    @pytest.mark.asyncio
    async def test_classifier_question_wins(self, broker):
        outcome = await broker.begin(
            "u1", _intent(missing=["assignee_id"], question="Who gets this one?")
        )
        assert outcome.message == "Who gets this one?"

    @pytest.mark.asyncio
    async def test_complete_intent_is_ready(self, broker, records):
        outcome = await broker.begin("u1", _intent(payload={"title": "Plan"}))
        assert outcome.ready is True
        assert outcome.message == "Ready to create this task. Confirm to apply."
        assert outcome.waiting_for is None
        assert await _telemetry_actions(records) == ["assistant_action_previewed"]

    @pytest.mark.asyncio
    async def test_supersedes_previous(self, broker, pending_store):
        first = await broker.begin("u1", _intent(missing=["title"]))
        second = await broker.begin("u1", _intent("create_programme", missing=["name"]))

        assert (await pending_store.get(first.pending.id)).status is PendingStatus.CANCELLED
        assert (await broker.active("u1")).id == second.pending.id

    @pytest.mark.asyncio
    async def test_purges_old_terminal_records(self, broker, pending_store, clock):
        old = await pending_store.create("u1", "create_task")
        await pending_store.cancel(old.id)
        clock.advance(hours=25)

        await broker.begin("u1", _intent(missing=["title"]))
        assert await pending_store.get(old.id) is None

    @pytest.mark.asyncio
    async def test_purge_failure_does_not_block(self, broker, pending_store):
        with patch.object(
            pending_store, "purge_old", AsyncMock(side_effect=PersistenceError("down"))
        ):
            outcome = await broker.begin("u1", _intent(missing=["title"]))
        assert outcome.pending is not None


class TestSlotFilling:
    @pytest.mark.asyncio
    async def test_fill_moves_to_next_field(self, broker):
        await broker.begin("u1", _intent(missing=["title", "priority"]))
        outcome = await broker.fill("u1", "title", "Plan")

        assert outcome.ready is False
        assert outcome.waiting_for == "Priority"
        assert outcome.message.startswith("What priority?")
        assert outcome.pending.draft_payload == {"title": "Plan"}
        assert outcome.pending.missing_fields == ["priority"]

    @pytest.mark.asyncio
    async def test_fill_last_field_is_ready(self, broker, records):
        await broker.begin("u1", _intent(missing=["title"]))
        outcome = await broker.fill("u1", "title", "Plan")

        assert outcome.ready is True
        assert outcome.pending.missing_fields == []
        assert outcome.pending.follow_up_question is None
        assert "assistant_action_previewed" in await _telemetry_actions(records)

    @pytest.mark.asyncio
    async def test_fill_extends_expiry(self, broker, clock):
        started = await broker.begin("u1", _intent(missing=["title", "priority"]))
        clock.advance(minutes=4)
        outcome = await broker.fill("u1", "title", "Plan")
        assert outcome.pending.expires_at > started.pending.expires_at

    @pytest.mark.asyncio
    async def test_skip_drops_next_field(self, broker):
        await broker.begin("u1", _intent(payload={"title": "Plan"}, missing=["due_date"]))
        outcome = await broker.skip("u1")
        assert outcome.ready is True
        assert "due_date" not in outcome.pending.draft_payload

    @pytest.mark.asyncio
    async def test_correct_overrides_draft(self, broker):
        await broker.begin("u1", _intent(payload={"title": "Plan"}, missing=["priority"]))
        outcome = await broker.correct("u1", {"title": "Plan B", "priority": "high"})
        assert outcome.ready is True
        assert outcome.pending.draft_payload == {"title": "Plan B", "priority": "high"}

    @pytest.mark.asyncio
    async def test_nothing_active(self, broker):
        with pytest.raises(NotFoundError):
            await broker.fill("u1", "title", "Plan")
        with pytest.raises(NotFoundError):
            await broker.skip("u1")

    @pytest.mark.asyncio
    async def test_expired_record_cannot_be_filled(self, broker, clock):
        await broker.begin("u1", _intent(missing=["title"]))
        clock.advance(minutes=6)
        with pytest.raises(NotFoundError):
            await broker.fill("u1", "title", "Plan")


class TestAbortAndReset:
    @pytest.mark.asyncio
    async def test_abort(self, broker, pending_store):
        started = await broker.begin("u1", _intent(missing=["title"]))
        assert await broker.abort("u1") is True
        assert (await pending_store.get(started.pending.id)).status is PendingStatus.CANCELLED
        assert await broker.abort("u1") is False

    @pytest.mark.asyncio
    async def test_reset_emits_cleanup(self, broker, records):
        await broker.begin("u1", _intent(missing=["title"]))
        assert await broker.reset("u1") == 1
        assert "assistant_pending_cleaned" in await _telemetry_actions(records)

    @pytest.mark.asyncio
    async def test_reset_with_nothing(self, broker, records):
        assert await broker.reset("u1") == 0
        assert await _telemetry_actions(records) == []


class TestConfirm:
    @pytest.mark.asyncio
    async def test_success_completes_pending(self, broker, pending_store, records):
        started = await broker.begin("u1", _intent(payload={"title": "Plan"}))
        result = await broker.confirm(
            "u1", ActionRequest(action_type="create_task", payload={"title": "Plan"})
        )
        assert result.success is True
        assert (await pending_store.get(started.pending.id)).status is PendingStatus.COMPLETED
        assert await broker.active("u1") is None
        assert "assistant_action_confirmed" in await _telemetry_actions(records)

    @pytest.mark.asyncio
    async def test_failure_leaves_pending(self, broker, records):
        started = await broker.begin("u1", _intent(payload={"title": "Plan"}))
        result = await broker.confirm(
            "u1", ActionRequest(action_type="create_task", payload={"title": ""})
        )
        assert result.success is False
        assert (await broker.active("u1")).id == started.pending.id

        failed = await records.get_audit_entries(action="assistant_action_failed")
        assert failed[0].details["error"] == "Task title is required"

    @pytest.mark.asyncio
    async def test_confirm_uses_submitted_payload_not_draft(self, broker, records):
        await broker.begin("u1", _intent(payload={"title": "Draft title"}))
        result = await broker.confirm(
            "u1", ActionRequest(action_type="create_task", payload={"title": "Final title"})
        )
        task = await records.get_task(result.href.removeprefix("/tasks/"))
        assert task.title == "Final title"

    @pytest.mark.asyncio
    async def test_confirm_without_pending_record(self, broker):
        result = await broker.confirm(
            "u1", ActionRequest(action_type="create_task", payload={"title": "Plan"})
        )
        assert result.success is True

    @pytest.mark.asyncio
    async def test_missing_action_type_reported_as_unknown(self, broker, records):
        result = await broker.confirm("u1", ActionRequest(action_type="", payload={}))
        assert result.error_kind is ErrorKind.INVALID_INPUT
        failed = (await records.get_audit_entries(action="assistant_action_failed"))[0]
        assert failed.details["action_type"] == "unknown"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_generic_failure(self, broker, executor):
        with patch.object(executor, "execute", AsyncMock(side_effect=RuntimeError("boom"))):
            result = await broker.confirm(
                "u1", ActionRequest(action_type="create_task", payload={"title": "Plan"})
            )
        assert result.success is False
        assert result.message == GENERIC_FAILURE_MESSAGE

    @pytest.mark.asyncio
    async def test_unexpected_exception_emits_error_event(self, broker, executor, records):
        with patch.object(executor, "execute", AsyncMock(side_effect=RuntimeError("boom"))):
            await broker.confirm(
                "u1", ActionRequest(action_type="create_task", payload={"title": "Plan"})
            )
        errors = await records.get_audit_entries(action="assistant_error")
        assert errors[0].details["error"] == "boom"
        assert errors[0].details["context"] == "confirm:create_task"

    @pytest.mark.asyncio
    async def test_telemetry_failure_does_not_change_result(self, pending_store, executor):
        broken = MagicMock()
        broken.insert_audit_entry = AsyncMock(side_effect=PersistenceError("down"))
        broker = ConversationBroker(pending_store, executor, TelemetrySink(broken))

        result = await broker.confirm(
            "u1", ActionRequest(action_type="create_task", payload={"title": "Plan"})
        )
        assert result.success is True

    @pytest.mark.asyncio
    async def test_retire_failure_still_success(self, broker, pending_store):
        await broker.begin("u1", _intent(payload={"title": "Plan"}))
        with patch.object(
            pending_store, "complete", AsyncMock(side_effect=PersistenceError("down"))
        ):
            result = await broker.confirm(
                "u1", ActionRequest(action_type="create_task", payload={"title": "Plan"})
            )
        assert result.success is True


class TestEndToEndScenarios:
    @pytest.mark.asyncio
    async def test_incomplete_intent_is_stored(self, pending_store):
        await pending_store.create("u1", "create_task", {"title": ""}, ["assignee_id"])
        active = await pending_store.get_active("u1")
        assert active is not None
        assert active.status is PendingStatus.PENDING

    @pytest.mark.asyncio
    async def test_new_intent_cancels_previous_then_confirm_completes(
        self, broker, pending_store, records
    ):
        first = await pending_store.create("u1", "create_task", {"title": ""}, ["assignee_id"])
        payload = {"title": "Write report", "assignee_id": "u2"}
        second = await pending_store.create("u1", "create_task", payload, [])

        assert (await pending_store.get(first.id)).status is PendingStatus.CANCELLED
        assert (await pending_store.get_active("u1")).id == second.id

        result = await broker.confirm(
            "u1", ActionRequest(action_type="create_task", payload=payload)
        )
        assert result.success is True

        task_id = result.href.removeprefix("/tasks/")
        assert (await records.get_task(task_id)).assignee_id == "u2"
        assert [l.user_id for l in await records.get_assignments(task_id)] == ["u2"]
        audit = await records.get_audit_entries(entity_id=task_id)
        assert [e.action for e in audit] == ["task_created"]

        assert (await pending_store.get(second.id)).status is PendingStatus.COMPLETED
        assert (await pending_store.get(first.id)).status is PendingStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_bogus_programme_status_rejected_before_storage(
        self, broker, records, roles, programme
    ):
        with (
            patch.object(records, "get_role", AsyncMock()) as get_role,
            patch.object(records, "get_programme", AsyncMock()) as get_programme,
        ):
            result = await broker.confirm(
                roles["manager"],
                ActionRequest(
                    action_type="update_programme_status",
                    payload={"programme_id": programme.id, "new_status": "bogus"},
                ),
            )
        assert result.success is False
        get_role.assert_not_called()
        get_programme.assert_not_called()
        assert (await records.get_programme(programme.id)).status == "draft"

    @pytest.mark.asyncio
    async def test_waiting_past_ttl_expires(self, pending_store, clock):
        created = await pending_store.create(
            "u1", "create_task", {"title": ""}, ["assignee_id"]
        )
        clock.advance(minutes=5, seconds=1)

        assert await pending_store.get_active("u1") is None
        assert (await pending_store.get(created.id)).status is PendingStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_rename_collision_is_conflict(self, broker, records, roles, programme):
        other = await records.insert_programme(ProgrammeRecord(name="Sabitek", created_by="x"))
        result = await broker.confirm(
            roles["manager"],
            ActionRequest(
                action_type="update_programme_fields",
                payload={
                    "programme_id": other.id,
                    "update_field": "name",
                    "update_value": "YOUTH TECH TRAINING",
                },
            ),
        )
        assert result.success is False
        assert result.error_kind is ErrorKind.CONFLICT
        assert (await records.get_programme(other.id)).name == "Sabitek"
        assert (await records.get_programme(programme.id)).name == "Youth Tech Training"
