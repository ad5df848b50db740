"""Tests for pydantic models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from actionbroker.exceptions import ErrorKind
from actionbroker.models.action import ActionRequest, ActionResult, ActionType
from actionbroker.models.intent import ClassifiedIntent, TurnOutcome
from actionbroker.models.pending import PendingAction, PendingStatus, PendingUpdate
from actionbroker.models.records import AuditEntry, ProgrammeRecord, Role, TaskRecord
from actionbroker.validation.sanitize import parse_uuid


class TestPendingModels:
    def test_pending_defaults(self):
        expires = datetime.now(timezone.utc) + timedelta(minutes=5)
        p = PendingAction(actor_id="u1", intent_type="create_task", expires_at=expires)
        assert p.status is PendingStatus.PENDING
        assert p.draft_payload == {}
        assert p.missing_fields == []
        assert p.follow_up_question is None
        assert parse_uuid(p.id) == p.id

    def test_terminal_statuses(self):
        assert PendingStatus.PENDING.is_terminal is False
        assert PendingStatus.COMPLETED.is_terminal is True
        assert PendingStatus.CANCELLED.is_terminal is True
        assert PendingStatus.EXPIRED.is_terminal is True

    def test_update_tracks_explicit_none(self):
        update = PendingUpdate(follow_up_question=None)
        assert update.model_dump(exclude_unset=True) == {"follow_up_question": None}

    def test_update_empty_dump(self):
        assert PendingUpdate().model_dump(exclude_unset=True) == {}


class TestActionModels:
    def test_action_type_values(self):
        assert {t.value for t in ActionType} == {
            "create_task",
            "update_task_status",
            "create_programme",
            "update_programme_status",
            "update_programme_fields",
        }

    def test_request_accepts_unknown_type(self):
        req = ActionRequest(action_type="delete_everything")
        assert req.payload == {}

    def test_result_defaults(self):
        r = ActionResult(success=True, message="done")
        assert r.href is None
        assert r.error is None
        assert r.error_kind is None

    def test_result_error_kind(self):
        r = ActionResult(success=False, message="nope", error_kind=ErrorKind.CONFLICT)
        assert r.error_kind is ErrorKind.CONFLICT


class TestIntentModels:
    def test_classified_intent_defaults(self):
        intent = ClassifiedIntent(intent_type="create_task")
        assert intent.missing_fields == []
        assert intent.follow_up_question is None

    def test_turn_outcome_defaults(self):
        outcome = TurnOutcome()
        assert outcome.pending is None
        assert outcome.ready is False


class TestRecordModels:
    def test_task_defaults(self):
        t = TaskRecord(title="Write report", assignee_id="u2", created_by="u1")
        assert t.status == "todo"
        assert t.priority == "medium"
        assert t.evidence_required is False

    def test_programme_defaults(self):
        p = ProgrammeRecord(name="Pilot", created_by="u1")
        assert p.status == "draft"
        assert p.start_date is None

    def test_audit_entry_defaults(self):
        a = AuditEntry(user_id="u1", action="task_created", entity_type="task")
        assert a.details == {}
        assert a.created_at is not None

    def test_role_ordering(self):
        assert Role.MEMBER < Role.MANAGER < Role.ADMIN
