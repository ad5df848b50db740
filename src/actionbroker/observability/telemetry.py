"""Telemetry events for assistant interactions.

Events land in the audit log with ``details.source = "telemetry"``. Emitting
is fire-and-forget: a failure is logged and never reaches the caller.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from actionbroker.models.records import AuditEntry
from actionbroker.store.records import RecordStore

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    ACTION_PREVIEWED = "action_previewed"
    ACTION_CONFIRMED = "action_confirmed"
    ACTION_FAILED = "action_failed"
    PENDING_CLEANED = "pending_cleaned"
    ERROR = "error"


class TelemetrySink:
    def __init__(self, records: RecordStore) -> None:
        self._records = records

    async def emit(
        self,
        actor_id: str,
        event_type: EventType,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        entry = AuditEntry(
            user_id=actor_id,
            action=f"assistant_{event_type.value}",
            entity_type="assistant",
            details={"source": "telemetry", "event_type": event_type.value, **(metadata or {})},
        )
        try:
            await self._records.insert_audit_entry(entry)
        except Exception as exc:
            logger.warning("Failed to emit telemetry event %s: %s", event_type.value, exc)

    async def action_previewed(self, actor_id: str, action_type: str) -> None:
        await self.emit(actor_id, EventType.ACTION_PREVIEWED, {"action_type": action_type})

    async def action_confirmed(self, actor_id: str, action_type: str) -> None:
        await self.emit(actor_id, EventType.ACTION_CONFIRMED, {"action_type": action_type})

    async def action_failed(self, actor_id: str, action_type: str, error: str) -> None:
        await self.emit(
            actor_id, EventType.ACTION_FAILED, {"action_type": action_type, "error": error}
        )

    async def pending_cleaned(self, actor_id: str, count: int) -> None:
        await self.emit(actor_id, EventType.PENDING_CLEANED, {"cleaned_count": count})

    async def error(self, actor_id: str, message: str, context: str | None = None) -> None:
        await self.emit(actor_id, EventType.ERROR, {"error": message, "context": context})
