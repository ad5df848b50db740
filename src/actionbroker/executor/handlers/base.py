"""Abstract base for confirmed-action handlers."""

from __future__ import annotations

import abc
import logging
from typing import Any, Awaitable

from pydantic import BaseModel

from actionbroker.exceptions import PersistenceError
from actionbroker.models.action import ActionResult, ActionType
from actionbroker.models.records import AuditEntry
from actionbroker.store.records import RecordStore
from actionbroker.validation.sanitize import TextLimits

logger = logging.getLogger(__name__)

AUDIT_SOURCE = "assistant"


class ActionHandler(abc.ABC):
    """One handler per action type.

    ``validate`` is pure and runs before anything touches storage; ``apply``
    performs the primary write and any secondary writes.
    """

    action_type: ActionType

    def __init__(self, records: RecordStore, limits: TextLimits | None = None) -> None:
        self._records = records
        self._limits = limits or TextLimits()

    @abc.abstractmethod
    def validate(self, actor_id: str, payload: dict[str, Any]) -> BaseModel:
        ...  # pragma: no cover

    @abc.abstractmethod
    async def apply(self, actor_id: str, command: BaseModel) -> ActionResult:
        ...  # pragma: no cover

    async def _secondary(self, what: str, write: Awaitable[None]) -> bool:
        """Await a secondary write; failures are logged, never raised."""
        try:
            await write
        except PersistenceError as exc:
            logger.warning("%s: %s write failed: %s", self.action_type.value, what, exc)
            return False
        return True

    async def _audit(
        self,
        actor_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        details: dict[str, Any],
    ) -> bool:
        entry = AuditEntry(
            user_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details={**details, "source": AUDIT_SOURCE},
        )
        return await self._secondary("audit entry", self._records.insert_audit_entry(entry))
