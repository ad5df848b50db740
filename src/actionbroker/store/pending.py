"""Pending-action store — what each actor is in the middle of doing.

At most one record per actor is ``pending`` at any time. Expiry is lazy:
an overdue record is flipped to ``expired`` the next time the actor's active
record is looked up, never by a background sweep. Terminal records are only
ever touched again by the retention purge.

Concurrent turns for the same actor are not serialized here; the last
``create``/``update`` wins.
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta

from actionbroker.exceptions import NotFoundError, StalePendingError
from actionbroker.models.pending import PendingAction, PendingStatus, PendingUpdate
from actionbroker.store.database import Clock, Database, to_db_time, utcnow

logger = logging.getLogger(__name__)

PENDING_TTL = timedelta(minutes=5)
RETENTION_WINDOW = timedelta(hours=24)

_COLUMNS = (
    "id, actor_id, status, intent_type, draft_payload, missing_fields, "
    "follow_up_question, created_at, updated_at, expires_at"
)


class PendingActionStore:
    def __init__(
        self,
        db: Database,
        ttl: timedelta = PENDING_TTL,
        retention: timedelta = RETENTION_WINDOW,
        clock: Clock = utcnow,
    ) -> None:
        self._db = db
        self._ttl = ttl
        self._retention = retention
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def get(self, pending_id: str) -> PendingAction | None:
        row = await self._db.fetchone(
            f"SELECT {_COLUMNS} FROM pending_actions WHERE id = ?",
            (pending_id,),
        )
        return _row_to_pending(row) if row else None

    async def get_active(self, actor_id: str) -> PendingAction | None:
        now = to_db_time(self._clock())
        expired = await self._db.execute(
            "UPDATE pending_actions SET status = ?, updated_at = ? "
            "WHERE actor_id = ? AND status = ? AND expires_at < ?",
            (PendingStatus.EXPIRED.value, now, actor_id, PendingStatus.PENDING.value, now),
        )
        if expired:
            logger.info("Expired %d pending action(s) for actor %s", expired, actor_id)

        row = await self._db.fetchone(
            f"SELECT {_COLUMNS} FROM pending_actions "
            "WHERE actor_id = ? AND status = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (actor_id, PendingStatus.PENDING.value),
        )
        return _row_to_pending(row) if row else None

    async def create(
        self,
        actor_id: str,
        intent_type: str,
        draft_payload: dict | None = None,
        missing_fields: list[str] | None = None,
        follow_up_question: str | None = None,
    ) -> PendingAction:
        now = self._clock()
        superseded = await self.cancel_all(actor_id)
        if superseded:
            logger.info(
                "Superseded %d pending action(s) for actor %s", superseded, actor_id
            )

        pending = PendingAction(
            actor_id=actor_id,
            intent_type=intent_type,
            draft_payload=dict(draft_payload or {}),
            missing_fields=list(missing_fields or []),
            follow_up_question=follow_up_question,
            created_at=now,
            updated_at=now,
            expires_at=now + self._ttl,
        )
        await self._db.execute(
            f"INSERT INTO pending_actions ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                pending.id,
                pending.actor_id,
                pending.status.value,
                pending.intent_type,
                json.dumps(pending.draft_payload, default=str),
                json.dumps(pending.missing_fields),
                pending.follow_up_question,
                to_db_time(pending.created_at),
                to_db_time(pending.updated_at),
                to_db_time(pending.expires_at),
            ),
        )
        logger.info(
            "Created pending action %s (%s) for actor %s", pending.id, intent_type, actor_id
        )
        return pending

    async def update(self, pending_id: str, updates: PendingUpdate) -> PendingAction:
        current = await self.get(pending_id)
        if current is None:
            raise NotFoundError(f"Pending action {pending_id} not found")
        if current.status.is_terminal:
            raise StalePendingError(
                f"Pending action {pending_id} is already {current.status.value}",
                pending_id=pending_id,
            )

        now = self._clock()
        if current.expires_at < now:
            await self._transition(pending_id, PendingStatus.EXPIRED)
            raise StalePendingError(
                f"Pending action {pending_id} has expired", pending_id=pending_id
            )

        changes = updates.model_dump(exclude_unset=True)
        # Only the question can be cleared; None elsewhere means "leave as is".
        for key in ("draft_payload", "missing_fields"):
            if changes.get(key, ...) is None:
                del changes[key]
        merged = current.model_copy(
            update={**changes, "updated_at": now, "expires_at": now + self._ttl}
        )
        written = await self._db.execute(
            "UPDATE pending_actions SET draft_payload = ?, missing_fields = ?, "
            "follow_up_question = ?, updated_at = ?, expires_at = ? "
            "WHERE id = ? AND status = ?",
            (
                json.dumps(merged.draft_payload, default=str),
                json.dumps(merged.missing_fields),
                merged.follow_up_question,
                to_db_time(merged.updated_at),
                to_db_time(merged.expires_at),
                pending_id,
                PendingStatus.PENDING.value,
            ),
        )
        if not written:
            raise StalePendingError(
                f"Pending action {pending_id} changed status during update",
                pending_id=pending_id,
            )
        return merged

    async def complete(self, pending_id: str) -> None:
        if await self._transition(pending_id, PendingStatus.COMPLETED):
            logger.info("Completed pending action %s", pending_id)

    async def cancel(self, pending_id: str) -> None:
        if await self._transition(pending_id, PendingStatus.CANCELLED):
            logger.info("Cancelled pending action %s", pending_id)

    async def cancel_all(self, actor_id: str) -> int:
        return await self._db.execute(
            "UPDATE pending_actions SET status = ?, updated_at = ? "
            "WHERE actor_id = ? AND status = ?",
            (
                PendingStatus.CANCELLED.value,
                to_db_time(self._clock()),
                actor_id,
                PendingStatus.PENDING.value,
            ),
        )

    async def purge_old(self, actor_id: str) -> int:
        cutoff = to_db_time(self._clock() - self._retention)
        purged = await self._db.execute(
            "DELETE FROM pending_actions "
            "WHERE actor_id = ? AND status != ? AND updated_at < ?",
            (actor_id, PendingStatus.PENDING.value, cutoff),
        )
        if purged:
            logger.info("Purged %d old pending action(s) for actor %s", purged, actor_id)
        return purged

    async def _transition(self, pending_id: str, status: PendingStatus) -> int:
        # Terminal records are immutable, so repeated calls are no-ops.
        return await self._db.execute(
            "UPDATE pending_actions SET status = ?, updated_at = ? "
            "WHERE id = ? AND status = ?",
            (
                status.value,
                to_db_time(self._clock()),
                pending_id,
                PendingStatus.PENDING.value,
            ),
        )


def _row_to_pending(row: tuple) -> PendingAction:
    return PendingAction(
        id=row[0],
        actor_id=row[1],
        status=PendingStatus(row[2]),
        intent_type=row[3],
        draft_payload=json.loads(row[4] or "{}"),
        missing_fields=json.loads(row[5] or "[]"),
        follow_up_question=row[6],
        created_at=row[7],
        updated_at=row[8],
        expires_at=row[9],
    )
