"""SQLite-backed entity stores touched by confirmed actions.

Each write commits on its own; nothing here spans several records in one
transaction. Lookups by id return ``None`` on a miss.
"""

from __future__ import annotations

import json
from typing import Any

from actionbroker.models.records import (
    AssignmentRecord,
    AuditEntry,
    ProgrammeRecord,
    Role,
    TaskRecord,
)
from actionbroker.store.database import Database, to_db_time

_TASK_COLUMNS = (
    "id, title, description, status, priority, due_date, programme_id, "
    "assignee_id, created_by, evidence_required, created_at"
)
_PROGRAMME_COLUMNS = (
    "id, name, description, status, start_date, end_date, created_by, created_at"
)
_PROGRAMME_FIELDS = frozenset({"name", "description", "status", "start_date", "end_date"})


class RecordStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    # Tasks

    async def insert_task(self, record: TaskRecord) -> TaskRecord:
        await self._db.execute(
            f"INSERT INTO tasks ({_TASK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.title,
                record.description,
                record.status,
                record.priority,
                record.due_date,
                record.programme_id,
                record.assignee_id,
                record.created_by,
                int(record.evidence_required),
                to_db_time(record.created_at),
            ),
        )
        return record

    async def get_task(self, task_id: str) -> TaskRecord | None:
        row = await self._db.fetchone(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,)
        )
        if row is None:
            return None
        return TaskRecord(
            id=row[0],
            title=row[1],
            description=row[2],
            status=row[3],
            priority=row[4],
            due_date=row[5],
            programme_id=row[6],
            assignee_id=row[7],
            created_by=row[8],
            evidence_required=bool(row[9]),
            created_at=row[10],
        )

    async def update_task_status(self, task_id: str, status: str) -> None:
        await self._db.execute(
            "UPDATE tasks SET status = ? WHERE id = ?", (status, task_id)
        )

    async def insert_assignment(self, record: AssignmentRecord) -> None:
        await self._db.execute(
            "INSERT INTO task_assignees (task_id, user_id, assigned_by) VALUES (?, ?, ?)",
            (record.task_id, record.user_id, record.assigned_by),
        )

    async def get_assignments(self, task_id: str) -> list[AssignmentRecord]:
        rows = await self._db.fetchall(
            "SELECT task_id, user_id, assigned_by FROM task_assignees WHERE task_id = ?",
            (task_id,),
        )
        return [AssignmentRecord(task_id=r[0], user_id=r[1], assigned_by=r[2]) for r in rows]

    # Programmes

    async def insert_programme(self, record: ProgrammeRecord) -> ProgrammeRecord:
        await self._db.execute(
            f"INSERT INTO programmes ({_PROGRAMME_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.name,
                record.description,
                record.status,
                record.start_date,
                record.end_date,
                record.created_by,
                to_db_time(record.created_at),
            ),
        )
        return record

    async def get_programme(self, programme_id: str) -> ProgrammeRecord | None:
        row = await self._db.fetchone(
            f"SELECT {_PROGRAMME_COLUMNS} FROM programmes WHERE id = ?", (programme_id,)
        )
        if row is None:
            return None
        return ProgrammeRecord(
            id=row[0],
            name=row[1],
            description=row[2],
            status=row[3],
            start_date=row[4],
            end_date=row[5],
            created_by=row[6],
            created_at=row[7],
        )

    async def update_programme(self, programme_id: str, field: str, value: Any) -> None:
        if field not in _PROGRAMME_FIELDS:
            raise ValueError(f"Unknown programme field: {field}")
        await self._db.execute(
            f"UPDATE programmes SET {field} = ? WHERE id = ?", (value, programme_id)
        )

    async def find_programme_by_name(
        self, name: str, exclude_id: str | None = None
    ) -> ProgrammeRecord | None:
        """Case-insensitive exact name match, optionally ignoring one programme."""
        row = await self._db.fetchone(
            "SELECT id FROM programmes WHERE casefold(name) = casefold(?) AND id != ? LIMIT 1",
            (name, exclude_id or ""),
        )
        if row is None:
            return None
        return await self.get_programme(row[0])

    # Audit

    async def insert_audit_entry(self, entry: AuditEntry) -> None:
        await self._db.execute(
            "INSERT INTO audit_logs (id, user_id, action, entity_type, entity_id, details, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                entry.id,
                entry.user_id,
                entry.action,
                entry.entity_type,
                entry.entity_id,
                json.dumps(entry.details, default=str),
                to_db_time(entry.created_at),
            ),
        )

    async def get_audit_entries(
        self,
        limit: int = 20,
        entity_id: str | None = None,
        action: str | None = None,
    ) -> list[AuditEntry]:
        clauses: list[str] = []
        params: list[Any] = []
        if entity_id is not None:
            clauses.append("entity_id = ?")
            params.append(entity_id)
        if action is not None:
            clauses.append("action = ?")
            params.append(action)
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        rows = await self._db.fetchall(
            "SELECT id, user_id, action, entity_type, entity_id, details, created_at "
            f"FROM audit_logs {where}ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (*params, limit),
        )
        return [
            AuditEntry(
                id=r[0],
                user_id=r[1],
                action=r[2],
                entity_type=r[3],
                entity_id=r[4],
                details=json.loads(r[5] or "{}"),
                created_at=r[6],
            )
            for r in rows
        ]

    # Profiles

    async def get_role(self, actor_id: str) -> Role | None:
        row = await self._db.fetchone(
            "SELECT role FROM profiles WHERE actor_id = ?", (actor_id,)
        )
        if row is None:
            return None
        try:
            return Role[str(row[0]).upper()]
        except KeyError:
            return None

    async def set_role(self, actor_id: str, role: Role) -> None:
        await self._db.execute(
            "INSERT INTO profiles (actor_id, role) VALUES (?, ?) "
            "ON CONFLICT(actor_id) DO UPDATE SET role = excluded.role",
            (actor_id, role.name.lower()),
        )
