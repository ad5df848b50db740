"""SQLite CREATE TABLE statements."""

from __future__ import annotations

TABLES: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS pending_actions (
        id TEXT PRIMARY KEY,
        actor_id TEXT NOT NULL,
        status TEXT NOT NULL,
        intent_type TEXT NOT NULL,
        draft_payload TEXT NOT NULL DEFAULT '{}',
        missing_fields TEXT NOT NULL DEFAULT '[]',
        follow_up_question TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        expires_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_pending_actor_status
        ON pending_actions (actor_id, status)
    """,
    """
    CREATE TABLE IF NOT EXISTS profiles (
        actor_id TEXT PRIMARY KEY,
        role TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS programmes (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        status TEXT NOT NULL,
        start_date TEXT,
        end_date TEXT,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT,
        status TEXT NOT NULL,
        priority TEXT NOT NULL,
        due_date TEXT,
        programme_id TEXT,
        assignee_id TEXT NOT NULL,
        created_by TEXT NOT NULL,
        evidence_required INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        FOREIGN KEY (programme_id) REFERENCES programmes(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS task_assignees (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        assigned_by TEXT NOT NULL,
        FOREIGN KEY (task_id) REFERENCES tasks(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS audit_logs (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        action TEXT NOT NULL,
        entity_type TEXT NOT NULL,
        entity_id TEXT,
        details TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
]
