"""Follow-up questions and labels shown while slot-filling."""

from __future__ import annotations

FOLLOW_UP_QUESTIONS: dict[str, str] = {
    "title": "What should the task be called?",
    "task_id": "Which task do you want to update?",
    "new_status": "What status? Options: todo, in progress, done, blocked.",
    "name": "What should the programme be called?",
    "programme_id": "Which programme?",
    "priority": 'What priority? (low / medium / high / urgent) or say "skip"',
    "due_date": 'When is it due? (e.g. 2026-03-15) or say "skip"',
    "assignee_id": 'Who should this be assigned to? Or say "skip"',
    "description": 'Brief description, or say "skip"',
    "start_date": 'Start date? (e.g. 2026-03-01) or say "skip"',
    "end_date": 'End date? (e.g. 2026-06-30) or say "skip"',
    "update_field": "Which field? Options: name, description, start_date, end_date.",
    "update_value": "What should the new value be?",
}

FIELD_LABELS: dict[str, str] = {
    "title": "Task title",
    "task_id": "Task",
    "new_status": "Status",
    "name": "Programme name",
    "programme_id": "Programme",
    "priority": "Priority",
    "due_date": "Due date",
    "assignee_id": "Assignee",
    "description": "Description",
    "start_date": "Start date",
    "end_date": "End date",
    "update_field": "Field to update",
    "update_value": "New value",
}

PREVIEW_LABELS: dict[str, str] = {
    "create_task": "create this task",
    "update_task_status": "update this task's status",
    "create_programme": "create this programme",
    "update_programme_status": "update this programme's status",
    "update_programme_fields": "update this programme",
}


def follow_up_question(field: str) -> str:
    return FOLLOW_UP_QUESTIONS.get(field, f"What is the {field}?")


def field_label(field: str) -> str:
    return FIELD_LABELS.get(field, field)


def preview_message(intent_type: str) -> str:
    label = PREVIEW_LABELS.get(intent_type, intent_type.replace("_", " "))
    return f"Ready to {label}. Confirm to apply."
