"""Input sanitization and validation shared by every action handler.

Everything coming out of a conversation is untrusted: free text is stripped
of markup and control characters and capped, references must match a strict
identifier format before any lookup, enums are checked against fixed
allow-lists and dates must name a real calendar day.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from actionbroker.exceptions import InvalidInputError

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000

VALID_TASK_STATUSES: tuple[str, ...] = ("todo", "in_progress", "pending_review", "done", "blocked")
VALID_PROGRAMME_STATUSES: tuple[str, ...] = ("draft", "active", "paused", "completed", "archived")
VALID_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")
VALID_PROGRAMME_FIELDS: tuple[str, ...] = ("name", "description", "start_date", "end_date")

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[a-z]+;", re.IGNORECASE)
# \t, \n and \r survive
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
_ACTOR_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TextLimits(BaseModel):
    title: int = Field(default=MAX_TITLE_LENGTH, gt=0)
    description: int = Field(default=MAX_DESCRIPTION_LENGTH, gt=0)


def strip_html(value: str) -> str:
    value = _TAG_RE.sub("", value)
    value = _ENTITY_RE.sub("", value)
    value = _CONTROL_RE.sub("", value)
    return value.strip()


def sanitize_text(value: Any, max_length: int = MAX_TITLE_LENGTH) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    cleaned = strip_html(text)
    return cleaned[:max_length]


def parse_uuid(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed.lower() if _UUID_RE.match(trimmed) else None


def parse_actor_id(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if _ACTOR_ID_RE.match(trimmed) else None


def is_valid_iso_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    trimmed = value.strip()
    if not _ISO_DATE_RE.match(trimmed):
        return False
    try:
        date.fromisoformat(trimmed)
    except ValueError:
        return False
    return True


def validate_enum(
    value: Any, allowed: tuple[str, ...], default: str | None = None
) -> str | None:
    normalized = str(value if value is not None else "").strip().lower()
    if normalized in allowed:
        return normalized
    return default


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_text(payload: dict[str, Any], key: str, max_length: int, label: str) -> str:
    text = sanitize_text(payload.get(key), max_length)
    if not text:
        raise InvalidInputError(f"{label} is required")
    return text


def optional_text(payload: dict[str, Any], key: str, max_length: int) -> str | None:
    return sanitize_text(payload.get(key), max_length) or None


def require_uuid(payload: dict[str, Any], key: str) -> str:
    parsed = parse_uuid(payload.get(key))
    if parsed is None:
        raise InvalidInputError(f"Valid {key} is required")
    return parsed


def optional_uuid(payload: dict[str, Any], key: str) -> str | None:
    raw = payload.get(key)
    if is_blank(raw):
        return None
    parsed = parse_uuid(raw)
    if parsed is None:
        raise InvalidInputError(f"Invalid {key}")
    return parsed


def optional_actor_id(payload: dict[str, Any], key: str) -> str | None:
    raw = payload.get(key)
    if is_blank(raw):
        return None
    parsed = parse_actor_id(raw)
    if parsed is None:
        raise InvalidInputError(f"Invalid {key}")
    return parsed


def require_enum(payload: dict[str, Any], key: str, allowed: tuple[str, ...], label: str) -> str:
    value = validate_enum(payload.get(key), allowed)
    if value is None:
        raise InvalidInputError(f"Invalid {label}. Allowed: {', '.join(allowed)}")
    return value


def optional_date(payload: dict[str, Any], key: str) -> str | None:
    raw = payload.get(key)
    if is_blank(raw):
        return None
    if not is_valid_iso_date(raw):
        raise InvalidInputError(f"Invalid {key}. Use YYYY-MM-DD.")
    return str(raw).strip()
