"""Role classification helpers."""

from __future__ import annotations

from actionbroker.models.records import Role


def role_from_string(value: str) -> Role:
    mapping = {
        "MEMBER": Role.MEMBER,
        "MANAGER": Role.MANAGER,
        "ADMIN": Role.ADMIN,
    }
    result = mapping.get(value.strip().upper())
    if result is None:
        raise ValueError(f"Unknown role: {value}")
    return result


def is_at_least(role: Role, minimum: Role) -> bool:
    return role.value >= minimum.value
