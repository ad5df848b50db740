"""Permission matrix — minimum role required per ActionType."""

from __future__ import annotations

from actionbroker.models.action import ActionType
from actionbroker.models.records import Role

PERMISSION_MATRIX: dict[ActionType, Role] = {
    ActionType.CREATE_TASK: Role.MEMBER,
    ActionType.UPDATE_TASK_STATUS: Role.MEMBER,
    ActionType.CREATE_PROGRAMME: Role.MANAGER,
    ActionType.UPDATE_PROGRAMME_STATUS: Role.MANAGER,
    ActionType.UPDATE_PROGRAMME_FIELDS: Role.MANAGER,
}
