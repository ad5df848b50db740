"""Role gate — checks the actor's current role before any write."""

from __future__ import annotations

import logging

from actionbroker.exceptions import AuthorizationError
from actionbroker.models.action import ActionType
from actionbroker.models.records import Role
from actionbroker.policy.permissions import PERMISSION_MATRIX
from actionbroker.policy.roles import is_at_least
from actionbroker.store.records import RecordStore

logger = logging.getLogger(__name__)

DENIED_MESSAGE = "Permission denied. Manager+ required."


class RoleGate:
    def __init__(self, records: RecordStore) -> None:
        self._records = records

    def required_role(self, action_type: ActionType) -> Role:
        return PERMISSION_MATRIX.get(action_type, Role.ADMIN)

    async def authorize(self, actor_id: str, action_type: ActionType) -> Role:
        """Look up the actor's role now and raise if it is below the requirement.

        The role is never taken from the payload or an earlier turn. Actors
        without a profile count as members.
        """
        minimum = self.required_role(action_type)
        if minimum is Role.MEMBER:
            return Role.MEMBER

        role = await self._records.get_role(actor_id) or Role.MEMBER
        if not is_at_least(role, minimum):
            logger.info(
                "Denied %s for actor %s: needs %s", action_type.value, actor_id, minimum.name
            )
            raise AuthorizationError(DENIED_MESSAGE)
        return role
