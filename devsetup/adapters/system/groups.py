"""
Group membership adapter.

Membership is read from the group database, so a user added in this
run (who has not logged in again yet) is still seen as a member on the
next run.
"""

from __future__ import annotations

import grp
import logging

from devsetup.adapters.base import CommandAdapter, ExecutionContext
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


def group_members(group: str) -> list[str] | None:
    """Members of ``group``, or None if the group does not exist."""
    try:
        return list(grp.getgrnam(group).gr_mem)
    except KeyError:
        return None


class GroupMembershipAdapter(CommandAdapter):
    """Add a user to a supplementary group.

    Action params:
        group (str): Group name.
        user (str): User to add (default: the context user).
    """

    @property
    def name(self) -> str:
        return "group"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.params.get("group"):
            return False, "Missing required param: 'group'"
        if not (context.params.get("user") or context.user):
            return False, "No user to add"
        return True, ""

    def is_satisfied(self, context: ExecutionContext) -> bool:
        user = context.params.get("user") or context.user
        members = group_members(context.params["group"])
        return members is not None and user in members

    def execute(self, context: ExecutionContext) -> Receipt:
        group = context.params["group"]
        user = context.params.get("user") or context.user

        result = self._run(context, ["usermod", "-aG", group, user], sudo=True)
        if not result.ok:
            return self._fail(context, result, metadata={"group": group, "user": user})

        logger.info("Added %s to group %s (takes effect at next login)", user, group)
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Added {user} to group {group}",
            duration_ms=result.elapsed_ms,
            metadata={"group": group, "user": user, "relogin_required": True},
        )
