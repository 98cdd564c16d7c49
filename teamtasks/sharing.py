# teamtasks/sharing.py
"""Granting and revoking per-user access to tasks."""

import logging
from datetime import timezone

from teamtasks import dates, policy
from teamtasks.errors import InvalidShare, NotFound, UserNotFound, ValidationError
from teamtasks.models import (
    SharePermission,
    TaskShare,
    is_valid_email,
    normalize_email,
)
from teamtasks.storage import Storage

logger = logging.getLogger(__name__)


class SharingEngine:
    def __init__(self, storage: Storage, clock: dates.Clock = dates.local_now) -> None:
        self.storage = storage
        self.clock = clock

    def share_task(
        self,
        task_id: int,
        requester_id: int,
        grantee_email: str,
        permission: SharePermission = SharePermission.edit,
    ) -> TaskShare:
        """Grant *grantee_email* access to a task the requester can see.

        Viewing is enough to re-share. Sharing again with the same user
        replaces the earlier permission.
        """
        email = normalize_email(grantee_email or "")
        if not is_valid_email(email):
            raise ValidationError("A valid email is required", fields=["email"])

        grantee = self.storage.get_user_by_email(email)
        if grantee is None:
            raise UserNotFound()
        if grantee.id == requester_id:
            raise InvalidShare()

        task = self.storage.get_task(task_id)
        if task is None or not policy.can_view(
            task, requester_id, self.storage.shares_for_task(task_id)
        ):
            raise NotFound()

        share = self.storage.save_share(TaskShare(
            task_id=task_id,
            grantee_id=grantee.id,
            granter_id=requester_id,
            permission=SharePermission(permission),
            created_at=self.clock().astimezone(timezone.utc),
        ))
        logger.info(
            "User %s shared task %s with user %s (%s)",
            requester_id, task_id, grantee.id, share.permission.value,
        )
        return share

    def remove_share(self, task_id: int, grantee_id: int) -> bool:
        """Drop the (task, grantee) share. Safe to repeat."""
        removed = self.storage.delete_share(task_id, grantee_id)
        if removed:
            logger.info("Removed share of task %s for user %s", task_id, grantee_id)
        return removed

    def list_shares(self, task_id: int) -> list[TaskShare]:
        return self.storage.shares_for_task(task_id)

    def revoke_share(self, task_id: int, requester_id: int, grantee_id: int) -> bool:
        """Owner revokes anyone; a grantee may only drop their own share."""
        task = self.storage.get_task(task_id)
        if task is None:
            raise NotFound()
        if not (policy.can_delete(task, requester_id) or requester_id == grantee_id):
            raise NotFound()
        return self.remove_share(task_id, grantee_id)
