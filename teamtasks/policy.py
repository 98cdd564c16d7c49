# teamtasks/policy.py
"""Who may view, edit or delete a task.

Decisions depend only on task ownership and the task's share records.  Team
membership plays no part.  Every read and write path in the service asks
these functions instead of re-deriving the rules.
"""

from typing import Iterable, Optional

from teamtasks.models import SharePermission, Task, TaskShare

MUTATING_PERMISSIONS = frozenset({SharePermission.edit, SharePermission.admin})


def _grant_for(task: Task, user_id: int, shares: Iterable[TaskShare]) -> Optional[TaskShare]:
    for share in shares:
        if share.task_id == task.id and share.grantee_id == user_id:
            return share
    return None


def is_owner(task: Task, user_id: int) -> bool:
    return task.created_by == user_id


def can_view(task: Task, user_id: int, shares: Iterable[TaskShare]) -> bool:
    """Owner, or holder of any share on the task."""
    return is_owner(task, user_id) or _grant_for(task, user_id, shares) is not None


def can_mutate(task: Task, user_id: int, shares: Iterable[TaskShare]) -> bool:
    """Owner, or holder of an ``edit``/``admin`` share."""
    if is_owner(task, user_id):
        return True
    grant = _grant_for(task, user_id, shares)
    return grant is not None and grant.permission in MUTATING_PERMISSIONS


def can_delete(task: Task, user_id: int) -> bool:
    """Only the owner. Shares never grant delete."""
    return is_owner(task, user_id)
