# teamtasks/mutations.py
"""Write side: create, update and delete tasks under the access policy."""

import logging
from datetime import datetime, timezone
from typing import Optional

from teamtasks import dates, policy
from teamtasks.errors import NotFound, ValidationError
from teamtasks.models import (
    SharePermission,
    Task,
    TaskCreate,
    TaskShare,
    TaskStatus,
    TaskUpdate,
)
from teamtasks.storage import Storage

logger = logging.getLogger(__name__)

# Statuses that clear completed_at. Anything else leaves it as it was.
OPEN_STATUSES = frozenset({TaskStatus.todo, TaskStatus.in_progress})


class TaskMutationEngine:
    def __init__(self, storage: Storage, clock: dates.Clock = dates.local_now) -> None:
        self.storage = storage
        self.clock = clock

    def _now(self) -> datetime:
        return self.clock().astimezone(timezone.utc)

    def _zone(self):
        return self.clock().tzinfo or timezone.utc

    def _check_team(self, team_id: Optional[int]) -> None:
        if team_id is not None and self.storage.get_team(team_id) is None:
            raise ValidationError("Unknown team", fields=["team_id"])

    def create_task(self, owner_id: int, data: TaskCreate) -> Task:
        """Create a task owned by *owner_id*.

        Each email in ``data.shared_emails`` that belongs to another registered
        user gets an ``edit`` share. Unknown emails and the owner's own email
        are skipped.
        """
        if not data.title or not data.title.strip():
            raise ValidationError("title must not be empty", fields=["title"])
        self._check_team(data.team_id)

        now = self._now()
        task = Task(
            title=data.title.strip(),
            description=data.description or "",
            status=data.status,
            priority=data.priority,
            due_date=dates.to_wall_clock(data.due_date, self._zone()),
            team_id=data.team_id,
            created_by=owner_id,
            created_at=now,
            updated_at=now,
            completed_at=now if data.status == TaskStatus.completed else None,
        )

        with self.storage.atomic():
            task = self.storage.add_task(task)
            for email in data.shared_emails:
                grantee = self.storage.get_user_by_email(email)
                if grantee is None or grantee.id == owner_id:
                    logger.debug("Skipping share of task %s with %s", task.id, email)
                    continue
                self.storage.save_share(TaskShare(
                    task_id=task.id,
                    grantee_id=grantee.id,
                    granter_id=owner_id,
                    permission=SharePermission.edit,
                    created_at=now,
                ))

        logger.info("User %s created task %s", owner_id, task.id)
        return task

    def update_task(self, task_id: int, requester_id: int, data: TaskUpdate) -> Task:
        """Apply the supplied fields. Raises NotFound without edit rights."""
        task = self.storage.get_task(task_id)
        if task is None or not policy.can_mutate(
            task, requester_id, self.storage.shares_for_task(task_id)
        ):
            raise NotFound()

        changes = data.model_dump(exclude_unset=True)
        if "team_id" in changes:
            self._check_team(changes["team_id"])
        if "due_date" in changes:
            changes["due_date"] = dates.to_wall_clock(changes["due_date"], self._zone())

        for key, value in changes.items():
            setattr(task, key, value)

        now = self._now()
        task.updated_at = now
        status = changes.get("status")
        if status == TaskStatus.completed:
            task.completed_at = now
        elif status in OPEN_STATUSES:
            task.completed_at = None

        return self.storage.save_task(task)

    def delete_task(self, task_id: int, requester_id: int) -> bool:
        """Delete a task and its shares. False if missing or not the owner."""
        task = self.storage.get_task(task_id)
        if task is None or not policy.can_delete(task, requester_id):
            return False
        with self.storage.atomic():
            deleted = self.storage.delete_task(task_id)
        if deleted:
            logger.info("User %s deleted task %s", requester_id, task_id)
        return deleted
