# teamtasks/queries.py
"""Read side: visible tasks, filtering, enrichment and per-user stats."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from teamtasks import dates, policy
from teamtasks.errors import NotFound, ValidationError
from teamtasks.models import (
    CreatorInfo,
    SharedUser,
    Task,
    TaskPriority,
    TaskShare,
    TaskStatus,
    TaskWithDetails,
    TeamInfo,
    UserStats,
)
from teamtasks.storage import Storage

ALL = "all"


class DueDateFilter(str, Enum):
    today = "today"
    overdue = "overdue"


class TaskFilters(BaseModel):
    """Optional, conjunctive task filters. ``"all"`` or blank disables one."""
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    team_id: Optional[int] = None
    search: Optional[str] = None
    due_date: Optional[DueDateFilter] = None

    @field_validator("status", "priority", "due_date", "search", mode="before")
    @classmethod
    def drop_sentinel(cls, v):
        if isinstance(v, str) and v.strip().lower() in ("", ALL):
            return None
        return v

    @classmethod
    def parse(cls, **raw) -> "TaskFilters":
        """Build filters from loose input, raising the core ValidationError."""
        try:
            return cls(**raw)
        except PydanticValidationError as exc:
            fields = [str(err["loc"][0]) for err in exc.errors() if err["loc"]]
            raise ValidationError("Invalid task filters", fields=fields) from exc


def is_overdue(task: Task, now: datetime) -> bool:
    return task.status != TaskStatus.completed and dates.is_past_due(task.due_date, now)


def matches(task: Task, filters: TaskFilters, now: datetime) -> bool:
    if filters.status is not None and task.status != filters.status:
        return False
    if filters.priority is not None and task.priority != filters.priority:
        return False
    if filters.team_id is not None and task.team_id != filters.team_id:
        return False
    if filters.search:
        needle = filters.search.lower()
        if needle not in task.title.lower() and needle not in (task.description or "").lower():
            return False
    if filters.due_date == DueDateFilter.today and not dates.is_due_today(task.due_date, now):
        return False
    if filters.due_date == DueDateFilter.overdue and not is_overdue(task, now):
        return False
    return True


class TaskQueryEngine:
    """Answers "which tasks can this user see" and dresses them for display."""

    def __init__(self, storage: Storage, clock: dates.Clock = dates.local_now) -> None:
        self.storage = storage
        self.clock = clock

    def list_tasks(
        self, user_id: int, filters: Optional[TaskFilters] = None
    ) -> list[TaskWithDetails]:
        filters = filters or TaskFilters()
        now = self.clock()
        results = []
        for task in self.storage.candidate_tasks(user_id):
            shares = self.storage.shares_for_task(task.id)
            if not policy.can_view(task, user_id, shares):
                continue
            if matches(task, filters, now):
                results.append(self.enrich(task, shares))
        return results

    def get_task(self, task_id: int, user_id: int) -> TaskWithDetails:
        task = self.storage.get_task(task_id)
        if task is None:
            raise NotFound()
        shares = self.storage.shares_for_task(task.id)
        if not policy.can_view(task, user_id, shares):
            raise NotFound()
        return self.enrich(task, shares)

    def enrich(
        self, task: Task, shares: Optional[list[TaskShare]] = None
    ) -> TaskWithDetails:
        if shares is None:
            shares = self.storage.shares_for_task(task.id)

        creator = self.storage.get_user(task.created_by)
        created_by_user = (
            CreatorInfo(
                display_name=creator.display_name,
                email=creator.email,
                photo_url=creator.photo_url,
            )
            if creator is not None
            else CreatorInfo()
        )

        shared_with = []
        for share in shares:
            grantee = self.storage.get_user(share.grantee_id)
            if grantee is None:
                continue
            shared_with.append(SharedUser(
                id=grantee.id,
                display_name=grantee.display_name,
                email=grantee.email,
                photo_url=grantee.photo_url,
                permission=share.permission,
            ))

        team = None
        if task.team_id is not None:
            found = self.storage.get_team(task.team_id)
            if found is not None:
                team = TeamInfo(name=found.name, color=found.color)

        return TaskWithDetails(
            **task.model_dump(),
            created_by_user=created_by_user,
            shared_with=shared_with,
            team=team,
        )

    def user_stats(self, user_id: int) -> UserStats:
        """Counts over everything the user can see."""
        now = self.clock()
        stats = UserStats()
        for task in self.list_tasks(user_id):
            if task.status == TaskStatus.completed:
                stats.completed_tasks += 1
                continue
            stats.active_tasks += 1
            if dates.is_due_today(task.due_date, now):
                stats.due_today_tasks += 1
            elif dates.is_past_due(task.due_date, now):
                stats.overdue_tasks += 1
        return stats
