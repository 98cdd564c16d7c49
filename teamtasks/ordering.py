# teamtasks/ordering.py
"""Presentation orderings for task lists."""

from datetime import datetime, timezone
from enum import Enum
from typing import Sequence

from teamtasks.dates import as_zone
from teamtasks.models import TaskPriority, TaskWithDetails

PRIORITY_RANK = {
    TaskPriority.high: 3,
    TaskPriority.medium: 2,
    TaskPriority.low: 1,
}


class SortBy(str, Enum):
    created = "created"
    due = "due"
    priority = "priority"
    alphabetical = "alphabetical"


def _instant(value: datetime) -> datetime:
    return as_zone(value, timezone.utc)


def sort_tasks(
    tasks: Sequence[TaskWithDetails], sort_by: SortBy = SortBy.created
) -> list[TaskWithDetails]:
    if sort_by == SortBy.due:
        dated = sorted((t for t in tasks if t.due_date), key=lambda t: t.due_date)
        return dated + [t for t in tasks if not t.due_date]
    if sort_by == SortBy.priority:
        return sorted(tasks, key=lambda t: PRIORITY_RANK[t.priority], reverse=True)
    if sort_by == SortBy.alphabetical:
        return sorted(tasks, key=lambda t: t.title.casefold())
    return sorted(tasks, key=lambda t: _instant(t.created_at), reverse=True)
