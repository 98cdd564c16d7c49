from datetime import datetime, timedelta

import pytest

from teamtasks.models import CreatorInfo, TaskPriority, TaskWithDetails
from teamtasks.ordering import SortBy, sort_tasks

from helpers import NOW


def _details(task_id, title, priority=TaskPriority.medium, due_date=None, age_days=0):
    created = NOW - timedelta(days=age_days)
    return TaskWithDetails(
        id=task_id,
        title=title,
        priority=priority,
        due_date=due_date,
        created_by=1,
        created_at=created,
        updated_at=created,
        created_by_user=CreatorInfo(),
    )


@pytest.fixture(name="tasks")
def tasks_fixture():
    return [
        _details(1, "banana", TaskPriority.low, datetime(2024, 3, 1), age_days=3),
        _details(2, "Apple", TaskPriority.high, None, age_days=1),
        _details(3, "cherry", TaskPriority.medium, datetime(2024, 2, 1), age_days=2),
    ]


class TestSortTasks:
    def test_created_newest_first_by_default(self, tasks):
        assert [t.id for t in sort_tasks(tasks)] == [2, 3, 1]

    def test_due_earliest_first_undated_last(self, tasks):
        assert [t.id for t in sort_tasks(tasks, SortBy.due)] == [3, 1, 2]

    def test_priority_highest_first(self, tasks):
        assert [t.id for t in sort_tasks(tasks, SortBy.priority)] == [2, 3, 1]

    def test_alphabetical_ignores_case(self, tasks):
        assert [t.title for t in sort_tasks(tasks, SortBy.alphabetical)] == [
            "Apple", "banana", "cherry",
        ]
