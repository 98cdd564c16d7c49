# teamtasks/storage.py
"""Storage port used by the task core, plus the in-memory implementation.

The core depends on the ``Storage`` protocol rather than a concrete store.
``MemoryStorage`` keeps everything in per-instance dicts and is what the tests
run against; ``teamtasks.database.DatabaseStorage`` is the SQLModel-backed
one.  The application picks one at startup.
"""

import itertools
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

from teamtasks.models import Task, TaskShare, Team, User

logger = logging.getLogger(__name__)


class Storage(Protocol):
    # users
    def get_user(self, user_id: int) -> Optional[User]: ...
    def get_user_by_external_id(self, external_id: str) -> Optional[User]: ...
    def get_user_by_email(self, email: str) -> Optional[User]: ...
    def add_user(self, user: User) -> User: ...
    def save_user(self, user: User) -> User: ...

    # tasks
    def get_task(self, task_id: int) -> Optional[Task]: ...

    def candidate_tasks(self, user_id: int) -> list[Task]:
        """Tasks owned by *user_id* or shared with them, newest first."""
        ...

    def add_task(self, task: Task) -> Task: ...
    def save_task(self, task: Task) -> Task: ...

    def delete_task(self, task_id: int) -> bool:
        """Delete a task together with all of its shares."""
        ...

    # shares
    def get_share(self, task_id: int, grantee_id: int) -> Optional[TaskShare]: ...
    def shares_for_task(self, task_id: int) -> list[TaskShare]: ...

    def save_share(self, share: TaskShare) -> TaskShare:
        """Insert, or update the existing share for the same (task, grantee)."""
        ...

    def delete_share(self, task_id: int, grantee_id: int) -> bool: ...

    # teams
    def get_team(self, team_id: int) -> Optional[Team]: ...
    def list_teams(self) -> list[Team]: ...
    def add_team(self, team: Team) -> Team: ...

    def atomic(self):
        """Context manager: everything inside commits together or not at all."""
        ...


def _newest_first(tasks: list[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: (t.created_at, t.id), reverse=True)


class MemoryStorage:
    """Dict-backed store. Each instance owns its own tables and id counters.

    One instance is shared by every request, and sync endpoints run on a
    thread pool, so all access goes through a reentrant lock. ``atomic()``
    holds that lock for the whole block.
    """

    _TABLES = ("_users", "_tasks", "_shares", "_teams")

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._tasks: dict[int, Task] = {}
        self._shares: dict[int, TaskShare] = {}
        self._teams: dict[int, Team] = {}
        self._ids = {name: itertools.count(1) for name in self._TABLES}

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    # -- users ---------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        with self._lock:
            return next(
                (u for u in self._users.values() if u.external_id == external_id), None
            )

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self._users.values() if u.email == email), None)

    def add_user(self, user: User) -> User:
        with self._lock:
            user.id = self._next_id("_users")
            self._users[user.id] = user
            return user

    def save_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user
            return user

    # -- tasks ---------------------------------------------------------------

    def get_task(self, task_id: int) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)

    def candidate_tasks(self, user_id: int) -> list[Task]:
        with self._lock:
            shared_ids = {
                s.task_id for s in self._shares.values() if s.grantee_id == user_id
            }
            return _newest_first([
                t for t in self._tasks.values()
                if t.created_by == user_id or t.id in shared_ids
            ])

    def add_task(self, task: Task) -> Task:
        with self._lock:
            task.id = self._next_id("_tasks")
            self._tasks[task.id] = task
            return task

    def save_task(self, task: Task) -> Task:
        with self._lock:
            self._tasks[task.id] = task
            return task

    def delete_task(self, task_id: int) -> bool:
        with self._lock:
            if self._tasks.pop(task_id, None) is None:
                return False
            self._shares = {
                share_id: share
                for share_id, share in self._shares.items()
                if share.task_id != task_id
            }
            return True

    # -- shares --------------------------------------------------------------

    def get_share(self, task_id: int, grantee_id: int) -> Optional[TaskShare]:
        with self._lock:
            return next(
                (
                    s for s in self._shares.values()
                    if s.task_id == task_id and s.grantee_id == grantee_id
                ),
                None,
            )

    def shares_for_task(self, task_id: int) -> list[TaskShare]:
        with self._lock:
            return [s for s in self._shares.values() if s.task_id == task_id]

    def save_share(self, share: TaskShare) -> TaskShare:
        with self._lock:
            existing = self.get_share(share.task_id, share.grantee_id)
            if existing is not None:
                existing.permission = share.permission
                existing.granter_id = share.granter_id
                return existing
            share.id = self._next_id("_shares")
            self._shares[share.id] = share
            return share

    def delete_share(self, task_id: int, grantee_id: int) -> bool:
        with self._lock:
            share = self.get_share(task_id, grantee_id)
            if share is None:
                return False
            del self._shares[share.id]
            return True

    # -- teams ---------------------------------------------------------------

    def get_team(self, team_id: int) -> Optional[Team]:
        with self._lock:
            return self._teams.get(team_id)

    def list_teams(self) -> list[Team]:
        with self._lock:
            return [self._teams[team_id] for team_id in sorted(self._teams)]

    def add_team(self, team: Team) -> Team:
        with self._lock:
            team.id = self._next_id("_teams")
            self._teams[team.id] = team
            return team

    # -- transactions --------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Restore every table if the block raises.

        Id counters only move forward, so ids handed out inside a rolled-back
        block are never issued again.
        """
        with self._lock:
            tables = {
                name: {
                    key: (type(row), row.model_dump())
                    for key, row in getattr(self, name).items()
                }
                for name in self._TABLES
            }
            try:
                yield
            except Exception:
                logger.warning("Rolling back in-memory transaction")
                for name, rows in tables.items():
                    setattr(self, name, {
                        key: model(**data) for key, (model, data) in rows.items()
                    })
                raise
