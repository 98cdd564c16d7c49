# teamtasks/routes/tasks.py
"""Task CRUD and sharing endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from teamtasks.deps import (
    get_current_user,
    get_mutation_engine,
    get_query_engine,
    get_sharing_engine,
)
from teamtasks.errors import NotFound
from teamtasks.models import ShareRequest, TaskCreate, TaskUpdate, User
from teamtasks.mutations import TaskMutationEngine
from teamtasks.ordering import SortBy, sort_tasks
from teamtasks.queries import TaskFilters, TaskQueryEngine
from teamtasks.sharing import SharingEngine

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
def list_tasks(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    team_id: Optional[int] = None,
    search: Optional[str] = None,
    due_date: Optional[str] = None,
    sort: SortBy = SortBy.created,
    user: User = Depends(get_current_user),
    queries: TaskQueryEngine = Depends(get_query_engine),
) -> dict:
    """List tasks the caller owns or has been shared, with optional filters."""
    filters = TaskFilters.parse(
        status=status,
        priority=priority,
        team_id=team_id,
        search=search,
        due_date=due_date,
    )
    tasks = queries.list_tasks(user.id, filters)
    return {"tasks": sort_tasks(tasks, sort)}


@router.get("/{task_id}")
def get_task(
    task_id: int,
    user: User = Depends(get_current_user),
    queries: TaskQueryEngine = Depends(get_query_engine),
) -> dict:
    return {"task": queries.get_task(task_id, user.id)}


@router.post("", status_code=201)
def create_task(
    body: TaskCreate,
    user: User = Depends(get_current_user),
    mutations: TaskMutationEngine = Depends(get_mutation_engine),
    queries: TaskQueryEngine = Depends(get_query_engine),
) -> dict:
    """Create a task, sharing it with any registered ``shared_emails``."""
    task = mutations.create_task(user.id, body)
    return {"task": queries.get_task(task.id, user.id)}


@router.put("/{task_id}")
def update_task(
    task_id: int,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    mutations: TaskMutationEngine = Depends(get_mutation_engine),
    queries: TaskQueryEngine = Depends(get_query_engine),
) -> dict:
    """Update an existing task. Only provided fields are changed."""
    task = mutations.update_task(task_id, user.id, body)
    return {"task": queries.get_task(task.id, user.id)}


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    mutations: TaskMutationEngine = Depends(get_mutation_engine),
) -> dict:
    if not mutations.delete_task(task_id, user.id):
        raise NotFound()
    return {"success": True}


@router.post("/{task_id}/share")
def share_task(
    task_id: int,
    body: ShareRequest,
    user: User = Depends(get_current_user),
    sharing: SharingEngine = Depends(get_sharing_engine),
) -> dict:
    share = sharing.share_task(task_id, user.id, body.email, body.permission)
    return {
        "success": True,
        "message": f"Task shared with {body.email}",
        "share": share,
    }


@router.get("/{task_id}/shares")
def list_shares(
    task_id: int,
    user: User = Depends(get_current_user),
    queries: TaskQueryEngine = Depends(get_query_engine),
    sharing: SharingEngine = Depends(get_sharing_engine),
) -> dict:
    # Raises NotFound unless the caller can see the task.
    queries.get_task(task_id, user.id)
    return {"shares": sharing.list_shares(task_id)}


@router.delete("/{task_id}/shares/{grantee_id}")
def revoke_share(
    task_id: int,
    grantee_id: int,
    user: User = Depends(get_current_user),
    sharing: SharingEngine = Depends(get_sharing_engine),
) -> dict:
    if not sharing.revoke_share(task_id, user.id, grantee_id):
        raise NotFound("Share not found")
    return {"success": True}
