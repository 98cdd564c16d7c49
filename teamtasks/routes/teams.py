# teamtasks/routes/teams.py
"""Team listing and creation, plus the per-user stats summary."""

from fastapi import APIRouter, Depends

from teamtasks.accounts import AccountService
from teamtasks.deps import get_accounts, get_current_user, get_query_engine
from teamtasks.models import TeamCreate, User
from teamtasks.queries import TaskQueryEngine

router = APIRouter(prefix="/api", tags=["teams"])


@router.get("/teams")
def list_teams(
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    return {"teams": accounts.list_teams(user.id)}


@router.post("/teams", status_code=201)
def create_team(
    body: TeamCreate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    return {"team": accounts.create_team(user.id, body)}


@router.get("/user/stats")
def user_stats(
    user: User = Depends(get_current_user),
    queries: TaskQueryEngine = Depends(get_query_engine),
) -> dict:
    """Active, completed, due-today and overdue counts for the caller."""
    return {"stats": queries.user_stats(user.id)}
