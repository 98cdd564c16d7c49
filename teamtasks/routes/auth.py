# teamtasks/routes/auth.py
"""Sign-in bookkeeping for identities verified by the external provider."""

from fastapi import APIRouter, Depends

from teamtasks.accounts import AccountService
from teamtasks.deps import get_accounts, get_current_user
from teamtasks.models import SignInRequest, User, UserRead

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signin")
def sign_in(
    body: SignInRequest, accounts: AccountService = Depends(get_accounts)
) -> dict:
    """Create or refresh the local user record for a provider identity."""
    user = accounts.sign_in(body)
    return {"user": UserRead.model_validate(user)}


@router.get("/me")
def me(user: User = Depends(get_current_user)) -> dict:
    return {"user": UserRead.model_validate(user)}
