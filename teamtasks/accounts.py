# teamtasks/accounts.py
"""Users signed in through the identity provider, and teams."""

import logging

from teamtasks.errors import NotFound, ValidationError
from teamtasks.models import SignInRequest, Team, TeamCreate, User
from teamtasks.storage import Storage

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def sign_in(self, claims: SignInRequest) -> User:
        """Create the user on first sign-in, refresh name and photo afterwards."""
        user = self.storage.get_user_by_external_id(claims.external_id)
        if user is None:
            holder = self.storage.get_user_by_email(claims.email)
            if holder is not None:
                raise ValidationError("Email already registered", fields=["email"])
            user = self.storage.add_user(User(
                external_id=claims.external_id,
                email=claims.email,
                display_name=claims.display_name,
                photo_url=claims.photo_url or None,
            ))
            logger.info("Created user %s", user.id)
            return user

        user.display_name = claims.display_name
        user.photo_url = claims.photo_url or None
        return self.storage.save_user(user)

    def resolve(self, external_id: str) -> User:
        user = self.storage.get_user_by_external_id(external_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def list_teams(self, user_id: int) -> list[Team]:
        # Every team is visible to every user; teams only label tasks.
        return self.storage.list_teams()

    def create_team(self, creator_id: int, data: TeamCreate) -> Team:
        team = self.storage.add_team(Team(
            name=data.name,
            color=data.color,
            created_by=creator_id,
        ))
        logger.info("User %s created team %s", creator_id, team.id)
        return team
