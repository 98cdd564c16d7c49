# teamtasks/errors.py
"""Error kinds raised by the task core.

``NotFound`` covers both "does not exist" and "exists but the caller may not
see it", so that callers never learn about tasks they have no access to.
"""

from typing import Iterable


class TaskBoardError(Exception):
    """Base class for expected, caller-facing failures."""

    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class ValidationError(TaskBoardError):
    """Malformed input. ``fields`` names the offending fields."""

    message = "Invalid input"

    def __init__(self, message: str | None = None, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields = tuple(fields)


class NotFound(TaskBoardError):
    message = "Task not found"


class UserNotFound(TaskBoardError):
    """A share target email that belongs to no account."""

    message = "User not found with this email"


class InvalidShare(TaskBoardError):
    message = "Cannot share with yourself"


class Unauthenticated(TaskBoardError):
    """No identity-provider token on the request."""

    message = "No authentication token"
