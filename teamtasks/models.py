# teamtasks/models.py
"""Tables and request/response schemas for users, tasks, shares and teams."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import field_validator
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
DEFAULT_TEAM_COLOR = "#6366f1"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in-progress"
    completed = "completed"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class SharePermission(str, Enum):
    view = "view"
    edit = "edit"
    admin = "admin"


# -- tables -------------------------------------------------------------------


class User(SQLModel, table=True):
    """An account, keyed by the identity provider's stable id."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    external_id: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    display_name: str
    photo_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow)


class Team(SQLModel, table=True):
    """A label for grouping tasks. Has no bearing on who sees a task."""
    __tablename__ = "teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    color: str = Field(default=DEFAULT_TEAM_COLOR, max_length=7)
    created_by: int = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=_utcnow)


class TaskBase(SQLModel):
    """Shared fields for create/update operations."""
    title: str = Field(max_length=200)
    description: str = Field(default="")
    status: TaskStatus = Field(default=TaskStatus.todo)
    priority: TaskPriority = Field(default=TaskPriority.medium)
    # Wall-clock time in the configured zone, stored without an offset.
    due_date: Optional[datetime] = Field(default=None, sa_type=DateTime())
    team_id: Optional[int] = Field(default=None, foreign_key="teams.id")


class Task(TaskBase, table=True):
    """Task database table."""
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_by: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = Field(default=None)


class TaskShare(SQLModel, table=True):
    """A grant of access to one task for one user."""
    __tablename__ = "task_shares"
    __table_args__ = (UniqueConstraint("task_id", "grantee_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    grantee_id: int = Field(foreign_key="users.id", index=True)
    granter_id: int = Field(foreign_key="users.id")
    permission: SharePermission = Field(default=SharePermission.edit)
    created_at: datetime = Field(default_factory=_utcnow)


# -- request schemas ----------------------------------------------------------


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{field} must not be empty")
    return value.strip()


class SignInRequest(SQLModel):
    """Claims handed over by the identity provider after it verified a login."""
    external_id: str = Field(min_length=1)
    email: str
    display_name: str = Field(min_length=1)
    photo_url: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = normalize_email(v)
        if not is_valid_email(v):
            raise ValueError("must be a valid email address")
        return v


class TaskCreate(TaskBase):
    """Schema for creating a task. Title is required, rest have defaults."""
    shared_emails: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _require_text(v, "title")

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Optional[str]) -> str:
        return v or ""

    @field_validator("shared_emails")
    @classmethod
    def validate_shared_emails(cls, v: list[str]) -> list[str]:
        emails = [normalize_email(email) for email in v]
        bad = [email for email in emails if not is_valid_email(email)]
        if bad:
            raise ValueError(f"invalid email address: {', '.join(bad)}")
        return emails


class TaskUpdate(SQLModel):
    """Schema for updating a task. All fields optional; owner is not settable."""
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    team_id: Optional[int] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        return _require_text(v, "title")

    @field_validator("status", "priority")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("description")
    @classmethod
    def default_description(cls, v: Optional[str]) -> str:
        return v or ""


class ShareRequest(SQLModel):
    email: str
    permission: SharePermission = SharePermission.edit

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = normalize_email(v)
        if not is_valid_email(v):
            raise ValueError("must be a valid email address")
        return v


class TeamCreate(SQLModel):
    name: str = Field(max_length=100)
    color: str = DEFAULT_TEAM_COLOR

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _require_text(v, "name")

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not HEX_COLOR_RE.match(v):
            raise ValueError("color must be a #rrggbb hex string")
        return v.lower()


# -- response schemas ---------------------------------------------------------


class UserRead(SQLModel):
    id: int
    email: str
    display_name: str
    photo_url: Optional[str] = None
    created_at: datetime


class CreatorInfo(SQLModel):
    display_name: str = "Unknown"
    email: str = ""
    photo_url: Optional[str] = None


class SharedUser(SQLModel):
    id: int
    display_name: str
    email: str
    photo_url: Optional[str] = None
    permission: SharePermission


class TeamInfo(SQLModel):
    name: str
    color: str


class TaskWithDetails(TaskBase):
    """A task plus creator, grantee and team display data."""
    id: int
    created_by: int
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    created_by_user: CreatorInfo
    shared_with: list[SharedUser] = Field(default_factory=list)
    team: Optional[TeamInfo] = None


class UserStats(SQLModel):
    active_tasks: int = 0
    completed_tasks: int = 0
    due_today_tasks: int = 0
    overdue_tasks: int = 0
