# teamtasks/database.py
"""SQL engine, schema bootstrap and the SQLModel-backed storage."""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from sqlalchemy import Column, delete, inspect, or_, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, col, create_engine, select

from teamtasks import settings
from teamtasks.models import Task, TaskShare, Team, User

logger = logging.getLogger(__name__)

_connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)
engine = create_engine(settings.DATABASE_URL, echo=False, connect_args=_connect_args)


def _compile_column_type(engine: Engine, column: Column) -> str:
    return column.type.compile(dialect=engine.dialect)


def _column_default(engine: Engine, column: Column) -> str:
    """DEFAULT clause for a NOT NULL column added to a table that has rows.

    Returns an empty string for nullable columns.
    """
    if column.nullable:
        return ""

    if column.default is not None and column.default.is_scalar:
        value = column.default.arg
        if isinstance(value, Enum):
            value = value.name
        if isinstance(value, bool):
            return f" DEFAULT {int(value)}"
        if isinstance(value, (int, float)):
            return f" DEFAULT {value}"
        escaped = str(value).replace("'", "''")
        return f" DEFAULT '{escaped}'"

    type_str = _compile_column_type(engine, column).upper()
    if "INT" in type_str or "BOOL" in type_str:
        return " DEFAULT 0"
    if "FLOAT" in type_str or "REAL" in type_str or "NUMERIC" in type_str:
        return " DEFAULT 0.0"
    if "DATE" in type_str or "TIME" in type_str:
        return " DEFAULT '1970-01-01 00:00:00'"
    return " DEFAULT ''"


def auto_migrate(engine: Engine) -> list[str]:
    """Add columns the models define but existing tables lack.

    Removed or retyped columns are reported and left alone: task and share
    rows are never dropped to match the models.  Returns the statements run.
    """
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    applied: list[str] = []

    for table_name, table in SQLModel.metadata.tables.items():
        if table_name not in existing_tables:
            continue

        db_columns = {c["name"]: c for c in inspector.get_columns(table_name)}
        model_columns = {c.name: c for c in table.columns}

        removed = set(db_columns) - set(model_columns)
        if removed:
            logger.warning(
                "Table '%s' has columns the models no longer define: %s",
                table_name, sorted(removed),
            )
        for name in set(db_columns) & set(model_columns):
            db_type = str(db_columns[name]["type"]).upper()
            model_type = _compile_column_type(engine, model_columns[name]).upper()
            if db_type != model_type:
                logger.warning(
                    "Type mismatch on '%s.%s': db=%s model=%s",
                    table_name, name, db_type, model_type,
                )

        added = [name for name in model_columns if name not in db_columns]
        if not added:
            continue

        logger.info("Adding columns to '%s': %s", table_name, added)
        with engine.begin() as conn:
            for name in added:
                column = model_columns[name]
                nullable = "" if column.nullable else " NOT NULL"
                stmt = (
                    f'ALTER TABLE "{table_name}" ADD COLUMN "{name}" '
                    f"{_compile_column_type(engine, column)}{nullable}"
                    f"{_column_default(engine, column)}"
                )
                logger.info("  %s", stmt)
                conn.execute(text(stmt))
                applied.append(stmt)
    return applied


def create_db_and_tables(engine: Engine = engine) -> None:
    """Create all tables from SQLModel metadata, then add any missing columns."""
    SQLModel.metadata.create_all(engine)
    auto_migrate(engine)


class DatabaseStorage:
    """``Storage`` over a SQLModel session.

    Writes commit immediately unless they run inside :meth:`atomic`, in which
    case they are flushed and committed once when the outermost block exits.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        # Rows written inside atomic() are read back right after the commit.
        self.session.expire_on_commit = False
        self._depth = 0

    def _write(self, *rows: SQLModel) -> None:
        if self._depth:
            self.session.flush()
            return
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        for row in rows:
            self.session.refresh(row)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        except Exception:
            self._depth -= 1
            if not self._depth:
                logger.warning("Rolling back database transaction")
                self.session.rollback()
            raise
        else:
            self._depth -= 1
            if not self._depth:
                self.session.commit()

    # -- users ---------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        statement = select(User).where(User.external_id == external_id)
        return self.session.exec(statement).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email)).first()

    def add_user(self, user: User) -> User:
        self.session.add(user)
        self._write(user)
        return user

    def save_user(self, user: User) -> User:
        return self.add_user(user)

    # -- tasks ---------------------------------------------------------------

    def get_task(self, task_id: int) -> Optional[Task]:
        return self.session.get(Task, task_id)

    def candidate_tasks(self, user_id: int) -> list[Task]:
        shared_with_user = select(TaskShare.task_id).where(TaskShare.grantee_id == user_id)
        statement = (
            select(Task)
            .where(or_(Task.created_by == user_id, col(Task.id).in_(shared_with_user)))
            .order_by(col(Task.created_at).desc(), col(Task.id).desc())
        )
        return list(self.session.exec(statement).all())

    def add_task(self, task: Task) -> Task:
        self.session.add(task)
        self._write(task)
        return task

    def save_task(self, task: Task) -> Task:
        return self.add_task(task)

    def delete_task(self, task_id: int) -> bool:
        task = self.session.get(Task, task_id)
        if task is None:
            return False
        self.session.execute(delete(TaskShare).where(col(TaskShare.task_id) == task_id))
        self.session.delete(task)
        self._write()
        return True

    # -- shares --------------------------------------------------------------

    def get_share(self, task_id: int, grantee_id: int) -> Optional[TaskShare]:
        statement = select(TaskShare).where(
            TaskShare.task_id == task_id, TaskShare.grantee_id == grantee_id
        )
        return self.session.exec(statement).first()

    def shares_for_task(self, task_id: int) -> list[TaskShare]:
        statement = (
            select(TaskShare)
            .where(TaskShare.task_id == task_id)
            .order_by(col(TaskShare.id))
        )
        return list(self.session.exec(statement).all())

    def save_share(self, share: TaskShare) -> TaskShare:
        existing = self.get_share(share.task_id, share.grantee_id)
        if existing is not None:
            existing.permission = share.permission
            existing.granter_id = share.granter_id
            share = existing
        self.session.add(share)
        self._write(share)
        return share

    def delete_share(self, task_id: int, grantee_id: int) -> bool:
        share = self.get_share(task_id, grantee_id)
        if share is None:
            return False
        self.session.delete(share)
        self._write()
        return True

    # -- teams ---------------------------------------------------------------

    def get_team(self, team_id: int) -> Optional[Team]:
        return self.session.get(Team, team_id)

    def list_teams(self) -> list[Team]:
        return list(self.session.exec(select(Team).order_by(col(Team.id))).all())

    def add_team(self, team: Team) -> Team:
        self.session.add(team)
        self._write(team)
        return team
