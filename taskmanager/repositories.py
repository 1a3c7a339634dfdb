"""Persistence for users and tasks.

Services depend on the ``UserRepository`` / ``TaskRepository`` protocols, never
on a ``Session``. The SQLAlchemy implementations surface every failure as one
of ``errors.NotFound``, ``errors.Internal`` or ``errors.RequestTimeout``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import errors, models
from .database import Deadline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskFilter:
    user_id: Optional[int] = None
    status: Optional[models.TaskStatus] = None
    search: Optional[str] = None
    sort_by: str = "id"
    sort_dir: str = "desc"
    page: int = 1
    limit: int = 10


class UserRepository(Protocol):
    def create(self, user: models.User) -> models.User: ...
    def find_by_id(self, user_id: int) -> models.User: ...
    def find_by_email(self, email: str) -> models.User: ...
    def update(self, user: models.User) -> models.User: ...
    def delete(self, user_id: int) -> None: ...


class TaskRepository(Protocol):
    def create(self, task: models.Task) -> models.Task: ...
    def find_by_id(self, task_id: int) -> models.Task: ...
    def find_all(self, task_filter: TaskFilter) -> tuple[Sequence[models.Task], int]: ...
    def update(self, task: models.Task) -> models.Task: ...
    def delete(self, task_id: int) -> None: ...


# Sort columns helper (prevents arbitrary column injection)
def _order_column(sort_by: str):
    if sort_by == "title":
        return models.Task.title
    if sort_by == "status":
        return models.Task.status
    if sort_by == "priority":
        return models.Task.priority
    if sort_by == "due_date":
        return models.Task.due_date
    if sort_by == "created_at":
        return models.Task.created_at
    return models.Task.id  # default + stable tie-break fallback


class _SqlAlchemyRepository:
    def __init__(self, db: Session, deadline: Optional[Deadline] = None):
        self._db = db
        self._deadline = deadline

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        if self._deadline is not None:
            self._deadline.check()
        try:
            yield
        except SQLAlchemyError as exc:
            self._db.rollback()
            if self._deadline is not None and self._deadline.expired():
                raise errors.RequestTimeout() from exc
            logger.error("storage failure action=%s error=%s", action, exc)
            raise errors.Internal() from exc

    def _save(self, obj, action: str):
        with self._guard(action):
            self._db.add(obj)
            self._db.commit()
            self._db.refresh(obj)
        return obj


class SqlAlchemyUserRepository(_SqlAlchemyRepository):
    def create(self, user: models.User) -> models.User:
        return self._save(user, "create user")

    def find_by_id(self, user_id: int) -> models.User:
        with self._guard("find user"):
            user = self._db.get(models.User, user_id)
        if user is None:
            raise errors.NotFound("user not found")
        return user

    def find_by_email(self, email: str) -> models.User:
        with self._guard("find user by email"):
            user = self._db.execute(
                select(models.User).where(models.User.email == email)
            ).scalar_one_or_none()
        if user is None:
            raise errors.NotFound("user not found")
        return user

    def update(self, user: models.User) -> models.User:
        return self._save(user, "update user")

    def delete(self, user_id: int) -> None:
        user = self.find_by_id(user_id)
        with self._guard("delete user"):
            self._db.delete(user)
            self._db.commit()


class SqlAlchemyTaskRepository(_SqlAlchemyRepository):
    def create(self, task: models.Task) -> models.Task:
        return self._save(task, "create task")

    def find_by_id(self, task_id: int) -> models.Task:
        with self._guard("find task"):
            task = self._db.get(models.Task, task_id)
        if task is None:
            raise errors.NotFound("task not found")
        return task

    def find_all(self, task_filter: TaskFilter) -> tuple[Sequence[models.Task], int]:
        stmt = select(models.Task)
        if task_filter.user_id is not None:
            stmt = stmt.where(models.Task.user_id == task_filter.user_id)
        if task_filter.status is not None:
            stmt = stmt.where(models.Task.status == task_filter.status)

        # Search: case-insensitive LIKE on title OR description
        if task_filter.search:
            like = f"%{task_filter.search}%"
            stmt = stmt.where(
                or_(models.Task.title.ilike(like), models.Task.description.ilike(like))
            )

        col = _order_column(task_filter.sort_by)
        order_expr = col.asc() if task_filter.sort_dir == "asc" else col.desc()

        with self._guard("list tasks"):
            # Count BEFORE pagination
            total = self._db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
            items = self._db.execute(
                stmt.order_by(order_expr, models.Task.id.desc())
                    .offset((task_filter.page - 1) * task_filter.limit)
                    .limit(task_filter.limit)
            ).scalars().all()
        return items, total

    def update(self, task: models.Task) -> models.Task:
        return self._save(task, "update task")

    def delete(self, task_id: int) -> None:
        task = self.find_by_id(task_id)
        with self._guard("delete task"):
            self._db.delete(task)
            self._db.commit()


__all__ = [
    "TaskFilter",
    "UserRepository",
    "TaskRepository",
    "SqlAlchemyUserRepository",
    "SqlAlchemyTaskRepository",
]
