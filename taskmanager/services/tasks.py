"""Owner-scoped task operations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from .. import errors, models, schemas
from ..repositories import TaskFilter, TaskRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# keeps (page - 1) * limit inside a signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE

UPDATABLE_FIELDS = frozenset({"title", "description", "status", "priority", "due_date"})


def clamp_page(page: Optional[int]) -> int:
    if page is None or page < 1:
        return 1
    return min(page, MAX_PAGE)


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None or limit < 1:
        return DEFAULT_PAGE_SIZE
    return min(limit, MAX_PAGE_SIZE)


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size  # ceil(total/page_size)


class TaskService:
    def __init__(self, tasks: TaskRepository):
        self._tasks = tasks

    def create(
        self,
        user_id: int,
        title: str,
        description: Optional[str] = None,
        priority: int = 0,
        due_date: Optional[datetime] = None,
    ) -> models.Task:
        task = self._tasks.create(
            models.Task(
                title=title,
                description=description,
                status=models.TaskStatus.TODO,
                priority=priority,
                due_date=due_date,
                user_id=user_id,
            )
        )
        logger.info("task created task_id=%s user_id=%s", task.id, user_id)
        return task

    def get_by_id(self, user_id: int, task_id: int) -> models.Task:
        try:
            task = self._tasks.find_by_id(task_id)
        except errors.NotFound:
            raise errors.TaskNotFound()
        if task.user_id != user_id:
            raise errors.Unauthorized("you are not the owner of this task")
        return task

    def list(
        self,
        user_id: int,
        status: Optional[models.TaskStatus] = None,
        page: Optional[int] = 1,
        limit: Optional[int] = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        sort_by: str = "id",
        sort_dir: str = "desc",
    ) -> schemas.PaginatedResponse[schemas.TaskOut]:
        page = clamp_page(page)
        limit = clamp_limit(limit)

        items, total = self._tasks.find_all(
            TaskFilter(
                user_id=user_id,
                status=status,
                search=search or None,
                sort_by=sort_by,
                sort_dir=sort_dir,
                page=page,
                limit=limit,
            )
        )
        return schemas.PaginatedResponse[schemas.TaskOut](
            data=[schemas.TaskOut.model_validate(task) for task in items],
            total=total,
            page=page,
            page_size=limit,
            total_pages=total_pages(total, limit),
        )

    def update(self, user_id: int, task_id: int, fields: Mapping[str, Any]) -> models.Task:
        task = self.get_by_id(user_id, task_id)

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise errors.ValidationError(f"cannot update field(s): {', '.join(sorted(unknown))}")

        for field, value in fields.items():
            if field == "status" and value is not None:
                try:
                    value = models.TaskStatus(value)
                except ValueError:
                    raise errors.ValidationError("Invalid status")
            setattr(task, field, value)

        return self._tasks.update(task)

    def complete(self, user_id: int, task_id: int) -> models.Task:
        task = self.get_by_id(user_id, task_id)
        if task.status == models.TaskStatus.DONE:
            return task
        task.status = models.TaskStatus.DONE
        return self._tasks.update(task)

    def delete(self, user_id: int, task_id: int) -> None:
        task = self.get_by_id(user_id, task_id)
        self._tasks.delete(task.id)
        logger.info("task deleted task_id=%s user_id=%s", task.id, user_id)
