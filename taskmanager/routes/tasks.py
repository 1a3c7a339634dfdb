# taskmanager/routes/tasks.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from .. import models, schemas
from ..dependencies import get_current_user_id, get_task_service
from ..services import TaskService

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


# 1) List the current user's tasks (filter + search + sort + pagination)
@router.get(
    "",
    response_model=schemas.PaginatedResponse[schemas.TaskOut],
    response_model_by_alias=True,
    summary="List my tasks",
    description=(
        "Return a paginated list of tasks owned by the current user. Requires **Bearer** token.\n\n"
        "• **Filter**: `status` ∈ {\"todo\", \"in_progress\", \"done\"}\n"
        "• **Search**: `q` matches title/description (case-insensitive)\n"
        "• **Sort**: `sort_by` ∈ {id,title,status,priority,due_date,created_at}, `sort_dir` ∈ {asc,desc}\n"
        "• **Pagination**: `page` (<1 becomes 1), `limit` (<1 becomes 10, >100 becomes 100)"
    ),
)
def list_tasks(
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
    status_filter: Optional[models.TaskStatus] = Query(default=None, alias="status"),
    q: Optional[str] = Query(default=None, description="Search in title/description"),
    sort_by: schemas.SortField = "id",
    sort_dir: schemas.SortDir = "desc",
    page: int = 1,
    limit: int = 10,
):
    return tasks.list(
        user_id,
        status=status_filter,
        page=page,
        limit=limit,
        search=q,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )


# 2) Create a new task
@router.post(
    "",
    response_model=schemas.TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
    description="Create a new task for the current user; it always starts as `todo`.",
)
def create_task(
    payload: schemas.TaskCreate,
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return tasks.create(
        user_id,
        payload.title,
        description=payload.description,
        priority=payload.priority,
        due_date=payload.due_date,
    )


# 3) Get a specific task (owner-only)
@router.get("/{task_id}", response_model=schemas.TaskOut, summary="Get a task by ID")
def get_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return tasks.get_by_id(user_id, task_id)


# 4) Mark a task as done (owner-only, idempotent)
@router.patch(
    "/{task_id}/complete",
    response_model=schemas.TaskOut,
    summary="Mark as done (owner-only)",
    description=(
        "Set the task `status` to **done**. Owner-only and idempotent.\n\n"
        "• **404** if task not found\n"
        "• **403** if you are not the owner"
    ),
)
def complete_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return tasks.complete(user_id, task_id)


# 5) Partially update a task (owner-only)
@router.api_route(
    "/{task_id}",
    methods=["PUT", "PATCH"],
    response_model=schemas.TaskOut,
    summary="Update a task (owner-only)",
    description="Only the fields present in the body change; everything else is left as is.",
)
def update_task(
    task_id: int,
    payload: schemas.TaskUpdate,
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    return tasks.update(user_id, task_id, payload.model_dump(exclude_unset=True))


# 6) Delete a task (owner-only)
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task (owner-only)",
    description="Delete a task permanently if you are the owner.",
)
def delete_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    tasks.delete(user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
