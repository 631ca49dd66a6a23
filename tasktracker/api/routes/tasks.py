"""Tasks API routes for plain (non-epic) tasks."""

from fastapi import APIRouter, status

from tasktracker.api.dependencies import Store
from tasktracker.api.schemas.tasks import ERROR_RESPONSES, TaskCreate, TaskListResponse, TaskResponse, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"], responses=ERROR_RESPONSES)


# =============================================================================
# Collection
# =============================================================================


@router.get("", response_model=TaskListResponse)
def list_tasks(store: Store) -> TaskListResponse:
    """List every plain task."""
    return TaskListResponse.from_tasks(store.get_all_tasks())


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(data: TaskCreate, store: Store) -> TaskResponse:
    """Create a new task.

    Args:
        data: Task creation data
        store: Task store

    Returns:
        TaskResponse: Created task with its assigned id

    Raises:
        ValidationError: 406 if the task overlaps a scheduled entity
    """
    return TaskResponse.from_task(store.add_task(data.to_task()))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_all_tasks(store: Store) -> None:
    store.remove_all_tasks()


# =============================================================================
# Single Task Operations
# =============================================================================


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, store: Store) -> TaskResponse:
    """Get a task by id. The task is recorded in the viewing history.

    Raises:
        NotFoundError: 404 if no task has this id
    """
    return TaskResponse.from_task(store.get_task_by_id(task_id))


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(task_id: int, data: TaskUpdate, store: Store) -> TaskResponse:
    """Replace a task.

    Raises:
        NotFoundError: 404 if no task has this id
        ValidationError: 406 if the new interval overlaps a scheduled entity
    """
    return TaskResponse.from_task(store.update_task(data.to_task(task_id)))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: int, store: Store) -> None:
    """Delete a task.

    Raises:
        NotFoundError: 404 if no task has this id
    """
    store.remove_task_by_id(task_id)
