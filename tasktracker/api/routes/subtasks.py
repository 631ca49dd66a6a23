"""Subtasks API routes."""

from fastapi import APIRouter, status

from tasktracker.api.dependencies import Store
from tasktracker.api.schemas.tasks import (
    ERROR_RESPONSES,
    SubtaskCreate,
    SubtaskUpdate,
    TaskListResponse,
    TaskResponse,
)

router = APIRouter(prefix="/subtasks", tags=["subtasks"], responses=ERROR_RESPONSES)


# =============================================================================
# Collection
# =============================================================================


@router.get("", response_model=TaskListResponse)
def list_subtasks(store: Store) -> TaskListResponse:
    return TaskListResponse.from_tasks(store.get_all_subtasks())


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_subtask(data: SubtaskCreate, store: Store) -> TaskResponse:
    """Create a subtask inside an existing epic.

    Args:
        data: Subtask creation data, including the owning epic id
        store: Task store

    Returns:
        TaskResponse: Created subtask with its assigned id

    Raises:
        NotFoundError: 404 if the epic does not exist
        ValidationError: 406 if the subtask overlaps a scheduled entity
    """
    return TaskResponse.from_task(store.add_subtask(data.to_task()))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_all_subtasks(store: Store) -> None:
    """Delete every subtask. Epics remain, reset to NEW."""
    store.remove_all_subtasks()


# =============================================================================
# Single Subtask Operations
# =============================================================================


@router.get("/{subtask_id}", response_model=TaskResponse)
def get_subtask(subtask_id: int, store: Store) -> TaskResponse:
    """Get a subtask by id. The subtask is recorded in the viewing history.

    Raises:
        NotFoundError: 404 if no subtask has this id
    """
    return TaskResponse.from_task(store.get_subtask_by_id(subtask_id))


@router.put("/{subtask_id}", response_model=TaskResponse)
def update_subtask(subtask_id: int, data: SubtaskUpdate, store: Store) -> TaskResponse:
    """Replace a subtask. A different ``epic_id`` moves it to that epic.

    Raises:
        NotFoundError: 404 if the subtask or the epic does not exist
        ValidationError: 406 if the new interval overlaps a scheduled entity
    """
    return TaskResponse.from_task(store.update_subtask(data.to_task(subtask_id)))


@router.delete("/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subtask(subtask_id: int, store: Store) -> None:
    """Delete a subtask and re-aggregate its epic.

    Raises:
        NotFoundError: 404 if no subtask has this id
    """
    store.remove_subtask_by_id(subtask_id)
