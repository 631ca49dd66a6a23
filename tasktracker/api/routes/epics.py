"""Epics API routes. Epic status and time window are derived from subtasks."""

from fastapi import APIRouter, status

from tasktracker.api.dependencies import Store
from tasktracker.api.schemas.tasks import ERROR_RESPONSES, EpicCreate, EpicUpdate, TaskListResponse, TaskResponse

router = APIRouter(prefix="/epics", tags=["epics"], responses=ERROR_RESPONSES)


# =============================================================================
# Collection
# =============================================================================


@router.get("", response_model=TaskListResponse)
def list_epics(store: Store) -> TaskListResponse:
    return TaskListResponse.from_tasks(store.get_all_epics())


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_epic(data: EpicCreate, store: Store) -> TaskResponse:
    """Create a new, empty epic."""
    return TaskResponse.from_task(store.add_epic(data.to_task()))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_all_epics(store: Store) -> None:
    """Delete every epic together with every subtask."""
    store.remove_all_epics()


# =============================================================================
# Single Epic Operations
# =============================================================================


@router.get("/{epic_id}", response_model=TaskResponse)
def get_epic(epic_id: int, store: Store) -> TaskResponse:
    """Get an epic by id. The epic is recorded in the viewing history.

    Raises:
        NotFoundError: 404 if no epic has this id
    """
    return TaskResponse.from_task(store.get_epic_by_id(epic_id))


@router.put("/{epic_id}", response_model=TaskResponse)
def update_epic(epic_id: int, data: EpicUpdate, store: Store) -> TaskResponse:
    """Rename or redescribe an epic. Its subtasks are kept.

    Raises:
        NotFoundError: 404 if no epic has this id
    """
    return TaskResponse.from_task(store.update_epic(data.to_task(epic_id)))


@router.delete("/{epic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_epic(epic_id: int, store: Store) -> None:
    """Delete an epic and all of its subtasks.

    Raises:
        NotFoundError: 404 if no epic has this id
    """
    store.remove_epic_by_id(epic_id)


@router.get("/{epic_id}/subtasks", response_model=TaskListResponse)
def list_epic_subtasks(epic_id: int, store: Store) -> TaskListResponse:
    """List an epic's subtasks in the order they were added.

    Raises:
        NotFoundError: 404 if no epic has this id
    """
    return TaskListResponse.from_tasks(store.get_subtasks_of_epic(epic_id))
