"""Read-only views across all entity kinds: history, prioritized list, health."""

from fastapi import APIRouter

from tasktracker import __version__
from tasktracker.api.dependencies import Store
from tasktracker.api.schemas.tasks import ErrorResponse, HealthResponse, TaskListResponse

router = APIRouter(tags=["views"], responses={500: {"model": ErrorResponse, "description": "Internal error"}})


@router.get("/history", response_model=TaskListResponse)
def get_history(store: Store) -> TaskListResponse:
    """Recently viewed tasks, epics and subtasks, oldest first."""
    return TaskListResponse.from_tasks(store.get_history())


@router.get("/prioritized", response_model=TaskListResponse)
def get_prioritized(store: Store) -> TaskListResponse:
    """Scheduled tasks and subtasks ordered by start time, then id."""
    return TaskListResponse.from_tasks(store.get_prioritized_tasks())


@router.get("/health", response_model=HealthResponse)
def health(store: Store) -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, counts=store.counts())
