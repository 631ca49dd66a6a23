"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from tasktracker.stores.task import TaskStore


def get_store(request: Request) -> TaskStore:
    """
    Get the task store from app state.

    Args:
        request: FastAPI request object

    Returns:
        TaskStore instance shared by every request
    """
    store: TaskStore = request.app.state.store
    return store


# Type alias for annotating dependencies
Store = Annotated[TaskStore, Depends(get_store)]
