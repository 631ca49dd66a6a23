"""FastAPI application factory for the tasktracker API."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasktracker import __version__
from tasktracker.api.routes import epics_router, subtasks_router, tasks_router, views_router
from tasktracker.core.errors import NotFoundError, TaskTrackerError, ValidationError
from tasktracker.stores.history import DEFAULT_HISTORY_LIMIT
from tasktracker.stores.task import TaskStore

logger = logging.getLogger(__name__)


# =============================================================================
# Error Mapping
# =============================================================================


async def _not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})


async def _validation_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_406_NOT_ACCEPTABLE, content={"error": str(exc)})


async def _internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})


def _register_error_handlers(app: FastAPI) -> None:
    """Map store errors to ``{"error": message}`` responses.

    NotFoundError -> 404, ValidationError -> 406, anything else -> 500.
    Request validation keeps FastAPI's own 422 response.
    """
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(ValidationError, _validation_handler)
    app.add_exception_handler(TaskTrackerError, _internal_error_handler)
    app.add_exception_handler(Exception, _internal_error_handler)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(config: dict[str, Any] | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration dictionary. Expected keys:
            - store: TaskStore instance to serve (default: new in-memory store)
            - history_limit: History cap for the default store (default: 10)
            - cors_origins: List of allowed CORS origins (default: ["*"])

    Returns:
        Configured FastAPI application instance
    """
    default_config = {
        "store": None,
        "history_limit": DEFAULT_HISTORY_LIMIT,
        "cors_origins": ["*"],
    }

    app_config = {**default_config, **(config or {})}

    app = FastAPI(
        title="tasktracker API",
        description="REST API for tasks, epics and subtasks",
        version=__version__,
    )

    store = app_config["store"]
    if store is None:
        store = TaskStore(history_limit=app_config["history_limit"])

    app.state.config = app_config
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config["cors_origins"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount routes at /api/v1
    api_v1 = FastAPI()
    api_v1.include_router(tasks_router)
    api_v1.include_router(epics_router)
    api_v1.include_router(subtasks_router)
    api_v1.include_router(views_router)
    _register_error_handlers(api_v1)

    # Share state with sub-app so dependencies can reach the store
    api_v1.state = app.state

    app.mount("/api/v1", api_v1)

    logger.info(f"API created with {type(store).__name__}")
    return app
