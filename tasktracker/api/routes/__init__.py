"""API route modules."""

from tasktracker.api.routes.epics import router as epics_router
from tasktracker.api.routes.subtasks import router as subtasks_router
from tasktracker.api.routes.tasks import router as tasks_router
from tasktracker.api.routes.views import router as views_router

__all__ = ["epics_router", "subtasks_router", "tasks_router", "views_router"]
