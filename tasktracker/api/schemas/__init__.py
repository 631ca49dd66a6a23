"""Pydantic schemas for API request/response models."""

from tasktracker.api.schemas.tasks import (
    EpicCreate,
    EpicUpdate,
    ErrorResponse,
    HealthResponse,
    SubtaskCreate,
    SubtaskUpdate,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)

__all__ = [
    "EpicCreate",
    "EpicUpdate",
    "ErrorResponse",
    "HealthResponse",
    "SubtaskCreate",
    "SubtaskUpdate",
    "TaskCreate",
    "TaskListResponse",
    "TaskResponse",
    "TaskUpdate",
]
