"""Pydantic schemas for the task, epic and subtask endpoints."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tasktracker.model.task import (
    Task,
    TaskStatus,
    TaskType,
    create_epic,
    create_subtask,
    create_task,
    duration_to_minutes,
)


def _to_local_naive(value: datetime | None) -> datetime | None:
    """Store times are naive local date-times; convert aware input to local time."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _to_duration(minutes: int | None) -> timedelta | None:
    return timedelta(minutes=minutes) if minutes else None


class TaskCreate(BaseModel):
    """Request model for creating a plain task.

    Used in POST /tasks. Any client-supplied id is not accepted; the store
    assigns one.

    Attributes:
        name: Short title
        description: Free-form description
        status: Initial status (defaults to NEW)
        start_time: Scheduled start (local date-time), omit for unscheduled
        duration_minutes: Planned duration in whole minutes
    """

    name: str = Field(..., min_length=1, description="Short title")
    description: str = Field("", description="Free-form description")
    status: TaskStatus = Field(TaskStatus.NEW, description="Task status")
    start_time: datetime | None = Field(None, description="Scheduled start (ISO 8601 local date-time)")
    duration_minutes: int | None = Field(None, ge=0, description="Planned duration in minutes")

    model_config = ConfigDict(extra="forbid")

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: datetime | None) -> datetime | None:
        return _to_local_naive(v)

    @model_validator(mode="after")
    def validate_end_time(self) -> "TaskCreate":
        try:
            duration = _to_duration(self.duration_minutes)
            if self.start_time is not None and duration is not None:
                self.start_time + duration
        except OverflowError:
            raise ValueError("start_time plus duration_minutes is past the latest representable date") from None
        return self

    def to_task(self, task_id: int = 0) -> Task:
        task = create_task(
            self.name,
            description=self.description,
            status=self.status,
            start_time=self.start_time,
            duration=_to_duration(self.duration_minutes),
        )
        task.id = task_id
        return task


class TaskUpdate(TaskCreate):
    """Request model for PUT /tasks/{id}: a full replacement of the task."""


class EpicCreate(BaseModel):
    """Request model for creating or replacing an epic.

    Only the name and description are writable; status, duration and time
    window are derived from the epic's subtasks.
    """

    name: str = Field(..., min_length=1, description="Short title")
    description: str = Field("", description="Free-form description")

    model_config = ConfigDict(extra="forbid")

    def to_task(self, epic_id: int = 0) -> Task:
        epic = create_epic(self.name, description=self.description)
        epic.id = epic_id
        return epic


class EpicUpdate(EpicCreate):
    """Request model for PUT /epics/{id}."""


class SubtaskCreate(TaskCreate):
    """Request model for creating a subtask.

    Attributes:
        epic_id: Id of the owning epic (must exist)
    """

    epic_id: int = Field(..., ge=1, description="Id of the owning epic")

    def to_task(self, task_id: int = 0) -> Task:
        subtask = create_subtask(
            self.epic_id,
            self.name,
            description=self.description,
            status=self.status,
            start_time=self.start_time,
            duration=_to_duration(self.duration_minutes),
        )
        subtask.id = task_id
        return subtask


class SubtaskUpdate(SubtaskCreate):
    """Request model for PUT /subtasks/{id}. Changing epic_id moves the subtask."""


class TaskResponse(BaseModel):
    """Response model for a single task, epic or subtask.

    ``epic_id`` is only set for subtasks and ``subtask_ids`` only for epics.
    """

    id: int
    type: TaskType
    name: str
    description: str
    status: TaskStatus
    start_time: datetime | None = None
    duration_minutes: int | None = None
    end_time: datetime | None = None
    epic_id: int | None = None
    subtask_ids: list[int] | None = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            type=task.type,
            name=task.name,
            description=task.description,
            status=task.status,
            start_time=task.start_time,
            duration_minutes=duration_to_minutes(task.duration),
            end_time=task.end_time,
            epic_id=task.epic_id,
            subtask_ids=list(task.subtask_ids) if task.type == TaskType.EPIC else None,
        )


class TaskListResponse(BaseModel):
    """Response model for list endpoints."""

    items: list[TaskResponse]
    total: int

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_tasks(cls, tasks: list[Task]) -> "TaskListResponse":
        return cls(items=[TaskResponse.from_task(t) for t in tasks], total=len(tasks))


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    status: str
    version: str
    counts: dict[str, int]

    model_config = ConfigDict(extra="forbid")


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""

    error: str


ERROR_RESPONSES: dict[int | str, dict] = {
    404: {"model": ErrorResponse, "description": "Entity not found"},
    406: {"model": ErrorResponse, "description": "Schedule overlap"},
    500: {"model": ErrorResponse, "description": "Internal error"},
}
