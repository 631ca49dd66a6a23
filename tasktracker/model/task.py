"""Domain models for task tracking."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum


class TaskStatus(StrEnum):
    """Status values for task lifecycle.

    Lifecycle flow:
        NEW -> IN_PROGRESS -> DONE

    Epic status is never set directly; it is derived from the epic's subtasks.
    """

    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskType(StrEnum):
    """Kind tag for the three entity variants."""

    TASK = "TASK"
    EPIC = "EPIC"
    SUBTASK = "SUBTASK"


@dataclass
class EpicDetails:
    """Epic-only payload.

    Attributes:
        subtask_ids: Ids of the epic's subtasks, in insertion order.
        end_time: Derived end of the latest scheduled subtask.
    """

    subtask_ids: list[int] = field(default_factory=list)
    end_time: datetime | None = None


@dataclass
class SubtaskDetails:
    """Subtask-only payload.

    Attributes:
        epic_id: Id of the owning epic.
    """

    epic_id: int


@dataclass
class Task:
    """A tracked entity: plain task, epic or subtask.

    The shared fields live here; whatever only one kind carries lives in
    ``details`` and the ``type`` tag says which payload to expect.

    Attributes:
        name: Short title.
        description: Free-form description.
        status: Current status (derived for epics).
        start_time: Scheduled start as a naive local date-time (derived for epics).
        duration: Planned duration (derived for epics).
        id: Store-assigned identifier, 0 until the entity is added.
        type: Entity kind.
        details: Kind-specific payload (None for plain tasks).
    """

    name: str
    description: str = ""
    status: TaskStatus = TaskStatus.NEW
    start_time: datetime | None = None
    duration: timedelta | None = None
    id: int = 0
    type: TaskType = TaskType.TASK
    details: EpicDetails | SubtaskDetails | None = None

    @property
    def is_scheduled(self) -> bool:
        """True for tasks and subtasks that carry a start time."""
        return self.type != TaskType.EPIC and self.start_time is not None

    @property
    def end_time(self) -> datetime | None:
        if isinstance(self.details, EpicDetails):
            return self.details.end_time
        if self.start_time is None:
            return None
        return self.start_time + (self.duration or timedelta(0))

    @property
    def epic_id(self) -> int | None:
        if isinstance(self.details, SubtaskDetails):
            return self.details.epic_id
        return None

    @property
    def subtask_ids(self) -> list[int]:
        if isinstance(self.details, EpicDetails):
            return self.details.subtask_ids
        return []


def duration_to_minutes(duration: timedelta | None) -> int | None:
    """Whole minutes in a duration, or None when there is no duration."""
    if duration is None:
        return None
    return int(duration.total_seconds() // 60)


def create_task(
    name: str,
    description: str = "",
    status: TaskStatus = TaskStatus.NEW,
    start_time: datetime | None = None,
    duration: timedelta | None = None,
) -> Task:
    """Factory function for a plain task (id is assigned by the store).

    Example:
        >>> task = create_task(
        ...     "Write report",
        ...     start_time=datetime(2025, 1, 1, 10, 0),
        ...     duration=timedelta(minutes=60),
        ... )
    """
    return Task(
        name=name,
        description=description,
        status=status,
        start_time=start_time,
        duration=duration,
        type=TaskType.TASK,
    )


def create_epic(name: str, description: str = "") -> Task:
    """Factory function for an epic with no subtasks yet."""
    return Task(
        name=name,
        description=description,
        duration=timedelta(0),
        type=TaskType.EPIC,
        details=EpicDetails(),
    )


def create_subtask(
    epic_id: int,
    name: str,
    description: str = "",
    status: TaskStatus = TaskStatus.NEW,
    start_time: datetime | None = None,
    duration: timedelta | None = None,
) -> Task:
    """Factory function for a subtask owned by ``epic_id``."""
    return Task(
        name=name,
        description=description,
        status=status,
        start_time=start_time,
        duration=duration,
        type=TaskType.SUBTASK,
        details=SubtaskDetails(epic_id=epic_id),
    )
