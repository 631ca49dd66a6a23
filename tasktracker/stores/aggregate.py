"""Epic aggregation: derive an epic's status and time window from its subtasks."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from tasktracker.model.task import Task, TaskStatus


@dataclass(frozen=True)
class EpicAggregate:
    """Derived epic fields.

    Attributes:
        status: NEW, DONE or IN_PROGRESS depending on the subtask mix.
        duration: Sum of subtask durations.
        start_time: Earliest subtask start, None if no subtask is scheduled.
        end_time: Latest subtask end, None if no subtask is scheduled.
    """

    status: TaskStatus
    duration: timedelta
    start_time: datetime | None
    end_time: datetime | None


def aggregate_epic(subtasks: Iterable[Task]) -> EpicAggregate:
    """Compute an epic's derived fields from its live subtasks.

    Rules:
        - no subtasks: NEW, zero duration, no time window
        - every subtask DONE: DONE
        - every subtask NEW: NEW
        - anything else: IN_PROGRESS

    Args:
        subtasks: The epic's subtasks that still resolve in the store.

    Returns:
        EpicAggregate with status, total duration and time window.
    """
    subs = list(subtasks)
    if not subs:
        return EpicAggregate(
            status=TaskStatus.NEW,
            duration=timedelta(0),
            start_time=None,
            end_time=None,
        )

    if all(s.status == TaskStatus.DONE for s in subs):
        status = TaskStatus.DONE
    elif all(s.status == TaskStatus.NEW for s in subs):
        status = TaskStatus.NEW
    else:
        status = TaskStatus.IN_PROGRESS

    duration = sum((s.duration or timedelta(0) for s in subs), timedelta(0))

    scheduled = [s for s in subs if s.start_time is not None]
    start_time = min((s.start_time for s in scheduled), default=None)
    end_time = max((s.end_time for s in scheduled), default=None)

    return EpicAggregate(
        status=status,
        duration=duration,
        start_time=start_time,
        end_time=end_time,
    )
