"""Tasktracker domain models - pure business entities.

This package contains the dataclasses and enums describing tasks, epics and
subtasks. They have no dependencies on storage or the HTTP layer.
"""

from tasktracker.model.task import (
    EpicDetails,
    SubtaskDetails,
    Task,
    TaskStatus,
    TaskType,
    create_epic,
    create_subtask,
    create_task,
    duration_to_minutes,
)

__all__ = [
    "EpicDetails",
    "SubtaskDetails",
    "Task",
    "TaskStatus",
    "TaskType",
    "create_epic",
    "create_subtask",
    "create_task",
    "duration_to_minutes",
]
