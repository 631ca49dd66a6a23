"""Storage layer for tasks, epics and subtasks.

This package contains:
- TaskStore: in-memory CRUD with epic aggregation, schedule and history
- FileBackedTaskStore: TaskStore with snapshot write-through
- ScheduleIndex: ordered index of scheduled entities with overlap checks
- HistoryTracker: bounded recently-viewed list
- aggregate_epic: pure epic status/time aggregation
"""

from tasktracker.stores.aggregate import EpicAggregate, aggregate_epic
from tasktracker.stores.file_backed import FileBackedTaskStore
from tasktracker.stores.history import DEFAULT_HISTORY_LIMIT, HistoryTracker
from tasktracker.stores.schedule import ScheduleIndex, intervals_overlap
from tasktracker.stores.snapshot import dump_snapshot, parse_snapshot, read_snapshot, write_snapshot
from tasktracker.stores.task import IdGenerator, TaskStore

__all__ = [
    # Task store
    "IdGenerator",
    "TaskStore",
    "FileBackedTaskStore",
    # Derived state
    "EpicAggregate",
    "aggregate_epic",
    "ScheduleIndex",
    "intervals_overlap",
    "DEFAULT_HISTORY_LIMIT",
    "HistoryTracker",
    # Snapshot format
    "dump_snapshot",
    "parse_snapshot",
    "read_snapshot",
    "write_snapshot",
]
