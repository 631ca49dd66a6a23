"""In-memory task store for tasks, epics and subtasks.

This module owns the three id-keyed collections and keeps the derived state
consistent with them: epic aggregates, the schedule index and the viewing
history. All state changes happen under a single lock per store instance.
"""

import copy
import logging
from collections.abc import Iterable
from threading import RLock

from tasktracker.core.errors import NotFoundError, ValidationError
from tasktracker.model.task import EpicDetails, SubtaskDetails, Task, TaskType
from tasktracker.stores.aggregate import aggregate_epic
from tasktracker.stores.history import DEFAULT_HISTORY_LIMIT, HistoryTracker
from tasktracker.stores.schedule import ScheduleIndex

logger = logging.getLogger(__name__)


class IdGenerator:
    """Monotonic id source shared by all three entity kinds of one store."""

    def __init__(self, start: int = 1):
        self._next = start

    def next_id(self) -> int:
        value = self._next
        self._next += 1
        return value

    def advance_past(self, max_id: int) -> None:
        """Make sure future ids are greater than ``max_id``."""
        if max_id >= self._next:
            self._next = max_id + 1

    @property
    def peek(self) -> int:
        return self._next


class TaskStore:
    """Manages tasks, epics and subtasks in memory.

    Provides CRUD operations per entity kind. Ids are unique across all three
    kinds and assigned on add. Scheduled entities (tasks and subtasks with a
    start time) may not overlap. Every successful lookup by id is recorded in
    the viewing history.

    Example:
        >>> store = TaskStore()
        >>> epic = store.add_epic(create_epic("Release 1.0"))
        >>> store.add_subtask(create_subtask(epic.id, "Changelog", status=TaskStatus.DONE))
        >>> store.get_epic_by_id(epic.id).status
        <TaskStatus.DONE: 'DONE'>
    """

    def __init__(self, history_limit: int | None = DEFAULT_HISTORY_LIMIT):
        """Initialize an empty store.

        Args:
            history_limit: Maximum number of history entries (None = unbounded).
        """
        self._tasks: dict[int, Task] = {}
        self._epics: dict[int, Task] = {}
        self._subtasks: dict[int, Task] = {}
        self._ids = IdGenerator()
        self._schedule = ScheduleIndex()
        self._history = HistoryTracker(limit=history_limit)
        self._lock = RLock()

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _after_mutation(self) -> None:
        """Hook invoked under the lock after every successful state change."""

    @staticmethod
    def _expect_type(task: Task, expected: TaskType) -> None:
        if task.type != expected:
            raise ValueError(f"Expected a {expected.value} entity, got {task.type.value}")

    @staticmethod
    def _lookup(collection: dict[int, Task], kind: str, entity_id: int) -> Task:
        try:
            return collection[entity_id]
        except KeyError:
            raise NotFoundError(kind, entity_id) from None

    def _check_slot(self, candidate: Task, exclude_id: int | None = None) -> None:
        """Raise ValidationError if ``candidate`` overlaps an indexed entity."""
        conflict = self._schedule.find_overlap(candidate, exclude_id=exclude_id)
        if conflict is not None:
            logger.warning(
                f"Rejected {candidate.type.value.lower()} '{candidate.name}': "
                f"overlaps {conflict.type.value.lower()} {conflict.id}"
            )
            raise ValidationError(
                f"{candidate.type.value.capitalize()} '{candidate.name}' overlaps "
                f"{conflict.type.value.lower()} {conflict.id} scheduled at "
                f"{conflict.start_time.isoformat() if conflict.start_time else 'unknown'}",
                conflicting_id=conflict.id,
            )

    def _reschedule(self, old: Task, new: Task) -> None:
        """Swap ``old``'s interval for ``new``'s, restoring ``old`` on overlap."""
        self._schedule.remove(old.id)
        try:
            self._check_slot(new, exclude_id=new.id)
        except ValidationError:
            self._schedule.insert(old)
            raise
        self._schedule.insert(new)

    def _forget(self, task: Task) -> None:
        """Drop every cross-reference to a removed entity."""
        self._schedule.remove(task.id)
        self._history.remove(task.id)

    def _resolve_subtasks(self, epic: Task) -> list[Task]:
        return [self._subtasks[sid] for sid in epic.subtask_ids if sid in self._subtasks]

    def _refresh_epic(self, epic: Task) -> None:
        """Recompute an epic's derived status, duration and time window in place."""
        aggregate = aggregate_epic(self._resolve_subtasks(epic))
        epic.status = aggregate.status
        epic.duration = aggregate.duration
        epic.start_time = aggregate.start_time
        if not isinstance(epic.details, EpicDetails):
            epic.details = EpicDetails()
        epic.details.end_time = aggregate.end_time
        logger.debug(f"Epic {epic.id} aggregated: {aggregate.status.value}, {len(epic.subtask_ids)} subtask(s)")

    # =========================================================================
    # Tasks
    # =========================================================================

    def get_all_tasks(self) -> list[Task]:
        with self._lock:
            return [copy.deepcopy(t) for t in self._tasks.values()]

    def get_task_by_id(self, task_id: int) -> Task:
        """Retrieve a task and record it in the history.

        Raises:
            NotFoundError: If no task has this id.
        """
        with self._lock:
            task = self._lookup(self._tasks, "task", task_id)
            self._history.record(task)
            return copy.deepcopy(task)

    def add_task(self, task: Task) -> Task:
        """Add a new task, assigning its id.

        Args:
            task: Task to add (any id it carries is ignored).

        Returns:
            Copy of the stored task with its assigned id.

        Raises:
            ValidationError: If the task's interval overlaps a scheduled entity.
        """
        self._expect_type(task, TaskType.TASK)
        with self._lock:
            new = copy.deepcopy(task)
            new.details = None
            if new.start_time is not None:
                self._check_slot(new)

            new.id = self._ids.next_id()
            self._tasks[new.id] = new
            self._schedule.insert(new)
            self._after_mutation()

        logger.info(f"Added task {new.id} ('{new.name}', {new.status.value})")
        return copy.deepcopy(new)

    def update_task(self, task: Task) -> Task:
        """Replace a stored task with ``task`` (matched by id).

        Raises:
            NotFoundError: If no task has this id.
            ValidationError: If the new interval overlaps a scheduled entity.
        """
        self._expect_type(task, TaskType.TASK)
        with self._lock:
            old = self._lookup(self._tasks, "task", task.id)
            new = copy.deepcopy(task)
            new.details = None

            self._reschedule(old, new)
            self._tasks[new.id] = new
            self._history.refresh(new)
            self._after_mutation()

        logger.info(f"Updated task {new.id} ('{new.name}', {new.status.value})")
        return copy.deepcopy(new)

    def remove_task_by_id(self, task_id: int) -> None:
        """Delete a task.

        Raises:
            NotFoundError: If no task has this id.
        """
        with self._lock:
            task = self._lookup(self._tasks, "task", task_id)
            del self._tasks[task_id]
            self._forget(task)
            self._after_mutation()

        logger.info(f"Removed task {task_id}")

    def remove_all_tasks(self) -> None:
        with self._lock:
            for task in self._tasks.values():
                self._forget(task)
            count = len(self._tasks)
            self._tasks.clear()
            self._after_mutation()

        logger.info(f"Removed all tasks ({count})")

    # =========================================================================
    # Epics
    # =========================================================================

    def get_all_epics(self) -> list[Task]:
        with self._lock:
            return [copy.deepcopy(e) for e in self._epics.values()]

    def get_epic_by_id(self, epic_id: int) -> Task:
        """Retrieve an epic and record it in the history.

        Raises:
            NotFoundError: If no epic has this id.
        """
        with self._lock:
            epic = self._lookup(self._epics, "epic", epic_id)
            self._history.record(epic)
            return copy.deepcopy(epic)

    def add_epic(self, epic: Task) -> Task:
        """Add a new epic. It starts without subtasks regardless of its payload.

        Returns:
            Copy of the stored epic with its assigned id and derived fields.
        """
        self._expect_type(epic, TaskType.EPIC)
        with self._lock:
            new = copy.deepcopy(epic)
            new.details = EpicDetails()
            new.id = self._ids.next_id()
            self._refresh_epic(new)
            self._epics[new.id] = new
            self._after_mutation()

        logger.info(f"Added epic {new.id} ('{new.name}')")
        return copy.deepcopy(new)

    def update_epic(self, epic: Task) -> Task:
        """Replace an epic's name and description, keeping its subtasks.

        The caller's subtask list and derived fields are ignored: the stored
        subtask ids are carried over and the aggregate is recomputed.

        Raises:
            NotFoundError: If no epic has this id.
        """
        self._expect_type(epic, TaskType.EPIC)
        with self._lock:
            old = self._lookup(self._epics, "epic", epic.id)
            new = copy.deepcopy(epic)
            new.details = EpicDetails(subtask_ids=list(old.subtask_ids))
            self._refresh_epic(new)
            self._epics[new.id] = new
            self._history.refresh(new)
            self._after_mutation()

        logger.info(f"Updated epic {new.id} ('{new.name}')")
        return copy.deepcopy(new)

    def remove_epic_by_id(self, epic_id: int) -> None:
        """Delete an epic together with all of its subtasks.

        Raises:
            NotFoundError: If no epic has this id.
        """
        with self._lock:
            epic = self._lookup(self._epics, "epic", epic_id)
            del self._epics[epic_id]
            self._history.remove(epic_id)

            removed = 0
            for subtask_id in epic.subtask_ids:
                subtask = self._subtasks.pop(subtask_id, None)
                if subtask is not None:
                    self._forget(subtask)
                    removed += 1
            self._after_mutation()

        logger.info(f"Removed epic {epic_id} and {removed} subtask(s)")

    def remove_all_epics(self) -> None:
        """Delete every epic and, with them, every subtask."""
        with self._lock:
            for epic in self._epics.values():
                self._history.remove(epic.id)
            count = len(self._epics)
            self._epics.clear()
            self.remove_all_subtasks()

        logger.info(f"Removed all epics ({count})")

    def get_subtasks_of_epic(self, epic_id: int) -> list[Task]:
        """List an epic's subtasks in the epic's stored order.

        Ids that no longer resolve are skipped. Does not touch the history.

        Raises:
            NotFoundError: If no epic has this id.
        """
        with self._lock:
            epic = self._lookup(self._epics, "epic", epic_id)
            return [copy.deepcopy(s) for s in self._resolve_subtasks(epic)]

    # =========================================================================
    # Subtasks
    # =========================================================================

    def get_all_subtasks(self) -> list[Task]:
        with self._lock:
            return [copy.deepcopy(s) for s in self._subtasks.values()]

    def get_subtask_by_id(self, subtask_id: int) -> Task:
        """Retrieve a subtask and record it in the history.

        Raises:
            NotFoundError: If no subtask has this id.
        """
        with self._lock:
            subtask = self._lookup(self._subtasks, "subtask", subtask_id)
            self._history.record(subtask)
            return copy.deepcopy(subtask)

    def add_subtask(self, subtask: Task) -> Task:
        """Add a subtask and attach it to its epic.

        Returns:
            Copy of the stored subtask with its assigned id.

        Raises:
            NotFoundError: If the referenced epic does not exist.
            ValidationError: If the subtask's interval overlaps a scheduled entity.
        """
        self._expect_type(subtask, TaskType.SUBTASK)
        if subtask.epic_id is None:
            raise ValueError("Subtask must reference an epic")

        with self._lock:
            epic = self._lookup(self._epics, "epic", subtask.epic_id)
            new = copy.deepcopy(subtask)
            if new.start_time is not None:
                self._check_slot(new)

            new.id = self._ids.next_id()
            self._subtasks[new.id] = new
            self._schedule.insert(new)
            epic.subtask_ids.append(new.id)
            self._refresh_epic(epic)
            self._after_mutation()

        logger.info(f"Added subtask {new.id} ('{new.name}', {new.status.value}) to epic {new.epic_id}")
        return copy.deepcopy(new)

    def update_subtask(self, subtask: Task) -> Task:
        """Replace a stored subtask and re-aggregate its epic.

        If the subtask now points at a different epic it is moved there and
        both epics are re-aggregated.

        Raises:
            NotFoundError: If the subtask or its (new) epic does not exist.
            ValidationError: If the new interval overlaps a scheduled entity.
        """
        self._expect_type(subtask, TaskType.SUBTASK)
        if subtask.epic_id is None:
            raise ValueError("Subtask must reference an epic")

        with self._lock:
            old = self._lookup(self._subtasks, "subtask", subtask.id)
            epic = self._lookup(self._epics, "epic", subtask.epic_id)
            new = copy.deepcopy(subtask)

            self._reschedule(old, new)
            self._subtasks[new.id] = new
            self._history.refresh(new)

            if old.epic_id != new.epic_id:
                previous = self._epics.get(old.epic_id) if old.epic_id is not None else None
                if previous is not None and new.id in previous.subtask_ids:
                    previous.subtask_ids.remove(new.id)
                    self._refresh_epic(previous)
                epic.subtask_ids.append(new.id)
                logger.info(f"Moved subtask {new.id} from epic {old.epic_id} to epic {new.epic_id}")
            self._refresh_epic(epic)
            self._after_mutation()

        logger.info(f"Updated subtask {new.id} ('{new.name}', {new.status.value})")
        return copy.deepcopy(new)

    def remove_subtask_by_id(self, subtask_id: int) -> None:
        """Delete a subtask, detach it from its epic and re-aggregate the epic.

        Raises:
            NotFoundError: If no subtask has this id.
        """
        with self._lock:
            subtask = self._lookup(self._subtasks, "subtask", subtask_id)
            del self._subtasks[subtask_id]
            self._forget(subtask)

            epic = self._epics.get(subtask.epic_id) if subtask.epic_id is not None else None
            if epic is not None:
                if subtask_id in epic.subtask_ids:
                    epic.subtask_ids.remove(subtask_id)
                self._refresh_epic(epic)
            self._after_mutation()

        logger.info(f"Removed subtask {subtask_id}")

    def remove_all_subtasks(self) -> None:
        """Delete every subtask and reset every epic to its empty aggregate."""
        with self._lock:
            for subtask in self._subtasks.values():
                self._forget(subtask)
            count = len(self._subtasks)
            self._subtasks.clear()

            for epic in self._epics.values():
                epic.subtask_ids.clear()
                self._refresh_epic(epic)
            self._after_mutation()

        logger.info(f"Removed all subtasks ({count})")

    # =========================================================================
    # Cross-cutting views
    # =========================================================================

    def get_prioritized_tasks(self) -> list[Task]:
        """All scheduled tasks and subtasks ascending by (start_time, id)."""
        with self._lock:
            return [copy.deepcopy(t) for t in self._schedule.ordered_snapshot()]

    def get_history(self) -> list[Task]:
        """Recently viewed entities, oldest first."""
        with self._lock:
            return [copy.deepcopy(t) for t in self._history.snapshot()]

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {
                "tasks": len(self._tasks),
                "epics": len(self._epics),
                "subtasks": len(self._subtasks),
                "scheduled": len(self._schedule),
                "history": len(self._history),
            }

    def load_entities(self, entities: Iterable[Task]) -> None:
        """Replace the store's contents with already-validated entities.

        Used by the snapshot loader. Entities keep their ids; subtasks are
        linked to their epics in iteration order, every epic is re-aggregated,
        the schedule index is rebuilt and the id generator is advanced past
        the largest id seen. The history starts empty.

        Args:
            entities: Tasks, epics and subtasks with unique ids.
        """
        with self._lock:
            self._tasks.clear()
            self._epics.clear()
            self._subtasks.clear()
            self._schedule.clear()
            self._history.clear()

            subtasks: list[Task] = []
            for entity in entities:
                loaded = copy.deepcopy(entity)
                if loaded.type == TaskType.EPIC:
                    loaded.details = EpicDetails()
                    self._epics[loaded.id] = loaded
                elif loaded.type == TaskType.SUBTASK:
                    subtasks.append(loaded)
                else:
                    loaded.details = None
                    self._tasks[loaded.id] = loaded
                self._ids.advance_past(loaded.id)

            for subtask in subtasks:
                if not isinstance(subtask.details, SubtaskDetails):
                    raise ValueError(f"Subtask {subtask.id} has no epic reference")
                self._subtasks[subtask.id] = subtask
                epic = self._epics.get(subtask.details.epic_id)
                if epic is not None:
                    epic.subtask_ids.append(subtask.id)

            for epic in self._epics.values():
                self._refresh_epic(epic)
            for task in [*self._tasks.values(), *self._subtasks.values()]:
                self._schedule.insert(task)

        logger.info(
            f"Loaded {len(self._tasks)} task(s), {len(self._epics)} epic(s), "
            f"{len(self._subtasks)} subtask(s); next id {self._ids.peek}"
        )
