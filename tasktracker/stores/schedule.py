"""Schedule index: ordered view of every scheduled task and subtask.

Entries are kept sorted by ``(start_time, id)`` with ``bisect`` so the
prioritized listing is a plain copy. Overlap checks only look at entries
that start before the candidate ends.
"""

import bisect
import logging
from datetime import datetime

from tasktracker.model.task import Task

logger = logging.getLogger(__name__)


def intervals_overlap(a: Task, b: Task) -> bool:
    """Check whether the half-open intervals [start, end) of two entities intersect.

    An entity without a start time never overlaps anything.
    """
    a_start, a_end = a.start_time, a.end_time
    b_start, b_end = b.start_time, b.end_time
    if a_start is None or b_start is None or a_end is None or b_end is None:
        return False
    return a_start < b_end and b_start < a_end


class ScheduleIndex:
    """Ordered index of scheduled entities used for overlap detection.

    Example:
        >>> index = ScheduleIndex()
        >>> index.insert(task)
        >>> index.has_overlap(candidate)
        False
        >>> index.ordered_snapshot()
        [task]
    """

    def __init__(self) -> None:
        self._keys: list[tuple[datetime, int]] = []
        self._entries: dict[int, Task] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._entries

    def insert(self, task: Task) -> None:
        """Add a scheduled entity. Epics and entities without a start time are ignored.

        Args:
            task: Task or subtask to index (replaces any entry with the same id).
        """
        if not task.is_scheduled or task.start_time is None:
            return
        if task.id in self._entries:
            self.remove(task.id)

        bisect.insort(self._keys, (task.start_time, task.id))
        self._entries[task.id] = task
        logger.debug(f"Indexed {task.type.value} {task.id} at {task.start_time.isoformat()}")

    def remove(self, task_id: int) -> Task | None:
        """Drop an entity from the index.

        Args:
            task_id: Id of the entity to drop.

        Returns:
            The removed entry, or None if the id was not indexed.
        """
        task = self._entries.pop(task_id, None)
        if task is None:
            return None

        key = (task.start_time, task.id)
        pos = bisect.bisect_left(self._keys, key)
        if pos < len(self._keys) and self._keys[pos] == key:
            del self._keys[pos]
        logger.debug(f"Unindexed {task.type.value} {task_id}")
        return task

    def clear(self) -> None:
        self._keys.clear()
        self._entries.clear()

    def find_overlap(self, candidate: Task, exclude_id: int | None = None) -> Task | None:
        """Return the first indexed entity overlapping ``candidate``, if any.

        Args:
            candidate: Entity whose interval is being checked.
            exclude_id: Id to skip (the candidate itself during an update).

        Returns:
            The conflicting entity, or None when the slot is free.
        """
        candidate_end = candidate.end_time
        if candidate.start_time is None or candidate_end is None:
            return None

        # Only entries starting before the candidate ends can intersect it
        stop = bisect.bisect_left(self._keys, (candidate_end,))
        for _, task_id in self._keys[:stop]:
            if task_id == exclude_id:
                continue
            other = self._entries[task_id]
            if intervals_overlap(other, candidate):
                return other
        return None

    def has_overlap(self, candidate: Task, exclude_id: int | None = None) -> bool:
        return self.find_overlap(candidate, exclude_id) is not None

    def ordered_snapshot(self) -> list[Task]:
        """Indexed entities ascending by (start_time, id)."""
        return [self._entries[task_id] for _, task_id in self._keys]
