"""Recently-viewed history of tasks, epics and subtasks.

Entries live in a dict keyed by entity id; each node stores the ids of its
neighbours instead of object references, giving O(1) append and O(1)
removal from any position.
"""

import logging
from dataclasses import dataclass

from tasktracker.model.task import Task

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


@dataclass
class _Node:
    task: Task
    prev: int | None = None
    next: int | None = None


class HistoryTracker:
    """Bounded, de-duplicated recency list (oldest first).

    Re-viewing an entity moves it to the most-recent position without growing
    the list. When ``limit`` is exceeded the oldest entry is evicted; pass
    ``limit=None`` for an unbounded history.

    Example:
        >>> history = HistoryTracker(limit=10)
        >>> history.record(task_1)
        >>> history.record(task_2)
        >>> history.record(task_1)
        >>> [t.id for t in history.snapshot()]
        [2, 1]
    """

    def __init__(self, limit: int | None = DEFAULT_HISTORY_LIMIT):
        if limit is not None and limit < 1:
            raise ValueError(f"History limit must be positive or None, got {limit}")
        self.limit = limit
        self._nodes: dict[int, _Node] = {}
        self._head: int | None = None
        self._tail: int | None = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._nodes

    def record(self, task: Task) -> None:
        """Append ``task`` as the most recent view, dropping any earlier view of it."""
        self.remove(task.id)

        node = _Node(task=task, prev=self._tail)
        if self._tail is not None:
            self._nodes[self._tail].next = task.id
        else:
            self._head = task.id
        self._tail = task.id
        self._nodes[task.id] = node

        if self.limit is not None and len(self._nodes) > self.limit and self._head is not None:
            evicted = self._head
            self.remove(evicted)
            logger.debug(f"History full, evicted {evicted}")

    def refresh(self, task: Task) -> None:
        """Replace the stored copy of ``task`` without changing its position."""
        node = self._nodes.get(task.id)
        if node is not None:
            node.task = task

    def remove(self, task_id: int) -> bool:
        """Unlink an entry.

        Args:
            task_id: Id of the entity to forget.

        Returns:
            True if the id was present.
        """
        node = self._nodes.pop(task_id, None)
        if node is None:
            return False

        if node.prev is not None:
            self._nodes[node.prev].next = node.next
        else:
            self._head = node.next
        if node.next is not None:
            self._nodes[node.next].prev = node.prev
        else:
            self._tail = node.prev
        return True

    def clear(self) -> None:
        self._nodes.clear()
        self._head = None
        self._tail = None

    def snapshot(self) -> list[Task]:
        """Viewed entities from oldest to most recent."""
        history = []
        current = self._head
        while current is not None:
            node = self._nodes[current]
            history.append(node.task)
            current = node.next
        return history
