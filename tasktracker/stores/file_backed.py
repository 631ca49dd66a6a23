"""Task store that writes a snapshot file after every change."""

import logging
from pathlib import Path

from tasktracker.stores.history import DEFAULT_HISTORY_LIMIT
from tasktracker.stores.snapshot import dump_snapshot, read_snapshot, write_snapshot
from tasktracker.stores.task import TaskStore

logger = logging.getLogger(__name__)


class FileBackedTaskStore(TaskStore):
    """TaskStore persisted to a snapshot file.

    With ``autosave`` enabled the snapshot is rewritten (atomically) after
    every successful mutation, while the store lock is still held, so the file
    always reflects a consistent state. The viewing history is not persisted.

    Example:
        >>> store = FileBackedTaskStore.load(Path("data/tasks.csv"))
        >>> store.add_task(create_task("Water plants"))
        >>> FileBackedTaskStore.load(Path("data/tasks.csv")).get_all_tasks()
        [Task(name='Water plants', ...)]
    """

    def __init__(
        self,
        snapshot_path: Path | str,
        history_limit: int | None = DEFAULT_HISTORY_LIMIT,
        autosave: bool = True,
    ):
        """Initialize an empty file-backed store.

        Args:
            snapshot_path: File the snapshot is written to.
            history_limit: Maximum number of history entries (None = unbounded).
            autosave: Write the snapshot after every mutation.
        """
        super().__init__(history_limit=history_limit)
        self.snapshot_path = Path(snapshot_path)
        self.autosave = autosave

        logger.info(f"FileBackedTaskStore initialized: {self.snapshot_path}")

    @classmethod
    def load(
        cls,
        snapshot_path: Path | str,
        history_limit: int | None = DEFAULT_HISTORY_LIMIT,
        autosave: bool = True,
    ) -> "FileBackedTaskStore":
        """Build a store from an existing snapshot (or an empty one if the file is missing).

        The whole file is parsed and validated before the store is built, so a
        malformed record leaves nothing half-loaded.

        Raises:
            MalformedRecordError: If any record in the snapshot is malformed.
        """
        entities = read_snapshot(snapshot_path)
        store = cls(snapshot_path, history_limit=history_limit, autosave=autosave)
        store.load_entities(entities)
        return store

    def _after_mutation(self) -> None:
        if self.autosave:
            self._save_unlocked()

    def _save_unlocked(self) -> None:
        """Write the snapshot. Caller must hold self._lock."""
        text = dump_snapshot(self._tasks.values(), self._epics.values(), self._subtasks.values())
        write_snapshot(self.snapshot_path, text)

    def save(self) -> None:
        """Write the snapshot now, regardless of ``autosave``.

        Raises:
            SnapshotSaveError: If the file could not be written.
        """
        with self._lock:
            self._save_unlocked()
        logger.info(f"Saved snapshot to {self.snapshot_path}")
