"""Typed errors raised by the task store and its persistence layer."""


class TaskTrackerError(Exception):
    """Base class for all tasktracker errors."""


class NotFoundError(TaskTrackerError):
    """Raised when an operation references an id absent from the relevant map."""

    def __init__(self, kind: str, entity_id: int):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} with id {entity_id} not found")


class ValidationError(TaskTrackerError):
    """Raised when a scheduled entity would overlap another scheduled entity."""

    def __init__(self, message: str, conflicting_id: int | None = None):
        self.conflicting_id = conflicting_id
        super().__init__(message)


class MalformedRecordError(TaskTrackerError):
    """Raised when a snapshot line cannot be parsed. Aborts the whole load."""

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed record on line {line_number}: {reason} ({line!r})")


class SnapshotSaveError(TaskTrackerError):
    """Raised when a snapshot could not be written to disk."""
