"""Line-oriented snapshot format for task stores.

Layout (UTF-8, one record per line, tasks then epics then subtasks):

    id,type,name,status,description,startTime,duration,epic
    1,TASK,Write report,NEW,Quarterly numbers,2025-01-01T10:00:00,60,
    2,EPIC,Release,IN_PROGRESS,,2025-01-02T09:00:00,30,
    3,SUBTASK,Changelog,DONE,,2025-01-02T09:00:00,30,2

``startTime`` is an ISO-8601 local date-time or ``null``; ``duration`` is in
whole minutes (``0`` when absent); ``epic`` is only filled for subtasks.
Values containing commas, quotes or newlines are quoted by the csv module.
"""

import csv
import io
import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from pathlib import Path

from tasktracker.core.errors import MalformedRecordError, SnapshotSaveError
from tasktracker.model.task import (
    EpicDetails,
    SubtaskDetails,
    Task,
    TaskStatus,
    TaskType,
    duration_to_minutes,
)
from tasktracker.stores.schedule import ScheduleIndex

logger = logging.getLogger(__name__)

HEADER_FIELDS = ["id", "type", "name", "status", "description", "startTime", "duration", "epic"]
HEADER = ",".join(HEADER_FIELDS)
NULL_TIME = "null"


def _to_record(task: Task) -> list[str]:
    return [
        str(task.id),
        task.type.value,
        task.name,
        task.status.value,
        task.description,
        task.start_time.isoformat() if task.start_time else NULL_TIME,
        str(duration_to_minutes(task.duration) or 0),
        str(task.epic_id) if task.type == TaskType.SUBTASK else "",
    ]


def _linked_order(epics: list[Task], subtasks: Iterable[Task]) -> list[Task]:
    """Subtasks epic by epic, each in its epic's stored order; unlinked ones last by id."""
    by_id = {s.id: s for s in subtasks}
    ordered: list[Task] = []
    for epic in epics:
        for subtask_id in epic.subtask_ids:
            subtask = by_id.pop(subtask_id, None)
            if subtask is not None:
                ordered.append(subtask)
    ordered.extend(sorted(by_id.values(), key=lambda t: t.id))
    return ordered


def dump_snapshot(tasks: Iterable[Task], epics: Iterable[Task], subtasks: Iterable[Task]) -> str:
    """Render entities in snapshot layout.

    Tasks and epics are written by id. Subtasks follow their epics' subtask
    lists, so reloading (which links subtasks in file order) reproduces each
    epic's subtask order.

    Args:
        tasks: Plain tasks.
        epics: Epics.
        subtasks: Subtasks.

    Returns:
        Snapshot text: header, tasks, epics, subtasks and a trailing blank line.
    """
    sorted_epics = sorted(epics, key=lambda t: t.id)

    buffer = io.StringIO()
    buffer.write(HEADER + "\n")
    writer = csv.writer(buffer, lineterminator="\n")
    for group in (sorted(tasks, key=lambda t: t.id), sorted_epics, _linked_order(sorted_epics, subtasks)):
        for task in group:
            writer.writerow(_to_record(task))
    buffer.write("\n")
    return buffer.getvalue()


def _parse_record(row: list[str], line_number: int) -> Task:
    raw = ",".join(row)

    def fail(reason: str) -> MalformedRecordError:
        return MalformedRecordError(line_number, raw, reason)

    if len(row) != len(HEADER_FIELDS):
        raise fail(f"expected {len(HEADER_FIELDS)} fields, got {len(row)}")

    raw_id, raw_type, name, raw_status, description, raw_start, raw_duration, raw_epic = row

    try:
        task_id = int(raw_id)
    except ValueError:
        raise fail(f"invalid id {raw_id!r}") from None
    if task_id < 1:
        raise fail(f"id must be positive, got {task_id}")

    try:
        task_type = TaskType(raw_type.strip().upper())
    except ValueError:
        raise fail(f"unknown type {raw_type!r}") from None

    try:
        status = TaskStatus(raw_status.strip().upper())
    except ValueError:
        raise fail(f"unknown status {raw_status!r}") from None

    start_time: datetime | None = None
    if raw_start.strip() and raw_start.strip().lower() != NULL_TIME:
        try:
            start_time = datetime.fromisoformat(raw_start.strip())
        except ValueError:
            raise fail(f"invalid startTime {raw_start!r}") from None
        if start_time.tzinfo is not None:
            raise fail(f"startTime must be a local date-time, got {raw_start!r}")

    try:
        minutes = int(raw_duration) if raw_duration.strip() else 0
    except ValueError:
        raise fail(f"invalid duration {raw_duration!r}") from None
    if minutes < 0:
        raise fail(f"duration must not be negative, got {minutes}")
    if start_time is not None:
        try:
            start_time + timedelta(minutes=minutes)
        except OverflowError:
            raise fail("startTime plus duration is past the latest representable date") from None

    details: EpicDetails | SubtaskDetails | None = None
    if task_type == TaskType.EPIC:
        details = EpicDetails()
    elif task_type == TaskType.SUBTASK:
        try:
            details = SubtaskDetails(epic_id=int(raw_epic))
        except ValueError:
            raise fail(f"subtask needs an epic id, got {raw_epic!r}") from None

    return Task(
        id=task_id,
        type=task_type,
        name=name,
        description=description,
        status=status,
        start_time=start_time,
        duration=timedelta(minutes=minutes) if minutes else None,
        details=details,
    )


def parse_snapshot(text: str) -> list[Task]:
    """Parse and validate snapshot text.

    The header and blank lines are skipped. Every record must parse, ids must
    be unique, every subtask must reference an epic present in the snapshot
    and scheduled records must not overlap.

    Args:
        text: Snapshot contents.

    Returns:
        Entities in file order.

    Raises:
        MalformedRecordError: On the first record that violates the format.
    """
    entities: list[Task] = []
    lines: dict[int, tuple[int, str]] = {}

    reader = csv.reader(io.StringIO(text))
    for row in reader:
        line_number = reader.line_num
        if not row or all(not cell.strip() for cell in row):
            continue
        if row == HEADER_FIELDS:
            continue

        task = _parse_record(row, line_number)
        if task.id in lines:
            raise MalformedRecordError(
                line_number, ",".join(row), f"duplicate id {task.id} (first seen on line {lines[task.id][0]})"
            )
        lines[task.id] = (line_number, ",".join(row))
        entities.append(task)

    epic_ids = {t.id for t in entities if t.type == TaskType.EPIC}
    schedule = ScheduleIndex()
    for task in entities:
        line_number, raw = lines[task.id]
        if task.type == TaskType.SUBTASK and task.epic_id not in epic_ids:
            raise MalformedRecordError(line_number, raw, f"subtask references missing epic {task.epic_id}")
        if not task.is_scheduled:
            continue
        conflict = schedule.find_overlap(task)
        if conflict is not None:
            raise MalformedRecordError(line_number, raw, f"overlaps record {conflict.id}")
        schedule.insert(task)

    return entities


def read_snapshot(path: Path | str) -> list[Task]:
    """Read entities from a snapshot file. A missing file reads as empty.

    Raises:
        MalformedRecordError: If any record is malformed.
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        logger.debug(f"Snapshot file does not exist: {snapshot_path}")
        return []

    text = snapshot_path.read_text(encoding="utf-8")
    entities = parse_snapshot(text)
    logger.debug(f"Read {len(entities)} record(s) from {snapshot_path}")
    return entities


def write_snapshot(path: Path | str, text: str) -> None:
    """Atomically write snapshot text: temp file first, then rename.

    Raises:
        SnapshotSaveError: If the file could not be written.
    """
    snapshot_path = Path(path)
    temp_file = snapshot_path.with_suffix(snapshot_path.suffix + ".tmp")
    try:
        snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        temp_file.write_text(text, encoding="utf-8")
        temp_file.replace(snapshot_path)
    except OSError as e:
        logger.error(f"Failed to save snapshot to {snapshot_path}: {e}", exc_info=True)
        raise SnapshotSaveError(f"Failed to save snapshot to {snapshot_path}: {e}") from e

    logger.debug(f"Saved snapshot to {snapshot_path}")
