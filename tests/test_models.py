"""Tests for task domain models."""

from datetime import datetime, timedelta

from tasktracker.model import (
    EpicDetails,
    SubtaskDetails,
    TaskStatus,
    TaskType,
    create_epic,
    create_subtask,
    create_task,
    duration_to_minutes,
)

T0 = datetime(2025, 1, 1, 10, 0)


class TestTask:
    """Tests for Task helpers."""

    def test_end_time_is_start_plus_duration(self):
        task = create_task("t", start_time=T0, duration=timedelta(minutes=45))

        assert task.end_time == T0 + timedelta(minutes=45)
        assert task.is_scheduled

    def test_missing_duration_counts_as_zero(self):
        assert create_task("t", start_time=T0).end_time == T0

    def test_unscheduled_task_has_no_end(self):
        task = create_task("t", duration=timedelta(minutes=45))

        assert task.end_time is None
        assert not task.is_scheduled

    def test_epic_end_comes_from_details(self):
        epic = create_epic("e")
        epic.start_time = T0
        epic.details = EpicDetails(subtask_ids=[2], end_time=T0 + timedelta(hours=1))

        assert epic.end_time == T0 + timedelta(hours=1)
        assert not epic.is_scheduled
        assert epic.subtask_ids == [2]

    def test_kind_specific_accessors(self):
        plain = create_task("t")
        subtask = create_subtask(4, "s")

        assert plain.epic_id is None
        assert plain.subtask_ids == []
        assert subtask.epic_id == 4
        assert subtask.type == TaskType.SUBTASK
        assert isinstance(subtask.details, SubtaskDetails)

    def test_new_epic_is_empty(self):
        epic = create_epic("e", "desc")

        assert epic.type == TaskType.EPIC
        assert epic.status == TaskStatus.NEW
        assert epic.duration == timedelta(0)
        assert epic.details == EpicDetails()


def test_duration_to_minutes():
    assert duration_to_minutes(None) is None
    assert duration_to_minutes(timedelta(hours=2, seconds=59)) == 120
