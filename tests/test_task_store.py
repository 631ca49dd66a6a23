"""Tests for TaskStore."""

import threading
from datetime import datetime, timedelta

import pytest

from tasktracker.core.errors import NotFoundError, ValidationError
from tasktracker.model.task import TaskStatus, create_epic, create_subtask, create_task
from tasktracker.stores.task import IdGenerator, TaskStore

T0 = datetime(2025, 1, 1, 10, 0)


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)


@pytest.fixture
def store() -> TaskStore:
    return TaskStore()


class TestIdGenerator:
    """Test the per-store id source."""

    def test_ids_are_sequential(self):
        ids = IdGenerator()
        assert [ids.next_id() for _ in range(3)] == [1, 2, 3]

    def test_advance_past_never_goes_backwards(self):
        ids = IdGenerator()
        ids.advance_past(10)
        assert ids.next_id() == 11
        ids.advance_past(3)
        assert ids.next_id() == 12

    def test_stores_do_not_share_ids(self):
        first, second = TaskStore(), TaskStore()
        assert first.add_task(create_task("a")).id == 1
        assert second.add_task(create_task("b")).id == 1


class TestTasks:
    """Test plain task CRUD."""

    def test_add_assigns_unique_increasing_ids_across_kinds(self, store: TaskStore):
        task = store.add_task(create_task("Task"))
        epic = store.add_epic(create_epic("Epic"))
        subtask = store.add_subtask(create_subtask(epic.id, "Subtask"))

        assert [task.id, epic.id, subtask.id] == [1, 2, 3]

    def test_client_supplied_id_is_ignored(self, store: TaskStore):
        task = create_task("Task")
        task.id = 42
        assert store.add_task(task).id == 1

    def test_get_returns_copy(self, store: TaskStore):
        added = store.add_task(create_task("Task"))
        fetched = store.get_task_by_id(added.id)
        fetched.name = "Mutated"

        assert store.get_task_by_id(added.id).name == "Task"

    def test_get_missing_raises_not_found(self, store: TaskStore):
        with pytest.raises(NotFoundError, match="Task with id 99 not found"):
            store.get_task_by_id(99)

    def test_update_replaces_task(self, store: TaskStore):
        added = store.add_task(create_task("Task"))
        added.name = "Renamed"
        added.status = TaskStatus.IN_PROGRESS

        updated = store.update_task(added)

        assert updated.name == "Renamed"
        assert store.get_task_by_id(added.id).status == TaskStatus.IN_PROGRESS

    def test_update_missing_raises_not_found(self, store: TaskStore):
        task = create_task("Ghost")
        task.id = 7
        with pytest.raises(NotFoundError):
            store.update_task(task)

    def test_remove_deletes_from_map_index_and_history(self, store: TaskStore):
        added = store.add_task(create_task("Task", start_time=T0, duration=minutes(30)))
        store.get_task_by_id(added.id)

        store.remove_task_by_id(added.id)

        assert store.get_all_tasks() == []
        assert store.get_prioritized_tasks() == []
        assert store.get_history() == []

    def test_remove_missing_raises_not_found(self, store: TaskStore):
        with pytest.raises(NotFoundError):
            store.remove_task_by_id(1)

    def test_remove_all_tasks_keeps_epics(self, store: TaskStore):
        store.add_task(create_task("a", start_time=T0, duration=minutes(10)))
        store.add_task(create_task("b"))
        epic = store.add_epic(create_epic("Epic"))
        store.get_epic_by_id(epic.id)

        store.remove_all_tasks()

        assert store.get_all_tasks() == []
        assert store.get_prioritized_tasks() == []
        assert [e.id for e in store.get_all_epics()] == [epic.id]
        assert [h.id for h in store.get_history()] == [epic.id]

    def test_wrong_kind_is_rejected(self, store: TaskStore):
        with pytest.raises(ValueError, match="Expected a TASK entity"):
            store.add_task(create_epic("Epic"))


class TestScheduling:
    """Test overlap prevention and prioritized ordering."""

    def test_adjacent_intervals_do_not_overlap(self, store: TaskStore):
        first = store.add_task(create_task("First", start_time=T0, duration=minutes(60)))

        with pytest.raises(ValidationError) as exc_info:
            store.add_task(create_task("Clash", start_time=T0 + minutes(30), duration=minutes(30)))
        assert exc_info.value.conflicting_id == first.id

        third = store.add_task(create_task("Next", start_time=T0 + minutes(60), duration=minutes(30)))
        assert third.id == 2

    def test_rejected_add_consumes_no_id_and_changes_nothing(self, store: TaskStore):
        store.add_task(create_task("First", start_time=T0, duration=minutes(60)))

        with pytest.raises(ValidationError):
            store.add_task(create_task("Clash", start_time=T0, duration=minutes(5)))

        assert len(store.get_all_tasks()) == 1
        assert len(store.get_prioritized_tasks()) == 1
        assert store.add_task(create_task("Unscheduled")).id == 2

    def test_subtask_cannot_overlap_task(self, store: TaskStore):
        store.add_task(create_task("Task", start_time=T0, duration=minutes(60)))
        epic = store.add_epic(create_epic("Epic"))

        with pytest.raises(ValidationError):
            store.add_subtask(create_subtask(epic.id, "Sub", start_time=T0 + minutes(59), duration=minutes(5)))

        assert store.get_epic_by_id(epic.id).subtask_ids == []

    def test_update_does_not_conflict_with_itself(self, store: TaskStore):
        task = store.add_task(create_task("Task", start_time=T0, duration=minutes(60)))
        task.duration = minutes(90)

        assert store.update_task(task).duration == minutes(90)

    def test_failed_update_restores_old_interval(self, store: TaskStore):
        first = store.add_task(create_task("First", start_time=T0, duration=minutes(60)))
        second = store.add_task(create_task("Second", start_time=T0 + minutes(120), duration=minutes(30)))

        second.start_time = T0 + minutes(30)
        with pytest.raises(ValidationError):
            store.update_task(second)

        assert [t.id for t in store.get_prioritized_tasks()] == [first.id, second.id]
        assert store.get_task_by_id(second.id).start_time == T0 + minutes(120)
        # the old slot is still guarded
        with pytest.raises(ValidationError):
            store.add_task(create_task("Clash", start_time=T0 + minutes(125), duration=minutes(1)))

    def test_zero_duration_task_occupies_no_time(self, store: TaskStore):
        store.add_task(create_task("Point", start_time=T0))
        store.add_task(create_task("Around", start_time=T0 - minutes(5), duration=minutes(5)))

        assert len(store.get_prioritized_tasks()) == 2

    def test_prioritized_orders_by_start_then_id(self, store: TaskStore):
        late = store.add_task(create_task("Late", start_time=T0 + minutes(120), duration=minutes(10)))
        store.add_task(create_task("Unscheduled"))
        epic = store.add_epic(create_epic("Epic"))
        early = store.add_subtask(create_subtask(epic.id, "Early", start_time=T0, duration=minutes(10)))
        point = store.add_task(create_task("Point", start_time=T0))

        ids = [t.id for t in store.get_prioritized_tasks()]

        assert ids == [early.id, point.id, late.id]

    def test_unscheduling_removes_from_prioritized(self, store: TaskStore):
        task = store.add_task(create_task("Task", start_time=T0, duration=minutes(10)))
        task.start_time = None

        store.update_task(task)

        assert store.get_prioritized_tasks() == []


class TestEpics:
    """Test epic aggregation through the store."""

    def test_empty_epic_is_new_with_no_window(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))

        assert epic.status == TaskStatus.NEW
        assert epic.duration == timedelta(0)
        assert epic.start_time is None
        assert epic.end_time is None

    def test_mixed_subtasks_make_epic_in_progress(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        store.add_subtask(create_subtask(epic.id, "a", status=TaskStatus.NEW))
        store.add_subtask(create_subtask(epic.id, "b", status=TaskStatus.DONE))

        assert store.get_epic_by_id(epic.id).status == TaskStatus.IN_PROGRESS

    def test_removing_subtask_reaggregates(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        a = store.add_subtask(create_subtask(epic.id, "a", status=TaskStatus.DONE))
        store.add_subtask(create_subtask(epic.id, "b", status=TaskStatus.DONE))
        assert store.get_epic_by_id(epic.id).status == TaskStatus.DONE

        store.remove_subtask_by_id(a.id)

        refreshed = store.get_epic_by_id(epic.id)
        assert refreshed.status == TaskStatus.DONE
        assert refreshed.subtask_ids == [a.id + 1]

    def test_epic_window_spans_scheduled_subtasks(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        store.add_subtask(create_subtask(epic.id, "a", start_time=T0 + minutes(60), duration=minutes(30)))
        store.add_subtask(create_subtask(epic.id, "b", start_time=T0, duration=minutes(15)))
        store.add_subtask(create_subtask(epic.id, "c", duration=minutes(10)))

        refreshed = store.get_epic_by_id(epic.id)

        assert refreshed.start_time == T0
        assert refreshed.end_time == T0 + minutes(90)
        assert refreshed.duration == minutes(55)

    def test_epic_is_never_scheduled(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        store.add_subtask(create_subtask(epic.id, "a", start_time=T0, duration=minutes(30)))

        # the epic's window covers T0, but only the subtask is indexed
        task = create_task("Other", start_time=T0 + minutes(30), duration=minutes(30))
        store.add_task(task)
        assert [t.name for t in store.get_prioritized_tasks()] == ["a", "Other"]

    def test_update_epic_keeps_subtasks_and_recomputes(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        sub = store.add_subtask(create_subtask(epic.id, "a", status=TaskStatus.DONE))

        replacement = create_epic("Renamed", description="new")
        replacement.id = epic.id
        replacement.status = TaskStatus.NEW

        updated = store.update_epic(replacement)

        assert updated.name == "Renamed"
        assert updated.subtask_ids == [sub.id]
        assert updated.status == TaskStatus.DONE

    def test_remove_epic_cascades(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        a = store.add_subtask(create_subtask(epic.id, "a", start_time=T0, duration=minutes(10)))
        b = store.add_subtask(create_subtask(epic.id, "b", start_time=T0 + minutes(10), duration=minutes(10)))
        store.get_subtask_by_id(a.id)
        store.get_subtask_by_id(b.id)

        store.remove_epic_by_id(epic.id)

        assert store.get_all_subtasks() == []
        assert store.get_prioritized_tasks() == []
        assert store.get_history() == []

    def test_remove_all_epics_removes_all_subtasks(self, store: TaskStore):
        for name in ("one", "two"):
            epic = store.add_epic(create_epic(name))
            store.add_subtask(create_subtask(epic.id, f"{name}-sub"))

        store.remove_all_epics()

        assert store.counts()["epics"] == 0
        assert store.counts()["subtasks"] == 0

    def test_remove_all_subtasks_resets_epics(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        store.add_subtask(create_subtask(epic.id, "a", status=TaskStatus.DONE, start_time=T0, duration=minutes(5)))

        store.remove_all_subtasks()

        refreshed = store.get_epic_by_id(epic.id)
        assert refreshed.subtask_ids == []
        assert refreshed.status == TaskStatus.NEW
        assert refreshed.start_time is None
        assert store.get_prioritized_tasks() == []

    def test_get_subtasks_of_epic_in_insertion_order(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        other = store.add_epic(create_epic("Other"))
        a = store.add_subtask(create_subtask(epic.id, "a"))
        store.add_subtask(create_subtask(other.id, "x"))
        b = store.add_subtask(create_subtask(epic.id, "b"))

        assert [s.id for s in store.get_subtasks_of_epic(epic.id)] == [a.id, b.id]

    def test_get_subtasks_of_unknown_epic_raises(self, store: TaskStore):
        with pytest.raises(NotFoundError):
            store.get_subtasks_of_epic(5)


class TestSubtasks:
    """Test subtask-specific behaviour."""

    def test_subtask_of_missing_epic_is_rejected(self, store: TaskStore):
        with pytest.raises(NotFoundError, match="Epic with id 9 not found"):
            store.add_subtask(create_subtask(9, "Orphan"))

        assert store.get_all_subtasks() == []
        assert store.add_task(create_task("Next")).id == 1

    def test_update_subtask_reaggregates_epic(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        sub = store.add_subtask(create_subtask(epic.id, "a"))
        sub.status = TaskStatus.DONE

        store.update_subtask(sub)

        assert store.get_epic_by_id(epic.id).status == TaskStatus.DONE

    def test_update_subtask_moves_between_epics(self, store: TaskStore):
        source = store.add_epic(create_epic("Source"))
        target = store.add_epic(create_epic("Target"))
        sub = store.add_subtask(create_subtask(source.id, "a", status=TaskStatus.DONE))

        moved = create_subtask(target.id, "a", status=TaskStatus.DONE)
        moved.id = sub.id
        store.update_subtask(moved)

        assert store.get_epic_by_id(source.id).subtask_ids == []
        assert store.get_epic_by_id(source.id).status == TaskStatus.NEW
        assert store.get_epic_by_id(target.id).subtask_ids == [sub.id]
        assert store.get_epic_by_id(target.id).status == TaskStatus.DONE

    def test_update_subtask_to_missing_epic_changes_nothing(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        sub = store.add_subtask(create_subtask(epic.id, "a"))

        moved = create_subtask(99, "a")
        moved.id = sub.id
        with pytest.raises(NotFoundError):
            store.update_subtask(moved)

        assert store.get_subtask_by_id(sub.id).epic_id == epic.id


class TestHistory:
    """Test history recording through the store."""

    def test_repeated_views_are_deduplicated(self, store: TaskStore):
        one = store.add_task(create_task("one"))
        two = store.add_task(create_task("two"))

        for _ in range(3):
            store.get_task_by_id(one.id)
        store.get_task_by_id(two.id)

        assert [t.id for t in store.get_history()] == [one.id, two.id]

    def test_reviewing_moves_to_most_recent(self, store: TaskStore):
        one = store.add_task(create_task("one"))
        two = store.add_task(create_task("two"))

        store.get_task_by_id(one.id)
        store.get_task_by_id(two.id)
        store.get_task_by_id(one.id)

        assert [t.id for t in store.get_history()] == [two.id, one.id]

    def test_history_is_capped(self):
        store = TaskStore(history_limit=3)
        ids = [store.add_task(create_task(f"t{i}")).id for i in range(5)]
        for task_id in ids:
            store.get_task_by_id(task_id)

        assert [t.id for t in store.get_history()] == ids[2:]

    def test_failed_lookup_does_not_touch_history(self, store: TaskStore):
        with pytest.raises(NotFoundError):
            store.get_epic_by_id(1)
        assert store.get_history() == []

    def test_history_reflects_updates(self, store: TaskStore):
        task = store.add_task(create_task("Before"))
        store.get_task_by_id(task.id)
        task.name = "After"

        store.update_task(task)

        assert store.get_history()[0].name == "After"

    def test_adding_does_not_record_history(self, store: TaskStore):
        epic = store.add_epic(create_epic("Epic"))
        store.add_subtask(create_subtask(epic.id, "Sub"))
        store.get_all_subtasks()
        store.get_subtasks_of_epic(epic.id)

        assert store.get_history() == []


def test_concurrent_adds_get_unique_ids():
    """Test that parallel adds never hand out the same id."""
    store = TaskStore()
    results: list[int] = []
    lock = threading.Lock()

    def worker(n: int) -> None:
        for i in range(50):
            task = store.add_task(create_task(f"w{n}-{i}"))
            with lock:
                results.append(task.id)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 200
    assert len(set(results)) == 200
    assert store.counts()["tasks"] == 200
