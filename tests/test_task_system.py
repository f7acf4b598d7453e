"""Tests for the task registry and lifecycle rules."""

import pytest
from pydantic import ValidationError

from shiftsim.engine.task_system import TaskRegistry, evaluate
from shiftsim.models.task import Task, TaskSpec, TaskStatus, TaskType


@pytest.fixture
def registry(store):
    """Registry for an evening shift starting at 19:00."""
    return TaskRegistry(store, shift_start=1900)


class TestEvaluate:
    """Test suite for the pure transition function."""

    def test_activates_at_scheduled_time(self):
        """Test not-yet becomes active exactly at the scheduled time."""
        task = Task(task_id="t1", name="Vitals", scheduled_time=1900, expire_time=1930)
        assert evaluate(task, 1859) == TaskStatus.NOT_YET
        assert evaluate(task, 1900) == TaskStatus.ACTIVE

    def test_overdue_only_after_expiry(self):
        """Test active becomes overdue strictly after the expiry time."""
        task = Task(task_id="t1", name="Vitals", scheduled_time=1900, expire_time=1930, status=TaskStatus.ACTIVE)
        assert evaluate(task, 1930) == TaskStatus.ACTIVE
        assert evaluate(task, 1931) == TaskStatus.OVERDUE

    def test_one_step_per_evaluation(self):
        """Test a late not-yet task activates before it can go overdue."""
        task = Task(task_id="t1", name="Vitals", scheduled_time=1900, expire_time=1930)
        assert evaluate(task, 2000) == TaskStatus.ACTIVE

    def test_no_expiry_never_overdue(self):
        """Test tasks without expiry stay active."""
        task = Task(task_id="t1", name="Rounds", scheduled_time=1900, status=TaskStatus.ACTIVE)
        assert evaluate(task, 2359) == TaskStatus.ACTIVE

    @pytest.mark.parametrize("status", [TaskStatus.COMPLETED, TaskStatus.OVERDUE])
    def test_terminal_statuses_are_final(self, status):
        """Test completed and overdue never change."""
        task = Task(task_id="t1", name="Vitals", scheduled_time=1900, expire_time=1930, status=status)
        assert evaluate(task, 1900) == status
        assert evaluate(task, 2100) == status
        assert status.is_terminal

    def test_night_shift_ordering(self):
        """Test times after midnight sort after the evening within a shift."""
        task = Task(task_id="t1", name="Meds", scheduled_time=15, expire_time=100)
        assert evaluate(task, 2330, shift_start=2300) == TaskStatus.NOT_YET
        assert evaluate(task, 15, shift_start=2300) == TaskStatus.ACTIVE

        active = task.with_status(TaskStatus.ACTIVE)
        assert evaluate(active, 2345, shift_start=2300) == TaskStatus.ACTIVE
        assert evaluate(active, 101, shift_start=2300) == TaskStatus.OVERDUE


class TestTaskSpec:
    """Test suite for task declarations."""

    def test_content_layer_shape(self):
        """Test camelCase keys and string times are accepted."""
        spec = TaskSpec.model_validate({"name": "Vitals", "scheduledTime": "19:00", "expireTime": "+30"})
        assert spec.scheduled_time == 1900
        assert spec.expire_time == "+30"
        assert spec.type == TaskType.DEFAULT

    @pytest.mark.parametrize(
        "tag, expected",
        [
            ("medication", TaskType.MEDICATION),
            ("MED", TaskType.MEDICATION),
            ("Assessment", TaskType.ASSESSMENT),
            ("procedure", TaskType.PROCEDURE),
            ("teaching", TaskType.DEFAULT),
        ],
    )
    def test_type_tags(self, tag, expected):
        """Test type tags are normalized, unknown tags become default."""
        spec = TaskSpec(name="Task", scheduled_time=1900, type=tag)
        assert spec.type == expected

    def test_missing_scheduled_time(self):
        """Test a declaration without a scheduled time is rejected."""
        with pytest.raises(ValidationError):
            TaskSpec.model_validate({"name": "Vitals"})

    def test_missing_name(self):
        """Test a declaration without a name is rejected."""
        with pytest.raises(ValidationError):
            TaskSpec.model_validate({"scheduledTime": 1900})

    def test_invalid_scheduled_time(self):
        """Test malformed times are not coerced."""
        with pytest.raises(ValidationError):
            TaskSpec.model_validate({"name": "Vitals", "scheduledTime": 1975})


class TestTaskRegistry:
    """Test suite for task registration and processing."""

    def test_create_task(self, registry, store):
        """Test a declaration is registered as not-yet."""
        task = registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900, "expireTime": 1930})
        assert task.status == TaskStatus.NOT_YET
        assert task.expire_time == 1930
        assert store.get_task("t1") == task

    def test_generated_id(self, registry):
        """Test a missing id is generated."""
        task = registry.create_task({"name": "Vitals", "scheduledTime": 1900})
        assert task.task_id.startswith("task-")

    def test_relative_expiry_resolved(self, registry):
        """Test '+N' expiry is resolved at registration."""
        task = registry.create_task({"name": "Meds", "scheduledTime": 1907, "expireTime": "+30"})
        assert task.expire_time == 1930

    def test_duplicate_id_rejected(self, registry):
        """Test ids are unique within a shift."""
        registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900})
        with pytest.raises(ValueError):
            registry.create_task({"id": "t1", "name": "Vitals again", "scheduledTime": 1915})

    def test_invalid_declaration_rejected(self, registry, store):
        """Test missing fields raise and register nothing."""
        with pytest.raises(ValidationError):
            registry.create_task({"id": "t1", "name": "Vitals"})
        assert store.state.tasks == {}

    def test_activation_and_overdue(self, registry, store):
        """Test the full path from not-yet through active to overdue."""
        registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900, "expireTime": 1930})

        assert registry.process_tasks(1859) == []
        assert registry.process_tasks(1900) == [("t1", TaskStatus.NOT_YET, TaskStatus.ACTIVE)]
        assert store.state.active_task_ids == frozenset({"t1"})

        assert registry.process_tasks(1930) == []
        assert registry.process_tasks(1931) == [("t1", TaskStatus.ACTIVE, TaskStatus.OVERDUE)]
        assert registry.process_tasks(1932) == []
        assert store.get_task("t1").status == TaskStatus.OVERDUE
        assert store.state.active_task_ids == frozenset()

    def test_active_never_reverts(self, registry, store):
        """Test an active task stays active at earlier times."""
        registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900})
        registry.process_tasks(1900)
        registry.process_tasks(1859)
        assert store.get_task("t1").status == TaskStatus.ACTIVE

    def test_complete_active_task(self, registry, store):
        """Test completing an active task."""
        registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900, "expireTime": 1930})
        registry.process_tasks(1900)

        success, error = registry.complete_task("t1")

        assert success is True
        assert error == ""
        assert store.get_task("t1").status == TaskStatus.COMPLETED
        assert registry.process_tasks(2000) == []

    def test_complete_not_yet_rejected(self, registry, store):
        """Test a task cannot be completed before it is active."""
        registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900})
        success, error = registry.complete_task("t1")
        assert success is False
        assert "not-yet" in error
        assert store.get_task("t1").status == TaskStatus.NOT_YET

    def test_complete_unknown_task(self, registry):
        """Test completing an unknown task is reported."""
        success, error = registry.complete_task("ghost")
        assert success is False
        assert "not found" in error

    def test_list_tasks(self, registry, sample_task_specs):
        """Test listing in scheduled order with a status filter."""
        registry.create_tasks(reversed(sample_task_specs))
        registry.process_tasks(1915)

        assert [task.task_id for task in registry.list_tasks()] == ["vitals-1900", "meds-1915", "wound-2000"]
        active = registry.list_tasks(TaskStatus.ACTIVE)
        assert [task.task_id for task in active] == ["vitals-1900", "meds-1915"]
        assert registry.get_task("meds-1915").type == TaskType.MEDICATION
        assert registry.get_task("meds-1915").expire_time == 1945

    def test_tasks_for_patient(self, registry):
        """Test filtering by patient."""
        registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900, "patientId": "p1"})
        registry.create_task({"id": "t2", "name": "Vitals", "scheduledTime": 1900, "patientId": "p2"})
        assert [task.task_id for task in registry.tasks_for_patient("p1")] == ["t1"]


class TestShiftWindow:
    """Test suite for tasks dated before the shift start."""

    def test_earlier_quarter_hour_activates_at_start(self, store):
        """Test a 19:00 task is active at once in a shift starting 19:07."""
        registry = TaskRegistry(store, shift_start=1907, shift_duration_minutes=60)
        registry.create_task({"id": "t1", "name": "Vitals", "scheduledTime": 1900})
        assert registry.process_tasks(1907) == [("t1", TaskStatus.NOT_YET, TaskStatus.ACTIVE)]

    def test_carry_over_task_expires_inside_shift(self, store):
        """Test an 18:45 task activates at the start and goes overdue after 19:30."""
        registry = TaskRegistry(store, shift_start=1900, shift_duration_minutes=60)
        registry.create_task({"id": "t1", "name": "Handover meds", "scheduledTime": 1845, "expireTime": 1930})

        registry.process_tasks(1900)
        assert store.get_task("t1").status == TaskStatus.ACTIVE
        registry.process_tasks(1930)
        assert store.get_task("t1").status == TaskStatus.ACTIVE
        registry.process_tasks(1931)
        assert store.get_task("t1").status == TaskStatus.OVERDUE

    def test_carry_over_sorts_first(self, store):
        """Test earlier-dated work lists before the shift's own tasks."""
        registry = TaskRegistry(store, shift_start=1900, shift_duration_minutes=60)
        registry.create_task({"id": "late", "name": "Rounds", "scheduledTime": 1915})
        registry.create_task({"id": "early", "name": "Handover", "scheduledTime": 1845})
        assert [task.task_id for task in registry.list_tasks()] == ["early", "late"]

    def test_evaluate_with_duration(self):
        """Test the pure rule treats times outside the window as before the start."""
        task = Task(task_id="t1", name="Vitals", scheduled_time=1845, expire_time=1930)
        assert evaluate(task, 1900, shift_start=1900, shift_duration=60) == TaskStatus.ACTIVE

    def test_night_shift_window_unchanged(self):
        """Test after-midnight times inside the window still sort after the evening."""
        task = Task(task_id="t1", name="Meds", scheduled_time=15)
        assert evaluate(task, 2330, shift_start=2330, shift_duration=60) == TaskStatus.NOT_YET
        assert evaluate(task, 15, shift_start=2330, shift_duration=60) == TaskStatus.ACTIVE
