"""Task registry and lifecycle state machine."""

import logging
import uuid
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from shiftsim.engine.store import StateStore
from shiftsim.models.actions import ActivateTask, CompleteTask, ExpireTask, RegisterTask
from shiftsim.models.game_time import DEFAULT_INTERVAL_MINUTES, MINUTES_PER_DAY, resolve_expiry, shift_offset
from shiftsim.models.task import Task, TaskSpec, TaskStatus

logger = logging.getLogger(__name__)


def _order(time: int, shift_start: Optional[int], shift_duration: Optional[int] = None) -> int:
    """
    Sort key for a GameTime: raw HHMM, or minutes into the shift.

    With a shift duration, times outside the shift window count as before
    the start (negative minutes), so carry-over work sorts first.
    """
    if shift_start is None:
        return time
    offset = shift_offset(time, shift_start)
    if shift_duration is not None and offset > shift_duration:
        offset -= MINUTES_PER_DAY
    return offset


def evaluate(
    task: Task,
    current_time: int,
    shift_start: Optional[int] = None,
    shift_duration: Optional[int] = None,
) -> TaskStatus:
    """
    Compute a task's status at a game time.

    Pure transition function: not-yet becomes active once current time
    reaches the scheduled time; active becomes overdue once current time is
    past the expiry. One step per evaluation; completed and overdue are final.

    Args:
        task: Task to evaluate
        current_time: Current game time (HHMM)
        shift_start: When given, times compare by minutes into the shift so a
            shift crossing midnight orders 0030 after 2330
        shift_duration: Shift length in game minutes; times outside the shift
            window are treated as before the start

    Returns:
        The status the task should have
    """
    now = _order(current_time, shift_start, shift_duration)

    if task.status == TaskStatus.NOT_YET:
        if now >= _order(task.scheduled_time, shift_start, shift_duration):
            return TaskStatus.ACTIVE
    elif task.status == TaskStatus.ACTIVE:
        if task.expire_time is not None and now > _order(task.expire_time, shift_start, shift_duration):
            return TaskStatus.OVERDUE

    return task.status


class TaskRegistry:
    """Creates tasks and drives their status from game time."""

    def __init__(
        self,
        store: StateStore,
        shift_start: Optional[int] = None,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        shift_duration_minutes: Optional[int] = None,
    ) -> None:
        """
        Initialize registry.

        Args:
            store: Store holding the task collection
            shift_start: Shift start (HHMM) used to order times across midnight
            interval_minutes: Boundary relative expiries are quantized down to
            shift_duration_minutes: Shift length; earlier-dated work outside the
                window activates at the start
        """
        self._store = store
        self._shift_start = shift_start
        self._interval_minutes = interval_minutes
        self._shift_duration = shift_duration_minutes

    def create_task(self, spec: Union[TaskSpec, Mapping[str, Any]]) -> Task:
        """
        Validate a task declaration and register it as not-yet.

        Args:
            spec: TaskSpec, or a mapping in the content layer's shape

        Returns:
            The registered task

        Raises:
            pydantic.ValidationError: If required fields are missing or malformed
            ValueError: If the id is already registered or the expiry is invalid
        """
        if not isinstance(spec, TaskSpec):
            spec = TaskSpec.model_validate(spec)

        task_id = spec.id or f"task-{uuid.uuid4()}"
        if self._store.get_task(task_id) is not None:
            raise ValueError(f"Task {task_id} is already registered")

        task = Task(
            task_id=task_id,
            type=spec.type,
            name=spec.name,
            scheduled_time=spec.scheduled_time,
            expire_time=resolve_expiry(spec.scheduled_time, spec.expire_time, self._interval_minutes),
            duration_minutes=spec.duration_minutes,
            status=TaskStatus.NOT_YET,
            patient_id=spec.patient_id,
            metadata=dict(spec.metadata),
        )
        self._store.dispatch(RegisterTask(task=task))
        logger.debug(
            f"Registered task {task.task_id} ({task.type.value}) at {task.scheduled_time:04d}, "
            f"expires {task.expire_time}"
        )
        return task

    def create_tasks(self, specs: Iterable[Union[TaskSpec, Mapping[str, Any]]]) -> list[Task]:
        """Register several tasks in order."""
        return [self.create_task(spec) for spec in specs]

    def process_tasks(self, current_time: int) -> list[tuple[str, TaskStatus, TaskStatus]]:
        """
        Apply the lifecycle rules to every task at one game time.

        All tasks are evaluated against the same snapshot before any change is
        dispatched, so iteration order does not affect the result.

        Returns:
            List of (task_id, old_status, new_status) for the tasks that changed
        """
        changes = []
        for task in self._store.state.tasks.values():
            new_status = evaluate(task, current_time, self._shift_start, self._shift_duration)
            if new_status != task.status:
                changes.append((task.task_id, task.status, new_status))

        for task_id, old_status, new_status in changes:
            if new_status == TaskStatus.ACTIVE:
                self._store.dispatch(ActivateTask(task_id=task_id))
            elif new_status == TaskStatus.OVERDUE:
                self._store.dispatch(ExpireTask(task_id=task_id))
            logger.info(f"Task {task_id}: {old_status.value} -> {new_status.value} at {current_time:04d}")

        return changes

    def complete_task(self, task_id: str) -> tuple[bool, str]:
        """
        Complete an active task.

        Args:
            task_id: Task to complete

        Returns:
            Tuple of (success, error_message)
        """
        task = self._store.get_task(task_id)
        if task is None:
            error = f"Task {task_id} not found"
            logger.warning(error)
            return False, error
        if task.status != TaskStatus.ACTIVE:
            error = f"Task {task_id} cannot be completed while {task.status.value}"
            logger.warning(error)
            return False, error

        self._store.dispatch(CompleteTask(task_id=task_id))
        logger.info(f"Task {task_id} completed")
        return True, ""

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by id."""
        return self._store.get_task(task_id)

    def list_tasks(self, status: Optional[TaskStatus] = None) -> list[Task]:
        """List tasks ordered by scheduled time, optionally filtered by status."""
        tasks = [
            task for task in self._store.state.tasks.values() if status is None or task.status == status
        ]
        return sorted(
            tasks,
            key=lambda task: (_order(task.scheduled_time, self._shift_start, self._shift_duration), task.task_id),
        )

    def tasks_for_patient(self, patient_id: str) -> list[Task]:
        """List a patient's tasks ordered by scheduled time."""
        return [task for task in self.list_tasks() if task.patient_id == patient_id]
