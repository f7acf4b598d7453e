"""Shift simulation: one clock, its checkpoints and its tasks."""

import logging
import threading
import uuid
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional, Union

from shiftsim.engine.checkpoints import CheckpointScheduler
from shiftsim.engine.clock import ClockEngine
from shiftsim.engine.driver import TickDriver
from shiftsim.engine.store import StateStore
from shiftsim.engine.task_system import TaskRegistry
from shiftsim.helpers.debug import log_call
from shiftsim.models.actions import ReachCheckpoint, RegisterPatient
from shiftsim.models.shift import ClockReading, ClockSnapshot, ShiftConfig
from shiftsim.models.state import StoreState
from shiftsim.models.task import Patient, Task, TaskSpec

logger = logging.getLogger(__name__)

TaskInput = Union[TaskSpec, Mapping[str, Any]]


class ShiftSimulation:
    """
    Runs one shift: the clock ticks, then checkpoints and tasks react to the
    time of that tick, all inside the same serialized cascade.

    Instances are independent; a host may run several side by side.
    """

    def __init__(
        self,
        config: ShiftConfig,
        driver: Optional[TickDriver] = None,
        game_over_callback: Optional[Callable[[], None]] = None,
        store: Optional[StateStore] = None,
    ) -> None:
        """
        Initialize shift simulation.

        Args:
            config: Shift configuration
            driver: Tick driver; real-time threaded by default
            game_over_callback: Called once when the shift ends
            store: Optional store; a fresh one by default
        """
        self.shift_id = str(uuid.uuid4())
        self._config = config
        self._store = store or StateStore()
        self._game_over_callback = game_over_callback
        self._lock = threading.RLock()
        self._clock = ClockEngine(self._store, driver)
        self._checkpoints = CheckpointScheduler(
            config.shift_start_time,
            config.shift_duration_game_minutes,
            config.checkpoint_interval_minutes,
        )
        self._tasks = TaskRegistry(
            self._store,
            shift_start=config.shift_start_time,
            interval_minutes=config.checkpoint_interval_minutes,
            shift_duration_minutes=config.shift_duration_game_minutes,
        )
        self._clock.add_tick_listener(self._on_tick)
        self._clock.initialize(config, self._handle_game_over)

    @property
    def config(self) -> ShiftConfig:
        """Get shift configuration."""
        return self._config

    @property
    def store(self) -> StateStore:
        """Get state store."""
        return self._store

    @property
    def state(self) -> StoreState:
        """Get current store state."""
        return self._store.state

    @property
    def clock(self) -> ClockEngine:
        """Get clock engine."""
        return self._clock

    @property
    def checkpoints(self) -> CheckpointScheduler:
        """Get checkpoint scheduler."""
        return self._checkpoints

    @property
    def tasks(self) -> TaskRegistry:
        """Get task registry."""
        return self._tasks

    def load_tasks(self, specs: Iterable[TaskInput]) -> list[Task]:
        """Register task declarations."""
        with self._lock:
            return self._tasks.create_tasks(specs)

    def admit_patient(
        self, patient: Union[Patient, Mapping[str, Any]], tasks: Iterable[TaskInput] = ()
    ) -> list[Task]:
        """
        Register a patient and the tasks that belong to them.

        Returns:
            The patient's registered tasks
        """
        if not isinstance(patient, Patient):
            patient = Patient.model_validate(patient)
        specs = []
        for spec in tasks:
            if not isinstance(spec, TaskSpec):
                spec = TaskSpec.model_validate(spec)
            specs.append(spec.model_copy(update={"patient_id": patient.patient_id}))

        with self._lock:
            self._store.dispatch(RegisterPatient(patient=patient))
            created = self._tasks.create_tasks(specs)
        logger.info(f"Patient {patient.name} admitted with {len(created)} tasks")
        return created

    @log_call
    def start(self) -> None:
        """
        Evaluate the start time, then let the driver deliver ticks.

        Raises:
            RuntimeError: If the shift is already running or has ended
        """
        with self._lock:
            if self._clock.is_running:
                raise RuntimeError(f"Shift {self.shift_id} is already running")
            self._evaluate(self._clock.read())
            self._clock.start(self.tick)

    def tick(self) -> Optional[ClockReading]:
        """Run one full tick cascade."""
        with self._lock:
            return self._clock.tick()

    def pause(self) -> bool:
        """Pause the shift."""
        with self._lock:
            return self._clock.pause()

    def resume(self) -> bool:
        """Resume the shift."""
        with self._lock:
            return self._clock.resume()

    @log_call
    def stop(self) -> None:
        """Stop delivering ticks without ending the shift."""
        self._clock.stop()

    def close(self) -> None:
        """Stop ticking and release store subscriptions."""
        self._clock.close()

    def complete_task(self, task_id: str) -> tuple[bool, str]:
        """
        Complete an active task.

        Returns:
            Tuple of (success, error_message)
        """
        with self._lock:
            return self._tasks.complete_task(task_id)

    def poll_time(self) -> ClockSnapshot:
        """Snapshot of the clock for external consumers."""
        with self._lock:
            return self._clock.poll_time()

    def _on_tick(self, reading: ClockReading) -> None:
        self._evaluate(reading)

    def _evaluate(self, reading: ClockReading) -> None:
        """Checkpoint check, then task evaluation, for one clock reading."""
        checkpoint = self._checkpoints.check_arrival(reading.elapsed_game_minutes)
        if checkpoint is not None:
            self._store.dispatch(ReachCheckpoint(time=checkpoint))
        self._tasks.process_tasks(reading.current_time)

    def _handle_game_over(self) -> None:
        logger.info(f"Shift {self.shift_id} is over")
        if self._game_over_callback is not None:
            self._game_over_callback()
