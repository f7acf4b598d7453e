"""Shift engine package."""

from shiftsim.engine.checkpoints import CheckpointScheduler, build_checkpoints
from shiftsim.engine.clock import ClockEngine
from shiftsim.engine.driver import ManualDriver, ThreadedIntervalDriver, TickDriver
from shiftsim.engine.shift_engine import ShiftSimulation
from shiftsim.engine.store import WILDCARD, StateStore, task_key
from shiftsim.engine.task_system import TaskRegistry, evaluate

__all__ = [
    "CheckpointScheduler",
    "build_checkpoints",
    "ClockEngine",
    "ManualDriver",
    "ThreadedIntervalDriver",
    "TickDriver",
    "ShiftSimulation",
    "StateStore",
    "WILDCARD",
    "task_key",
    "TaskRegistry",
    "evaluate",
]
