"""Data models module for shiftsim."""

# Game time
from shiftsim.models.game_time import GameTime

# Shift and clock
from shiftsim.models.shift import ClockReading, ClockSnapshot, ClockState, GameStatus, ShiftConfig

# Tasks and patients
from shiftsim.models.task import Patient, Task, TaskSpec, TaskStatus, TaskType

# Actions
from shiftsim.models.actions import (
    Action,
    ActivateTask,
    CompleteTask,
    ExpireTask,
    GameOver,
    InitializeGame,
    ReachCheckpoint,
    RegisterPatient,
    RegisterTask,
    TogglePause,
    UpdateTime,
    build_action,
)

# State
from shiftsim.models.state import STATE_KEYS, StoreState

__all__ = [
    # Game time
    "GameTime",
    # Shift and clock
    "ShiftConfig",
    "ClockState",
    "ClockReading",
    "ClockSnapshot",
    "GameStatus",
    # Tasks and patients
    "Task",
    "TaskSpec",
    "TaskStatus",
    "TaskType",
    "Patient",
    # Actions
    "Action",
    "InitializeGame",
    "UpdateTime",
    "TogglePause",
    "ActivateTask",
    "CompleteTask",
    "ExpireTask",
    "RegisterTask",
    "RegisterPatient",
    "ReachCheckpoint",
    "GameOver",
    "build_action",
    # State
    "StoreState",
    "STATE_KEYS",
]
