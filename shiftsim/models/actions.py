"""Store action models.

Every mutation of the store goes through one of these variants. The union is
closed: the reducer matches on the concrete classes.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from shiftsim.models.game_time import GameTime
from shiftsim.models.task import Patient, Task


class InitializeGame(BaseModel):
    """Start a shift at its start time."""

    model_config = ConfigDict(frozen=True)

    type: Literal["INITIALIZE_GAME"] = "INITIALIZE_GAME"
    start_time: GameTime = Field(
        validation_alias=AliasChoices("start_time", "startTime"), description="Shift start (HHMM)"
    )


class UpdateTime(BaseModel):
    """Publish the clock's current game time."""

    model_config = ConfigDict(frozen=True)

    type: Literal["UPDATE_TIME"] = "UPDATE_TIME"
    time: GameTime = Field(
        validation_alias=AliasChoices("time", "hours"), description="Current game time (HHMM)"
    )
    seconds: int = Field(default=0, ge=0, lt=60, description="Seconds component of the clock")


class TogglePause(BaseModel):
    """Flip the paused flag."""

    model_config = ConfigDict(frozen=True)

    type: Literal["TOGGLE_PAUSE"] = "TOGGLE_PAUSE"


class ActivateTask(BaseModel):
    """Move a task from not-yet to active."""

    model_config = ConfigDict(frozen=True)

    type: Literal["ACTIVATE_TASK"] = "ACTIVATE_TASK"
    task_id: str = Field(validation_alias=AliasChoices("task_id", "taskId"), description="Task to activate")


class CompleteTask(BaseModel):
    """Move an active task to completed."""

    model_config = ConfigDict(frozen=True)

    type: Literal["COMPLETE_TASK"] = "COMPLETE_TASK"
    task_id: str = Field(validation_alias=AliasChoices("task_id", "taskId"), description="Task to complete")


class ExpireTask(BaseModel):
    """Move an active task to overdue."""

    model_config = ConfigDict(frozen=True)

    type: Literal["EXPIRE_TASK"] = "EXPIRE_TASK"
    task_id: str = Field(validation_alias=AliasChoices("task_id", "taskId"), description="Task to expire")


class RegisterTask(BaseModel):
    """Add a task to the store."""

    model_config = ConfigDict(frozen=True)

    type: Literal["REGISTER_TASK"] = "REGISTER_TASK"
    task: Task = Field(description="Task to register")


class RegisterPatient(BaseModel):
    """Add a patient to the store."""

    model_config = ConfigDict(frozen=True)

    type: Literal["REGISTER_PATIENT"] = "REGISTER_PATIENT"
    patient: Patient = Field(description="Patient to register")


class ReachCheckpoint(BaseModel):
    """Record that a quarter-hour checkpoint was reached."""

    model_config = ConfigDict(frozen=True)

    type: Literal["REACH_CHECKPOINT"] = "REACH_CHECKPOINT"
    time: GameTime = Field(description="Checkpoint reached (HHMM)")


class GameOver(BaseModel):
    """End the shift."""

    model_config = ConfigDict(frozen=True)

    type: Literal["GAME_OVER"] = "GAME_OVER"


Action = Annotated[
    Union[
        InitializeGame,
        UpdateTime,
        TogglePause,
        ActivateTask,
        CompleteTask,
        ExpireTask,
        RegisterTask,
        RegisterPatient,
        ReachCheckpoint,
        GameOver,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES: dict[str, type[BaseModel]] = {
    action_cls.model_fields["type"].default: action_cls
    for action_cls in (
        InitializeGame,
        UpdateTime,
        TogglePause,
        ActivateTask,
        CompleteTask,
        ExpireTask,
        RegisterTask,
        RegisterPatient,
        ReachCheckpoint,
        GameOver,
    )
}


def build_action(action_type: str, payload: Optional[Mapping[str, Any]] = None) -> Optional[BaseModel]:
    """
    Build a typed action from a type tag and a payload.

    Args:
        action_type: Action type tag, e.g. "UPDATE_TIME"
        payload: Action fields

    Returns:
        The action, or None if the tag is not a known action type

    Raises:
        pydantic.ValidationError: If the payload does not fit the action
    """
    action_cls = ACTION_TYPES.get(action_type)
    if action_cls is None:
        return None
    return action_cls.model_validate(dict(payload or {}))
