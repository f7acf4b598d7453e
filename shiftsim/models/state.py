"""Store state model."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shiftsim.models.game_time import GameTime
from shiftsim.models.shift import GameStatus
from shiftsim.models.task import Patient, Task


class StoreState(BaseModel):
    """Whole state held by the store - immutable, replaced on every change."""

    model_config = ConfigDict(frozen=True)  # Immutable model

    game_status: GameStatus = Field(default=GameStatus.INITIALIZING, description="Shift status")
    current_time: Optional[GameTime] = Field(default=None, description="Current game time (HHMM)")
    current_seconds: int = Field(default=0, ge=0, lt=60, description="Seconds component of the clock")
    is_paused: bool = Field(default=False, description="Whether the shift is paused")
    tasks: dict[str, Task] = Field(default_factory=dict, description="All tasks by id")
    patients: dict[str, Patient] = Field(default_factory=dict, description="All patients by id")
    active_task_ids: frozenset[str] = Field(default_factory=frozenset, description="Ids of active tasks")
    last_checkpoint: Optional[GameTime] = Field(default=None, description="Latest checkpoint reached")


STATE_KEYS: tuple[str, ...] = tuple(StoreState.model_fields)
