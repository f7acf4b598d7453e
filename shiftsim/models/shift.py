"""Shift configuration and clock models."""

from collections.abc import Mapping
from enum import Enum
from typing import Optional, Union
from urllib.parse import parse_qs

from pydantic import BaseModel, ConfigDict, Field

from shiftsim.config import (
    DEFAULT_CHECKPOINT_INTERVAL,
    DEFAULT_SHIFT_DURATION,
    DEFAULT_SHIFT_START,
    DEFAULT_SPEED_FACTOR,
    QUERY_PARAM_PRESET,
    QUERY_PARAM_SHIFT_DURATION,
    QUERY_PARAM_SHIFT_STARTS,
    QUERY_PARAM_SPEED_FACTOR,
    SHIFT_PRESETS,
)
from shiftsim.models.game_time import GameTime


class GameStatus(str, Enum):
    """Overall status of a shift."""

    INITIALIZING = "initializing"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class ShiftConfig(BaseModel):
    """Immutable shift configuration."""

    model_config = ConfigDict(frozen=True)  # Immutable model

    shift_start_time: GameTime = Field(
        default=DEFAULT_SHIFT_START, validate_default=True, description="Shift start (HHMM)"
    )
    shift_duration_game_minutes: int = Field(
        default=DEFAULT_SHIFT_DURATION, gt=0, description="Shift length in game minutes"
    )
    speed_factor: float = Field(
        default=DEFAULT_SPEED_FACTOR,
        gt=0,
        allow_inf_nan=False,
        description="Ticks per real second; every tick is one simulated second",
    )
    checkpoint_interval_minutes: int = Field(
        default=DEFAULT_CHECKPOINT_INTERVAL, gt=0, description="Checkpoint spacing in game minutes"
    )

    @property
    def total_seconds(self) -> int:
        """Simulated seconds in the shift."""
        return self.shift_duration_game_minutes * 60

    @property
    def tick_interval_seconds(self) -> float:
        """Real seconds between ticks."""
        return 1.0 / self.speed_factor

    @property
    def real_duration_seconds(self) -> float:
        """Real seconds the whole shift takes when nothing pauses it."""
        return self.total_seconds / self.speed_factor

    @classmethod
    def from_preset(cls, name: str) -> "ShiftConfig":
        """
        Build a config from one of the named presets.

        Args:
            name: Preset name (case-insensitive), e.g. "DEMO"

        Returns:
            ShiftConfig with a speed factor derived from the preset's real play time

        Raises:
            ValueError: If the preset does not exist
        """
        preset = SHIFT_PRESETS.get(name.strip().upper())
        if preset is None:
            raise ValueError(f"Unknown shift preset {name!r}; expected one of {sorted(SHIFT_PRESETS)}")
        duration = preset["shift_duration_game_minutes"]
        return cls(
            shift_start_time=preset["shift_start_time"],
            shift_duration_game_minutes=duration,
            speed_factor=round(duration / preset["real_minutes"]),
        )

    @classmethod
    def from_query(cls, query: Union[str, Mapping[str, str]]) -> "ShiftConfig":
        """
        Build a config from query-string style parameters.

        Recognizes ``speed-factor``, ``shift-starts`` ("1900" or "19:00"),
        ``shift-duration`` and ``preset``. Missing parameters keep their
        defaults (or the preset's values).

        Raises:
            ValueError: If a parameter is present but malformed
        """
        if isinstance(query, str):
            params = {key: values[0] for key, values in parse_qs(query.lstrip("?")).items()}
        else:
            params = dict(query)

        preset_name = params.get(QUERY_PARAM_PRESET)
        base = cls.from_preset(preset_name) if preset_name else cls()
        updates: dict = {}

        speed_factor = params.get(QUERY_PARAM_SPEED_FACTOR)
        if speed_factor:
            try:
                updates["speed_factor"] = float(speed_factor)
            except ValueError:
                raise ValueError(f"Invalid {QUERY_PARAM_SPEED_FACTOR}: {speed_factor!r}") from None

        shift_starts = params.get(QUERY_PARAM_SHIFT_STARTS)
        if shift_starts:
            updates["shift_start_time"] = shift_starts

        shift_duration = params.get(QUERY_PARAM_SHIFT_DURATION)
        if shift_duration:
            try:
                updates["shift_duration_game_minutes"] = int(shift_duration)
            except ValueError:
                raise ValueError(f"Invalid {QUERY_PARAM_SHIFT_DURATION}: {shift_duration!r}") from None

        # Re-validate through the constructor; model_copy would skip validation
        return cls(**{**base.model_dump(), **updates})


class ClockState(BaseModel):
    """Countdown state owned by the clock engine."""

    model_config = ConfigDict(frozen=True)  # Immutable model

    total_seconds: int = Field(gt=0, description="Simulated seconds in the shift")
    seconds_remaining: int = Field(ge=0, description="Simulated seconds left")
    is_paused: bool = Field(default=False, description="Whether ticks are currently ignored")
    is_terminated: bool = Field(default=False, description="Whether the shift has ended")

    @property
    def elapsed_seconds(self) -> int:
        """Simulated seconds elapsed since shift start."""
        return self.total_seconds - self.seconds_remaining


class ClockReading(BaseModel):
    """Game time derived from one tick, threaded through the rest of the cascade."""

    model_config = ConfigDict(frozen=True)  # Immutable model

    current_time: GameTime = Field(description="Current game time (HHMM)")
    seconds: int = Field(ge=0, lt=60, description="Seconds component of the clock")
    elapsed_game_seconds: int = Field(ge=0, description="Simulated seconds since shift start")
    seconds_remaining: int = Field(ge=0, description="Simulated seconds left in the shift")

    @property
    def elapsed_game_minutes(self) -> int:
        """Whole game minutes since shift start."""
        return self.elapsed_game_seconds // 60


class ClockSnapshot(BaseModel):
    """Poll view of the clock for external consumers."""

    model_config = ConfigDict(frozen=True)  # Immutable model

    current_time: GameTime = Field(description="Current game time (HHMM)")
    seconds_left: int = Field(ge=0, description="Simulated seconds left in the shift")
    is_paused: bool = Field(description="Whether the clock is paused")
    is_terminated: bool = Field(description="Whether the shift has ended")
    progress_percent: float = Field(ge=0, le=100, description="Share of the shift elapsed")
    clock_text: Optional[str] = Field(default=None, description="HH:MM:SS clock text")
