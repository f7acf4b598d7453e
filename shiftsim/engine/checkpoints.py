"""Quarter-hour checkpoint scheduling."""

import logging
from collections import deque
from typing import Optional

from shiftsim.models.game_time import (
    DEFAULT_INTERVAL_MINUTES,
    MINUTES_PER_DAY,
    count_intervals,
    from_minutes,
    quantize_down,
    shift_offset,
    timemark_plus_minutes,
    to_minutes,
)

logger = logging.getLogger(__name__)


def build_checkpoints(
    shift_start: int, shift_duration_minutes: int, interval_minutes: int = DEFAULT_INTERVAL_MINUTES
) -> list[int]:
    """
    List the checkpoints of a shift.

    Starts at the shift start rounded down to the interval and adds one
    checkpoint per whole interval in the shift. Checkpoints stop at 24:00:
    a candidate that would cross midnight is dropped, not wrapped.

    Examples:
        >>> build_checkpoints(1900, 60)
        [1900, 1915, 1930, 1945]
        >>> build_checkpoints(2330, 120)
        [2330, 2345]
    """
    first = to_minutes(quantize_down(shift_start, interval_minutes))
    checkpoints = []
    for index in range(count_intervals(shift_duration_minutes, interval_minutes)):
        minutes = first + index * interval_minutes
        if minutes >= MINUTES_PER_DAY:
            break
        checkpoints.append(from_minutes(minutes))
    return checkpoints


class CheckpointScheduler:
    """Emits each checkpoint of a shift once, in order, as game time passes."""

    def __init__(
        self, shift_start: int, shift_duration_minutes: int, interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    ) -> None:
        """
        Initialize scheduler.

        Args:
            shift_start: Shift start (HHMM)
            shift_duration_minutes: Shift length in game minutes
            interval_minutes: Spacing between checkpoints
        """
        self._shift_start = shift_start
        self._interval_minutes = interval_minutes
        self._origin = quantize_down(shift_start, interval_minutes)
        self._pending: deque[int] = deque(
            build_checkpoints(shift_start, shift_duration_minutes, interval_minutes)
        )
        self._consumed: list[int] = []
        logger.debug(f"Checkpoints: {list(self._pending)}")

    @property
    def pending(self) -> tuple[int, ...]:
        """Checkpoints not reached yet, in arrival order."""
        return tuple(self._pending)

    @property
    def consumed(self) -> tuple[int, ...]:
        """Checkpoints already emitted, in arrival order."""
        return tuple(self._consumed)

    @property
    def next_checkpoint(self) -> Optional[int]:
        """Earliest checkpoint not reached yet."""
        return self._pending[0] if self._pending else None

    def check_arrival(self, elapsed_game_minutes: int) -> Optional[int]:
        """
        Consume the earliest pending checkpoint if game time has reached it.

        Args:
            elapsed_game_minutes: Whole game minutes since shift start

        Returns:
            The checkpoint reached, or None
        """
        if not self._pending:
            return None

        elapsed = timemark_plus_minutes(self._shift_start, elapsed_game_minutes, self._interval_minutes)
        # Compare in shift order so times past midnight sort after the evening
        if elapsed_game_minutes >= MINUTES_PER_DAY:
            reached = True
        else:
            reached = shift_offset(self._pending[0], self._origin) <= shift_offset(elapsed, self._origin)
        if not reached:
            return None

        checkpoint = self._pending.popleft()
        self._consumed.append(checkpoint)
        logger.info(f"Checkpoint reached: {checkpoint:04d}")
        return checkpoint
