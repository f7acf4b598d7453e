"""Clock engine: accelerated game time for one shift."""

import logging
from typing import Callable, Optional

from shiftsim.engine.driver import ThreadedIntervalDriver, TickCallback, TickDriver
from shiftsim.engine.store import StateStore
from shiftsim.helpers.debug import log_call
from shiftsim.models.actions import GameOver, InitializeGame, TogglePause, UpdateTime
from shiftsim.models.game_time import format_clock, from_minutes, to_minutes
from shiftsim.models.shift import ClockReading, ClockSnapshot, ClockState, GameStatus, ShiftConfig

logger = logging.getLogger(__name__)

TickListener = Callable[[ClockReading], None]


class ClockEngine:
    """
    Owns the passage of simulated time for one shift.

    Every tick is one simulated second; the driver delivers ``speed_factor``
    ticks per real second. Each tick publishes the new time to the store, then
    hands the same reading to the tick listeners.
    """

    def __init__(self, store: StateStore, driver: Optional[TickDriver] = None) -> None:
        """
        Initialize clock engine.

        Args:
            store: Store the clock publishes time into
            driver: Tick driver; a real-time threaded driver by default
        """
        self._store = store
        self._driver = driver if driver is not None else ThreadedIntervalDriver()
        self._config: Optional[ShiftConfig] = None
        self._state: Optional[ClockState] = None
        self._start_minutes = 0
        self._game_over_callback: Optional[Callable[[], None]] = None
        self._tick_listeners: list[TickListener] = []
        self._unsubscribe_status = store.subscribe("game_status", self._on_game_status)

    @property
    def config(self) -> Optional[ShiftConfig]:
        """Get shift configuration."""
        return self._config

    @property
    def state(self) -> Optional[ClockState]:
        """Get clock state."""
        return self._state

    @property
    def driver(self) -> TickDriver:
        """Get tick driver."""
        return self._driver

    @property
    def is_running(self) -> bool:
        """Whether the driver is delivering ticks."""
        return self._driver.is_running

    @log_call
    def initialize(self, config: ShiftConfig, game_over_callback: Optional[Callable[[], None]] = None) -> None:
        """
        Reset the clock for a shift, stopping any running driver first.

        Args:
            config: Shift configuration
            game_over_callback: Called once when the shift ends
        """
        self.stop()
        self._config = config
        self._start_minutes = to_minutes(config.shift_start_time)
        self._game_over_callback = game_over_callback
        self._state = ClockState(
            total_seconds=config.total_seconds,
            seconds_remaining=config.total_seconds,
        )
        self._store.dispatch(InitializeGame(start_time=config.shift_start_time))
        logger.info(
            f"Clock initialized: start={config.shift_start_time:04d}, "
            f"duration={config.shift_duration_game_minutes} game min, speed={config.speed_factor}x "
            f"({config.real_duration_seconds:.1f}s real)"
        )

    def start(self, callback: Optional[TickCallback] = None) -> None:
        """
        Arm the driver at ``1 / speed_factor`` seconds per tick.

        Args:
            callback: What the driver calls each tick; tick() by default

        Raises:
            RuntimeError: If the clock is not initialized or the shift already ended
        """
        config, state = self._require_initialized()
        if state.is_terminated:
            raise RuntimeError("Shift has ended; initialize() the clock again before starting")
        self._driver.start(config.tick_interval_seconds, callback or self.tick)
        logger.info("Clock started")

    def stop(self) -> None:
        """Cancel future ticks. Safe to call repeatedly."""
        self._driver.stop()

    def close(self) -> None:
        """Stop ticking and detach from the store."""
        self.stop()
        self._unsubscribe_status()

    def add_tick_listener(self, listener: TickListener) -> Callable[[], None]:
        """
        Register a function called with each tick's reading, after the time update.

        Returns:
            Function that removes the listener
        """
        self._tick_listeners.append(listener)

        def remove() -> None:
            if listener in self._tick_listeners:
                self._tick_listeners.remove(listener)

        return remove

    def tick(self) -> Optional[ClockReading]:
        """
        Advance the clock by one simulated second.

        Returns:
            The reading for this tick, or None if paused or terminated

        Raises:
            RuntimeError: If called before initialize()
        """
        _, state = self._require_initialized()
        if state.is_terminated or state.is_paused:
            return None

        self._state = state.model_copy(update={"seconds_remaining": state.seconds_remaining - 1})
        reading = self.read()

        try:
            self._store.dispatch(UpdateTime(time=reading.current_time, seconds=reading.seconds))
            for listener in list(self._tick_listeners):
                listener(reading)
        finally:
            # The last second always ends the shift, even if a listener failed
            if self._state.seconds_remaining == 0:
                self._terminate()
        return reading

    def read(self) -> ClockReading:
        """Derive the current game time from the countdown."""
        _, state = self._require_initialized()
        elapsed = state.elapsed_seconds
        return ClockReading(
            current_time=from_minutes(self._start_minutes + elapsed // 60),
            seconds=elapsed % 60,
            elapsed_game_seconds=elapsed,
            seconds_remaining=state.seconds_remaining,
        )

    def current_game_time(self) -> int:
        """Current game time (HHMM)."""
        return self.read().current_time

    def poll_time(self) -> ClockSnapshot:
        """Snapshot of time, remaining seconds, pause flag and progress."""
        _, state = self._require_initialized()
        reading = self.read()
        return ClockSnapshot(
            current_time=reading.current_time,
            seconds_left=state.seconds_remaining,
            is_paused=state.is_paused,
            is_terminated=state.is_terminated,
            progress_percent=state.elapsed_seconds / state.total_seconds * 100,
            clock_text=format_clock(reading.current_time, reading.seconds),
        )

    @log_call
    def pause(self) -> bool:
        """
        Pause the clock.

        Returns:
            True if the clock was running and is now paused
        """
        _, state = self._require_initialized()
        if state.is_paused or state.is_terminated:
            return False
        self._state = state.model_copy(update={"is_paused": True})
        self._store.dispatch(TogglePause())
        logger.info("Clock paused")
        return True

    @log_call
    def resume(self) -> bool:
        """
        Resume a paused clock; the countdown continues where it stopped.

        Returns:
            True if the clock was paused and is now running
        """
        _, state = self._require_initialized()
        if not state.is_paused or state.is_terminated:
            return False
        self._state = state.model_copy(update={"is_paused": False})
        self._store.dispatch(TogglePause())
        logger.info("Clock resumed")
        return True

    def _terminate(self) -> None:
        """Raise the one-shot end-of-shift edge."""
        if self._state.is_terminated:
            raise RuntimeError("Shift already terminated")
        self._state = self._state.model_copy(update={"is_terminated": True})
        self.stop()
        self._store.dispatch(GameOver())
        logger.info(f"Shift ended at {self.current_game_time():04d}")
        if self._game_over_callback is not None:
            self._game_over_callback()

    def _on_game_status(self, status: GameStatus, previous: GameStatus) -> None:
        """Mirror pause changes made directly on the store."""
        state = self._state
        if state is None or state.is_terminated:
            return
        if status == GameStatus.PAUSED and not state.is_paused:
            self._state = state.model_copy(update={"is_paused": True})
        elif status == GameStatus.RUNNING and state.is_paused:
            self._state = state.model_copy(update={"is_paused": False})

    def _require_initialized(self) -> tuple[ShiftConfig, ClockState]:
        if self._config is None or self._state is None:
            raise RuntimeError("Clock is not initialized; call initialize() first")
        return self._config, self._state
