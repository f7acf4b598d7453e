"""Periodic tick drivers.

A driver calls one callback at a fixed cadence, serially: the next call never
starts before the previous one has returned.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

from shiftsim.config import DEFAULT_DRIVER_JOIN_TIMEOUT

logger = logging.getLogger(__name__)

TickCallback = Callable[[], object]


class TickDriver(Protocol):
    """Anything that can deliver ticks to a callback."""

    @property
    def is_running(self) -> bool: ...

    def start(self, interval_seconds: float, callback: TickCallback) -> None: ...

    def stop(self) -> None: ...


class ThreadedIntervalDriver:
    """
    Delivers ticks from a background thread in real time.

    Drift is accepted: the interval is waited out after each tick, so a slow
    tick delays the following ones.

    Example:
        >>> driver = ThreadedIntervalDriver()
        >>> driver.start(1 / 60, clock.tick)  # 60 ticks per second
        >>> driver.stop()
    """

    def __init__(self, join_timeout: float = DEFAULT_DRIVER_JOIN_TIMEOUT, name: str = "shiftsim-tick") -> None:
        """
        Initialize driver.

        Args:
            join_timeout: Seconds to wait for the tick thread to exit on stop()
            name: Name of the tick thread
        """
        self._join_timeout = join_timeout
        self._name = name
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

    @property
    def is_running(self) -> bool:
        """Whether ticks are being delivered."""
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._stop_event is not None
            and not self._stop_event.is_set()
        )

    def start(self, interval_seconds: float, callback: TickCallback) -> None:
        """
        Start delivering ticks, replacing any running loop.

        Raises:
            ValueError: If the interval is not positive
        """
        if interval_seconds <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_seconds}")
        self.stop()

        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(stop_event, interval_seconds, callback),
            name=self._name,
            daemon=True,
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()
        logger.debug(f"Tick driver started: interval={interval_seconds:.6f}s")

    def stop(self) -> None:
        """Stop delivering ticks. Safe to call repeatedly and from inside a tick."""
        stop_event = self._stop_event
        if stop_event is not None:
            stop_event.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout)
            if thread.is_alive():
                logger.warning("Tick thread did not exit cleanly within timeout")
        self._thread = None
        self._stop_event = None

    def _run(self, stop_event: threading.Event, interval_seconds: float, callback: TickCallback) -> None:
        """Main tick loop (runs in background thread)."""
        while not stop_event.wait(interval_seconds):
            try:
                callback()
            except Exception:
                logger.exception("Tick failed; stopping tick driver.")
                stop_event.set()
                break


class ManualDriver:
    """
    Delivers ticks only when the host asks for them.

    Example:
        >>> driver = ManualDriver()
        >>> driver.start(1 / 60, clock.tick)
        >>> driver.advance(600)  # ten simulated minutes
        600
    """

    def __init__(self) -> None:
        self._callback: TickCallback | None = None
        self._interval_seconds: float | None = None
        self.ticks_delivered = 0

    @property
    def is_running(self) -> bool:
        return self._callback is not None

    @property
    def interval_seconds(self) -> float | None:
        """Cadence the driver was armed with."""
        return self._interval_seconds

    def start(self, interval_seconds: float, callback: TickCallback) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_seconds}")
        self._interval_seconds = interval_seconds
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def advance(self, count: int = 1) -> int:
        """
        Deliver up to ``count`` ticks, stopping early if the driver is stopped.

        Returns:
            Number of ticks delivered
        """
        delivered = 0
        for _ in range(count):
            callback = self._callback
            if callback is None:
                break
            callback()
            delivered += 1
        self.ticks_delivered += delivered
        return delivered
