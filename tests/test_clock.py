"""Tests for the clock engine."""

import pytest

from shiftsim.engine.clock import ClockEngine
from shiftsim.models.shift import GameStatus, ShiftConfig


@pytest.fixture
def clock(store, manual_driver):
    """Clock engine with a manual driver."""
    engine = ClockEngine(store, manual_driver)
    yield engine
    engine.close()


class TestClockLifecycle:
    """Test suite for initialize, start and termination."""

    def test_tick_before_initialize_raises(self, clock):
        """Test ticking an uninitialized clock is an error."""
        with pytest.raises(RuntimeError):
            clock.tick()

    def test_start_before_initialize_raises(self, clock):
        """Test starting an uninitialized clock is an error."""
        with pytest.raises(RuntimeError):
            clock.start()

    def test_initialize_publishes_start_time(self, clock, store, short_config):
        """Test initialize resets the countdown and the store."""
        clock.initialize(short_config)
        assert clock.state.seconds_remaining == 600
        assert clock.current_game_time() == 1900
        assert store.state.current_time == 1900
        assert store.state.game_status == GameStatus.RUNNING

    def test_start_arms_driver_at_speed(self, clock, manual_driver, short_config):
        """Test the driver runs at one tick per 1/speed_factor seconds."""
        clock.initialize(short_config)
        clock.start()
        assert manual_driver.is_running
        assert manual_driver.interval_seconds == pytest.approx(1 / 60)

    def test_each_tick_is_one_game_second(self, clock, store, short_config):
        """Test time advances one simulated second per tick."""
        clock.initialize(short_config)
        for _ in range(59):
            clock.tick()
        assert store.state.current_time == 1900
        assert store.state.current_seconds == 59

        reading = clock.tick()
        assert reading.current_time == 1901
        assert reading.seconds == 0
        assert reading.elapsed_game_minutes == 1
        assert store.state.current_time == 1901

    def test_terminates_exactly_once(self, clock, store, manual_driver, short_config):
        """Test the end of shift fires once and stops the driver."""
        calls = []
        clock.initialize(short_config, lambda: calls.append("over"))
        clock.start()

        delivered = manual_driver.advance(1000)

        assert delivered == 600
        assert calls == ["over"]
        assert clock.state.is_terminated
        assert clock.state.seconds_remaining == 0
        assert not manual_driver.is_running
        assert store.state.game_status == GameStatus.GAME_OVER
        assert store.state.current_time == 1910

        assert clock.tick() is None
        assert calls == ["over"]

    def test_start_after_termination_raises(self, clock, short_config):
        """Test a finished shift cannot be restarted without initialize."""
        clock.initialize(short_config)
        for _ in range(600):
            clock.tick()
        with pytest.raises(RuntimeError):
            clock.start()
        with pytest.raises(RuntimeError):
            clock._terminate()

    def test_reinitialize_after_termination(self, clock, short_config):
        """Test initialize re-arms a finished clock."""
        clock.initialize(short_config)
        for _ in range(600):
            clock.tick()
        clock.initialize(short_config)
        assert not clock.state.is_terminated
        clock.start()
        assert clock.is_running

    def test_tick_listeners_run_after_time_update(self, clock, store, short_config):
        """Test listeners see the store already holding the tick's time."""
        seen = []
        clock.initialize(short_config)
        remove = clock.add_tick_listener(lambda reading: seen.append((reading.seconds, store.state.current_seconds)))
        clock.tick()
        clock.tick()
        remove()
        clock.tick()
        assert seen == [(1, 1), (2, 2)]

    def test_listeners_run_before_game_over(self, clock, store, short_config):
        """Test the terminal tick still reaches the listeners before game over."""
        statuses = []
        clock.initialize(short_config)
        clock.add_tick_listener(lambda reading: statuses.append(store.state.game_status))
        for _ in range(600):
            clock.tick()
        assert statuses[-1] == GameStatus.RUNNING
        assert store.state.game_status == GameStatus.GAME_OVER

    def test_failing_listener_on_last_tick_still_ends_shift(self, clock, store, short_config):
        """Test the error propagates but the final second still terminates."""
        calls = []

        def fail_at_end(reading):
            if reading.seconds_remaining == 0:
                raise RuntimeError("listener failed")

        clock.initialize(short_config, lambda: calls.append("over"))
        clock.add_tick_listener(fail_at_end)
        for _ in range(599):
            clock.tick()

        with pytest.raises(RuntimeError, match="listener failed"):
            clock.tick()

        assert clock.state.is_terminated
        assert store.state.game_status == GameStatus.GAME_OVER
        assert calls == ["over"]
        assert clock.tick() is None


class TestPause:
    """Test suite for pause and resume."""

    def test_pause_freezes_time(self, clock, short_config):
        """Test ticks are ignored while paused."""
        clock.initialize(short_config)
        clock.tick()
        assert clock.pause() is True
        assert clock.tick() is None
        assert clock.state.seconds_remaining == 599

        assert clock.resume() is True
        clock.tick()
        assert clock.state.seconds_remaining == 598

    def test_pause_is_idempotent(self, clock, store, short_config):
        """Test pausing twice changes nothing the second time."""
        clock.initialize(short_config)
        assert clock.pause() is True
        assert clock.pause() is False
        assert store.state.is_paused is True
        assert clock.resume() is True
        assert clock.resume() is False
        assert store.state.is_paused is False

    def test_pause_from_store(self, clock, store, short_config):
        """Test a TOGGLE_PAUSE dispatched elsewhere pauses the clock."""
        clock.initialize(short_config)
        store.dispatch("TOGGLE_PAUSE")
        assert clock.state.is_paused
        assert clock.tick() is None
        store.dispatch("TOGGLE_PAUSE")
        assert clock.tick() is not None

    def test_pause_after_termination(self, clock, short_config):
        """Test a finished shift cannot be paused."""
        clock.initialize(short_config)
        for _ in range(600):
            clock.tick()
        assert clock.pause() is False


class TestPollTime:
    """Test suite for the external time snapshot."""

    def test_poll_time(self, clock, short_config):
        """Test the snapshot reflects the countdown."""
        clock.initialize(short_config)
        for _ in range(90):
            clock.tick()
        snapshot = clock.poll_time()
        assert snapshot.current_time == 1901
        assert snapshot.seconds_left == 510
        assert snapshot.is_paused is False
        assert snapshot.is_terminated is False
        assert snapshot.progress_percent == pytest.approx(15.0)
        assert snapshot.clock_text == "19:01:30"

    def test_poll_time_across_midnight(self, clock, store):
        """Test the clock wraps past 23:59."""
        clock.initialize(ShiftConfig(shift_start_time=2359, shift_duration_game_minutes=5, speed_factor=60))
        for _ in range(60):
            clock.tick()
        assert clock.poll_time().current_time == 0
        assert store.state.current_time == 0
