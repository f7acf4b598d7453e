"""Pytest configuration and fixtures."""

import pytest

from shiftsim.engine.driver import ManualDriver
from shiftsim.engine.shift_engine import ShiftSimulation
from shiftsim.engine.store import StateStore
from shiftsim.models.shift import ShiftConfig


@pytest.fixture
def store():
    """Fresh state store."""
    return StateStore()


@pytest.fixture
def short_config():
    """Ten game minutes from 19:00 at 60 ticks per real second."""
    return ShiftConfig(shift_start_time=1900, shift_duration_game_minutes=10, speed_factor=60)


@pytest.fixture
def hour_config():
    """One game hour from 19:00 at 60 ticks per real second."""
    return ShiftConfig(shift_start_time=1900, shift_duration_game_minutes=60, speed_factor=60)


@pytest.fixture
def manual_driver():
    """Driver that only ticks when advanced."""
    return ManualDriver()


@pytest.fixture
def simulation(hour_config, manual_driver):
    """One-hour shift driven by hand."""
    shift = ShiftSimulation(hour_config, driver=manual_driver)
    yield shift
    shift.close()


@pytest.fixture
def sample_task_specs():
    """Task declarations in the content layer's shape."""
    return [
        {"id": "vitals-1900", "type": "assessment", "name": "Check vitals", "scheduledTime": 1900, "expireTime": 1930},
        {"id": "meds-1915", "type": "med", "name": "Give metoprolol", "scheduledTime": "19:15", "expireTime": "+30"},
        {"id": "wound-2000", "type": "procedure", "name": "Dressing change", "scheduledTime": 2000},
    ]
