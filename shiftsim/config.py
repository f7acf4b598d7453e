"""Central configuration defaults and constants for shiftsim."""

import os

# Shift Defaults
DEFAULT_SPEED_FACTOR = float(os.getenv("SHIFTSIM_SPEED_FACTOR", "1440"))  # Ticks (simulated seconds) per real second
DEFAULT_SHIFT_START = int(os.getenv("SHIFTSIM_SHIFT_START", "1900"))  # HHMM, 1900 = 7:00 PM
DEFAULT_SHIFT_DURATION = int(os.getenv("SHIFTSIM_SHIFT_DURATION", str(12 * 60)))  # Game minutes (12 hours)

# Task Scheduling
# Tasks are scheduled in quarter-hour blocks
DEFAULT_CHECKPOINT_INTERVAL = int(os.getenv("SHIFTSIM_CHECKPOINT_INTERVAL", "15"))

# Tick Driver
DEFAULT_DRIVER_JOIN_TIMEOUT = float(os.getenv("SHIFTSIM_DRIVER_JOIN_TIMEOUT", "2.0"))  # Seconds to wait for the tick thread on stop

# Query-string parameter names used by the bootstrap layer
QUERY_PARAM_SPEED_FACTOR = "speed-factor"
QUERY_PARAM_SHIFT_STARTS = "shift-starts"
QUERY_PARAM_SHIFT_DURATION = "shift-duration"
QUERY_PARAM_PRESET = "preset"

# HTTP host
DEFAULT_API_PORT = int(os.getenv("SHIFTSIM_API_PORT", "5000"))
DEFAULT_API_DEBUG = os.getenv("SHIFTSIM_API_DEBUG", "false").lower() in ("true", "1", "yes", "on")
DEFAULT_LOG_LEVEL = os.getenv("SHIFTSIM_LOG_LEVEL", "INFO").upper()

# Shift presets
# real_minutes is how long the player plays; the speed factor is derived from it
SHIFT_PRESETS: dict[str, dict[str, int]] = {
    # Quick testing scenarios
    "DEMO": {"shift_start_time": 1900, "shift_duration_game_minutes": 60, "real_minutes": 2},
    "QUICK_PRACTICE": {"shift_start_time": 1900, "shift_duration_game_minutes": 4 * 60, "real_minutes": 5},
    "FULL_SHIFT": {"shift_start_time": 1900, "shift_duration_game_minutes": 12 * 60, "real_minutes": 30},
    "EXTENDED_SHIFT": {"shift_start_time": 1500, "shift_duration_game_minutes": 16 * 60, "real_minutes": 45},
}
