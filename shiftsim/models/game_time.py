"""GameTime value type and the time codec.

A GameTime is a compact HHMM integer: ``hours * 100 + minutes`` (1930 is 19:30).
Every function here is pure and validates its GameTime inputs; out-of-domain
input is a caller error and raises ``ValueError`` immediately.
"""

from typing import Annotated, Optional, Union

from pydantic import BeforeValidator

MINUTES_PER_DAY = 24 * 60
DEFAULT_INTERVAL_MINUTES = 15


def validate_game_time(value: int) -> int:
    """
    Check that a value is a valid HHMM GameTime.

    Args:
        value: Candidate GameTime

    Returns:
        The same value

    Raises:
        ValueError: If the value is not an int in [0, 2359] with minutes < 60
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"GameTime must be an int, got {value!r}")
    if not 0 <= value <= 2359 or value % 100 >= 60:
        raise ValueError(f"Invalid GameTime {value}: expected HHMM in 0000..2359")
    return value


def parse_game_time(value: Union[int, str]) -> int:
    """
    Parse an int or an "HHMM" / "HH:MM" string into a GameTime.

    Examples:
        >>> parse_game_time("19:30")
        1930
        >>> parse_game_time("0015")
        15
    """
    if isinstance(value, str):
        cleaned = value.strip().replace(":", "")
        if not cleaned.isdigit():
            raise ValueError(f"Invalid GameTime string {value!r}")
        value = int(cleaned)
    return validate_game_time(value)


GameTime = Annotated[int, BeforeValidator(parse_game_time)]


def to_minutes(time: int) -> int:
    """Convert a GameTime to minutes after midnight."""
    validate_game_time(time)
    return (time // 100) * 60 + time % 100


def from_minutes(minutes: int) -> int:
    """Convert minutes after midnight to a GameTime, wrapping at 24:00."""
    minutes %= MINUTES_PER_DAY
    return (minutes // 60) * 100 + minutes % 60


def _check_interval(interval_minutes: int) -> None:
    if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int) or interval_minutes <= 0:
        raise ValueError(f"Interval must be a positive number of minutes, got {interval_minutes!r}")


def quantize_down(time: int, interval_minutes: int = DEFAULT_INTERVAL_MINUTES) -> int:
    """
    Round a GameTime down to the nearest preceding interval boundary.

    Examples:
        >>> quantize_down(1937)
        1930
    """
    _check_interval(interval_minutes)
    minutes = to_minutes(time)
    return from_minutes(minutes - minutes % interval_minutes)


def add_minutes(time: int, delta_minutes: int) -> int:
    """
    Add a (possibly negative) number of minutes to a GameTime with day wraparound.

    Examples:
        >>> add_minutes(2330, 45)
        15
        >>> add_minutes(15, -45)
        2330
    """
    return from_minutes(to_minutes(time) + delta_minutes)


def timemark_plus_minutes(
    time: int, delta_minutes: int, interval_minutes: int = DEFAULT_INTERVAL_MINUTES
) -> int:
    """
    Add minutes to a GameTime, then round down to the interval boundary.

    Examples:
        >>> timemark_plus_minutes(1900, 37)
        1930
        >>> timemark_plus_minutes(1007, 120)
        1200
    """
    return quantize_down(add_minutes(time, delta_minutes), interval_minutes)


def resolve_expiry(
    scheduled: Optional[int],
    expire_spec: Union[int, str, None],
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
) -> Optional[int]:
    """
    Resolve an expiry declaration into an absolute GameTime.

    Args:
        scheduled: Scheduled GameTime the relative form is based on
        expire_spec: Absolute GameTime, "+N" minutes after scheduled, or None
        interval_minutes: Boundary the relative form is quantized down to

    Returns:
        Absolute expiry GameTime, or None when no expiry is declared

    Raises:
        ValueError: If the declaration is malformed, or relative without a base time
    """
    if expire_spec is None:
        return None

    if isinstance(expire_spec, str) and expire_spec.strip().startswith("+"):
        offset = expire_spec.strip()[1:]
        if not offset.isdigit():
            raise ValueError(f"Invalid relative expiry {expire_spec!r}: expected '+N' minutes")
        if scheduled is None:
            raise ValueError("Relative expiry requires a scheduled time")
        return timemark_plus_minutes(scheduled, int(offset), interval_minutes)

    return parse_game_time(expire_spec)


def shift_offset(time: int, shift_start: int) -> int:
    """Minutes from shift start to a GameTime, in [0, 1440)."""
    return (to_minutes(time) - to_minutes(shift_start)) % MINUTES_PER_DAY


def count_intervals(total_minutes: int, interval_minutes: int = DEFAULT_INTERVAL_MINUTES) -> int:
    """Number of whole intervals in a span of minutes (60 -> 4 quarter hours)."""
    _check_interval(interval_minutes)
    return total_minutes // interval_minutes


def format_game_time(time: int) -> str:
    """Format a GameTime as "HH:MM"."""
    validate_game_time(time)
    return f"{time // 100:02d}:{time % 100:02d}"


def format_clock(time: int, seconds: int = 0) -> str:
    """Format a GameTime and a seconds component as the "HH:MM:SS" clock text."""
    return f"{format_game_time(time)}:{seconds:02d}"
