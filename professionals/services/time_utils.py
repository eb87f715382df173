"""
Minute-of-day helpers used by the availability engine.

All interval math in the engine works on integers (minutes since
midnight) and intervals are half-open: [start, end).
"""

from datetime import time


def time_to_minutes(value) -> int:
    """
    Convert "HH:MM", "HH:MM:SS" or a datetime.time to minutes since midnight.

    Seconds are ignored. Empty input (None or "") yields 0.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    parts = str(value).strip().split(":")
    hours = int(parts[0])
    minutes = int(parts[1]) if len(parts) > 1 else 0
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Inverse of time_to_minutes: 540 -> "09:00"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_clock(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """
    Half-open overlap test.
    Touching intervals ([9:00, 9:30) and [9:30, 10:00)) do not overlap.
    """
    return start_a < end_b and start_b < end_a
