"""
Turning schedule calculation
"""
import math
from typing import List

START_MINUTES = 8 * 60  # first turn at 08:00
MINUTES_PER_DAY = 24 * 60


def calculate_schedule(turns_per_day: int, interval_hours: float) -> List[str]:
    """
    Calculate the times of day (HH:MM) for each egg turn.

    Turns start at 08:00 and are spaced interval_hours apart, wrapping around
    midnight. Wrapped times may repeat or come out of order, e.g. 4 turns
    every 6 hours gives ["08:00", "14:00", "20:00", "02:00"].
    """
    if not 1 <= turns_per_day <= 24:
        raise ValueError(f"turns_per_day must be between 1 and 24, got {turns_per_day}")
    if not 1 <= interval_hours <= 24:
        raise ValueError(f"interval_hours must be between 1 and 24, got {interval_hours}")

    times = []
    for i in range(turns_per_day):
        # Fractional minutes are truncated, float noise is rounded away first
        total_minutes = math.floor(round(START_MINUTES + i * interval_hours * 60, 6)) % MINUTES_PER_DAY
        hours, minutes = divmod(total_minutes, 60)
        times.append(f"{hours:02d}:{minutes:02d}")
    return times


def format_duration(seconds: int) -> str:
    """Render a countdown as '1h 5m', '4m 10s' or '9s'"""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
