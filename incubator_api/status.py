"""
Status transitions
Pure functions producing the next live status snapshot
"""
import random
from datetime import datetime

from .models import RemoteStatus, Status

TEMP_RANGE = (36.0, 40.0)
HUMIDITY_RANGE = (40.0, 80.0)
TEMP_STEP = 0.1
HUMIDITY_STEP = 0.5


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def simulate_status(status: Status, rng: random.Random, now: datetime) -> Status:
    """
    Random walk of temperature (±0.1°C) and humidity (±0.5%).

    Values are rounded to one decimal and clamped to 36-40°C / 40-80%.
    Simulated data is always reported as connected.
    """
    temperature = round(status.temperature + rng.uniform(-TEMP_STEP, TEMP_STEP), 1)
    humidity = round(status.humidity + rng.uniform(-HUMIDITY_STEP, HUMIDITY_STEP), 1)

    return status.model_copy(update={
        "temperature": _clamp(temperature, TEMP_RANGE),
        "humidity": _clamp(humidity, HUMIDITY_RANGE),
        "last_updated": now,
        "connected": True
    })


def apply_remote_status(status: Status, remote: RemoteStatus, now: datetime) -> Status:
    """Replace the snapshot with what the device reported"""
    return status.model_copy(update={
        "temperature": remote.temperature,
        "humidity": remote.humidity,
        "motor_status": remote.motor_status,
        "turns_today": remote.turns_today,
        "next_turn_in": remote.next_turn_in,
        "last_updated": now,
        "connected": True
    })


def mark_disconnected(status: Status) -> Status:
    """Keep the last known values, flag the device as unreachable"""
    return status.model_copy(update={"connected": False})


def tick_countdown(status: Status) -> Status:
    """Count the next turn down by one second, never below zero"""
    if status.next_turn_in <= 0:
        return status.model_copy(update={"next_turn_in": 0})
    return status.model_copy(update={"next_turn_in": status.next_turn_in - 1})
