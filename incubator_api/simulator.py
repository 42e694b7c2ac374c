"""
Mockup Incubator Simulator
Generates realistic incubator status and reading history for mock mode
"""
import itertools
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .models import MotorStatus, Reading, Status


class IncubatorSimulator:
    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)
        self._counter = itertools.count(1)

        # Normal operating band for a chicken egg incubator
        self.temp_range = (37.0, 38.5)
        self.humidity_range = (55.0, 65.0)

        # Timing
        self.reading_interval = timedelta(minutes=15)
        self.turning_every = 32  # readings, roughly every 8 hours

    def _between(self, low: float, high: float, decimals: int = 1) -> float:
        return round(self.rng.uniform(low, high), decimals)

    def next_id(self, now: datetime) -> str:
        """Unique, monotonically increasing reading id"""
        return f"reading-{int(now.timestamp() * 1000)}-{next(self._counter)}"

    def initial_status(self, now: Optional[datetime] = None) -> Status:
        """Plausible starting snapshot: idle motor, next turn in 1-2 hours"""
        now = now or datetime.now(timezone.utc)
        return Status(
            temperature=self._between(37.2, 38.3),
            humidity=self._between(57, 63),
            motor_status=MotorStatus.IDLE,
            turns_today=2,
            next_turn_in=3600 + self.rng.randrange(3600),
            last_updated=now,
            connected=True
        )

    def generate_history(self, count: int = 100, now: Optional[datetime] = None) -> List[Reading]:
        """One reading every 15 minutes going back from now, newest first"""
        now = now or datetime.now(timezone.utc)
        readings = []

        for i in range(count):
            turning = i % self.turning_every == 0
            timestamp = now - i * self.reading_interval
            readings.append(Reading(
                id=self.next_id(timestamp),
                timestamp=timestamp,
                temperature=self._between(*self.temp_range),
                humidity=self._between(*self.humidity_range),
                egg_turning=turning,
                motor_status=MotorStatus.RUNNING if turning else MotorStatus.IDLE
            ))

        return readings

    def reading_from_status(self, status: Status, now: Optional[datetime] = None) -> Reading:
        """Log entry capturing the current snapshot"""
        now = now or datetime.now(timezone.utc)
        return Reading(
            id=self.next_id(now),
            timestamp=now,
            temperature=status.temperature,
            humidity=status.humidity,
            egg_turning=False,
            motor_status=status.motor_status
        )
