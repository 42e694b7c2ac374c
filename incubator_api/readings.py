"""
Reading store module
Bounded, most-recent-first history of incubator readings
"""
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Callable, Deque, Iterable, Iterator, List, Optional

from .models import Reading


class ReadingStore:
    """Keeps the latest readings, newest first, dropping the oldest past max_size"""

    def __init__(self, max_size: int = 500):
        self.max_size = max_size
        self._readings: Deque[Reading] = deque(maxlen=max_size)

    def append(self, reading: Reading):
        """Insert a reading at the head (evicts the oldest when full)"""
        self._readings.appendleft(reading)

    def replace_all(self, readings: Iterable[Reading]):
        """Discard current contents; readings are expected newest first"""
        self._readings = deque(readings, maxlen=self.max_size)

    def query(self, predicate: Optional[Callable[[Reading], bool]] = None) -> Iterator[Reading]:
        """Lazy filtered view, newest first"""
        if predicate is None:
            return iter(list(self._readings))
        return (r for r in list(self._readings) if predicate(r))

    def latest(self) -> Optional[Reading]:
        return self._readings[0] if self._readings else None

    def to_list(self) -> List[Reading]:
        return list(self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(list(self._readings))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class ReadingFilter:
    """History filter: calendar-day range, value ranges and turning events only"""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    humidity_min: Optional[float] = None
    humidity_max: Optional[float] = None
    turning_only: bool = False

    def __call__(self, reading: Reading) -> bool:
        timestamp = _as_utc(reading.timestamp)

        if self.date_from and timestamp < datetime.combine(self.date_from, time.min, tzinfo=timezone.utc):
            return False
        if self.date_to and timestamp > datetime.combine(self.date_to, time.max, tzinfo=timezone.utc):
            return False

        if self.temp_min is not None and reading.temperature < self.temp_min:
            return False
        if self.temp_max is not None and reading.temperature > self.temp_max:
            return False

        if self.humidity_min is not None and reading.humidity < self.humidity_min:
            return False
        if self.humidity_max is not None and reading.humidity > self.humidity_max:
            return False

        if self.turning_only and not reading.egg_turning:
            return False

        return True
