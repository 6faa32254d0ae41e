"""
Schedule Time Tool
Wall-clock schedule times and half-open date windows
"""

import logging
from typing import Iterable, List, Union
from dataclasses import dataclass
from datetime import datetime, date, time, timedelta


logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, order=True)
class ScheduleTime:
    """
    A time of day at which a medication is meant to be taken.

    Carries no date and no timezone: it is combined with a calendar day
    in the user's local clock when instances or triggers are produced.
    """
    hour: int
    minute: int

    def __post_init__(self):
        if not isinstance(self.hour, int) or not 0 <= self.hour <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {self.hour!r}")
        if not isinstance(self.minute, int) or not 0 <= self.minute <= 59:
            raise ValueError(f"Minute must be between 0 and 59, got {self.minute!r}")

    @classmethod
    def parse(cls, value: Union["ScheduleTime", time, str]) -> "ScheduleTime":
        """Build from a ScheduleTime, a datetime.time or an 'HH:MM' string"""
        if isinstance(value, ScheduleTime):
            return value
        if isinstance(value, time):
            return cls(value.hour, value.minute)
        if isinstance(value, str):
            parts = value.strip().split(":")
            if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
                raise ValueError(f"Cannot parse schedule time string: {value!r}")
            if len(parts) == 3 and not 0 <= int(parts[2]) <= 59:
                raise ValueError(f"Seconds out of range in schedule time: {value!r}")
            return cls(int(parts[0]), int(parts[1]))
        raise TypeError(f"Unsupported schedule time type: {type(value)}")

    @classmethod
    def from_minutes(cls, total_minutes: int) -> "ScheduleTime":
        """Build from minutes after midnight, wrapping across the day boundary"""
        wrapped = total_minutes % MINUTES_PER_DAY
        return cls(wrapped // 60, wrapped % 60)

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def shifted(self, minutes: int) -> "ScheduleTime":
        """Return this time moved by `minutes`, modulo 24 hours"""
        return ScheduleTime.from_minutes(self.minutes + minutes)

    def on(self, day: date) -> datetime:
        """Instantiate this time on a calendar day"""
        return datetime.combine(day, time(self.hour, self.minute))

    def to_time(self) -> time:
        return time(self.hour, self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def parse_schedule(values: Iterable[Union[ScheduleTime, time, str]]) -> List[ScheduleTime]:
    """Parse a whole schedule, keeping the caller's order"""
    return [ScheduleTime.parse(v) for v in values]


def start_of_day(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.min)


@dataclass(frozen=True)
class DateWindow:
    """Half-open range [start, end) used for queries and aggregation"""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} is before start {self.start}")

    @classmethod
    def for_day(cls, day: Union[date, datetime]) -> "DateWindow":
        start = start_of_day(day)
        return cls(start, start + timedelta(days=1))

    @classmethod
    def last_days(cls, days: int, today: Union[date, datetime]) -> "DateWindow":
        """The `days` calendar days ending with (and including) `today`"""
        if days < 1:
            raise ValueError(f"Window must cover at least one day, got {days}")
        end = start_of_day(today) + timedelta(days=1)
        return cls(end - timedelta(days=days), end)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def __contains__(self, moment: datetime) -> bool:
        return self.contains(moment)
