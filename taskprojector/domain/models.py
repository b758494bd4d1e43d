"""
Domain models for schedules, calendar exclusions and projection results.
"""

from dataclasses import dataclass, field
from datetime import time
from typing import FrozenSet, List, Optional, Tuple

from pendulum import DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start


def _minutes_of(value: time) -> int:
    return value.hour * 60 + value.minute


@dataclass
class WorkSchedule:
    """
    Configuration for working hours.

    The working window runs from ``start_time`` to ``end_time`` on every day
    listed in ``work_days``; an optional lunch break is cut out of it.
    """
    start_time: time
    end_time: time
    work_days: List[int]  # 0=Monday, 6=Sunday
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None
    timezone: str = "America/Guayaquil"

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Start time {self.start_time} must be before end time {self.end_time}"
            )
        invalid_days = [day for day in self.work_days if day not in range(7)]
        if invalid_days:
            raise ValueError(f"work_days must be between 0 and 6, got {invalid_days}")
        if (self.lunch_start is None) != (self.lunch_end is None):
            raise ValueError("lunch_start and lunch_end must be set together")
        if self.lunch_start is not None:
            if not self.start_time <= self.lunch_start <= self.lunch_end <= self.end_time:
                raise ValueError("Lunch break must lie inside the working window")

    def windows(self) -> List[Tuple[time, time]]:
        """Working windows of a canonical working day, in order."""
        if self.lunch_start is None or self.lunch_start == self.lunch_end:
            return [(self.start_time, self.end_time)]

        windows = []
        if self.start_time < self.lunch_start:
            windows.append((self.start_time, self.lunch_start))
        if self.lunch_end < self.end_time:
            windows.append((self.lunch_end, self.end_time))
        return windows

    def daily_working_minutes(self) -> int:
        """Total working minutes of one working day (0 without working days)."""
        if not self.work_days:
            return 0
        return sum(_minutes_of(end) - _minutes_of(start) for start, end in self.windows())

    def is_working_day(self, dt: DateTime) -> bool:
        """Check if a given datetime falls on a working day."""
        return dt.day_of_week in self.work_days

    def get_windows_for_day(self, day: DateTime) -> List[TimeRange]:
        """
        Get the working windows for a specific day as concrete time ranges.
        Returns an empty list if it's not a working day.
        """
        if not self.is_working_day(day):
            return []

        return [
            TimeRange(
                start=day.set(hour=start.hour, minute=start.minute, second=0, microsecond=0),
                end=day.set(hour=end.hour, minute=end.minute, second=0, microsecond=0),
            )
            for start, end in self.windows()
        ]


@dataclass(frozen=True)
class Holiday:
    """A public holiday; identified by its ``YYYY-MM-DD`` date string."""
    date: str
    name: str
    type: str = "national"
    country: str = "EC"
    is_global: bool = True


@dataclass(frozen=True)
class Meeting:
    """A calendar event that may reduce the working capacity of its day."""
    id: str
    title: str
    start: DateTime
    end: DateTime
    is_optional: bool = False

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return max(0, int((self.end - self.start).total_seconds() // 60))


@dataclass(frozen=True)
class CategorySelection:
    """Toggle plus explicitly chosen identifiers for one exclusion category."""
    enabled: bool = False
    explicit_ids: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ExclusionSelection:
    """User choices for holiday (by date) and meeting (by id) exclusion."""
    holidays: CategorySelection = field(default_factory=CategorySelection)
    meetings: CategorySelection = field(default_factory=CategorySelection)


@dataclass(frozen=True)
class CalculationResult:
    """
    Outcome of a single projection pass.
    """
    start_date: DateTime
    end_date: DateTime
    working_days: int
    actual_working_hours: float
    holidays_excluded: Tuple[Holiday, ...] = ()
    meetings_excluded: Tuple[Meeting, ...] = ()

    def format_display(self) -> str:
        """
        Format the end date for display.
        Format: Día, DD/MM/YYYY HH:mm
        """
        weekday_names = {
            0: "Lunes",
            1: "Martes",
            2: "Miércoles",
            3: "Jueves",
            4: "Viernes",
            5: "Sábado",
            6: "Domingo"
        }

        weekday = weekday_names[self.end_date.day_of_week]
        return f"{weekday}, {self.end_date.format('DD/MM/YYYY HH:mm')}"
