"""
Core business logic for projecting a task's end date.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O). The engine walks forward day by day through the working
windows of a schedule, skipping non-working days and excluded holidays and
carving effective meetings out of the days they fall on.
"""

import math
from typing import List, NamedTuple, Sequence

import pendulum
from pendulum import DateTime

from .exceptions import InvalidEstimateError, ScheduleConfigurationError
from .exclusions import is_holiday
from .models import CalculationResult, Holiday, Meeting, TimeRange, WorkSchedule


class DayPlan(NamedTuple):
    """Free time of a single day after meeting carve-outs."""
    free_ranges: List[TimeRange]
    capacity_minutes: int
    meetings: List[Meeting]


class DateProjectionEngine:
    """
    Projects an end date from an estimated workload in hours.

    Algorithm:
    1. Convert the estimate to whole minutes (rounded to the nearest minute)
    2. Starting on the start date, step through calendar days in order
    3. Skip non-working days and, when enabled, excluded holidays
    4. Reduce each day's capacity by the meetings starting on it
    5. Stop on the day whose capacity covers the remaining minutes and place
       the end instant inside that day's free time
    """

    def __init__(self, schedule: WorkSchedule):
        self.schedule = schedule

    def calculate_end_date(
        self,
        start_date: DateTime,
        estimated_hours: float,
        holidays: Sequence[Holiday] = (),
        meetings: Sequence[Meeting] = (),
        exclude_holidays: bool = True,
        exclude_meetings: bool = True,
    ) -> CalculationResult:
        """
        Calculate when a task of ``estimated_hours`` started at ``start_date`` ends.

        Args:
            start_date: Instant the work begins (truncated to the minute)
            estimated_hours: Positive workload in hours
            holidays: Effective holiday set
            meetings: Effective meeting set
            exclude_holidays: Skip days found in ``holidays``
            exclude_meetings: Subtract ``meetings`` from daily capacity

        Returns:
            CalculationResult with the projected end date and a breakdown

        Raises:
            InvalidEstimateError: If ``estimated_hours`` is not positive
            ScheduleConfigurationError: If the schedule has no working capacity
        """
        if not estimated_hours > 0 or not math.isfinite(estimated_hours):
            raise InvalidEstimateError()
        self._ensure_capacity()

        start = self._normalize(start_date)
        total_minutes = round(estimated_hours * 60)
        remaining = total_minutes

        working_days = 0
        holidays_excluded: List[Holiday] = []
        meetings_excluded: List[Meeting] = []

        current = start.start_of("day")
        available_from = start

        while True:
            if not self.schedule.is_working_day(current):
                current = current.add(days=1)
                available_from = current
                continue

            if exclude_holidays:
                holiday = is_holiday(current, holidays)
                if holiday:
                    holidays_excluded.append(holiday)
                    current = current.add(days=1)
                    available_from = current
                    continue

            # Started after the working windows had closed
            if not self._has_window_after(current, available_from):
                current = current.add(days=1)
                available_from = current
                continue

            plan = self._plan_day(
                current,
                available_from,
                meetings if exclude_meetings else (),
            )
            working_days += 1
            meetings_excluded.extend(plan.meetings)

            if plan.capacity_minutes > 0 and remaining <= plan.capacity_minutes:
                end_date = self._locate_end(plan.free_ranges, remaining)

                return CalculationResult(
                    start_date=start,
                    end_date=end_date,
                    working_days=working_days,
                    actual_working_hours=total_minutes / 60,
                    holidays_excluded=tuple(holidays_excluded),
                    meetings_excluded=tuple(meetings_excluded),
                )

            remaining -= plan.capacity_minutes
            current = current.add(days=1)
            available_from = current

    def working_hours_in_period(
        self,
        start_date: DateTime,
        end_date: DateTime,
        holidays: Sequence[Holiday] = (),
        meetings: Sequence[Meeting] = (),
        exclude_holidays: bool = True,
        exclude_meetings: bool = True,
    ) -> float:
        """
        Sum the available working hours of every day from ``start_date`` to ``end_date``.

        Whole days are counted; the time-of-day of both bounds is ignored.
        """
        current = self._normalize(start_date).start_of("day")
        last = self._normalize(end_date)
        total_minutes = 0

        while current <= last:
            if not self.schedule.is_working_day(current):
                current = current.add(days=1)
                continue

            if exclude_holidays and is_holiday(current, holidays):
                current = current.add(days=1)
                continue

            plan = self._plan_day(
                current,
                current,
                meetings if exclude_meetings else (),
            )
            total_minutes += plan.capacity_minutes
            current = current.add(days=1)

        return total_minutes / 60

    def _ensure_capacity(self) -> None:
        daily_minutes = self.schedule.daily_working_minutes()
        if daily_minutes <= 0:
            raise ScheduleConfigurationError(
                "The work schedule has no working capacity "
                f"(work_days={self.schedule.work_days}, daily minutes={daily_minutes})"
            )

    def _normalize(self, value: DateTime) -> DateTime:
        """Express ``value`` in the schedule's zone, truncated to the minute."""
        if not isinstance(value, DateTime):
            value = pendulum.instance(value, tz=self.schedule.timezone)
        value = value.in_timezone(self.schedule.timezone)
        return value.set(second=0, microsecond=0)

    def _has_window_after(self, day: DateTime, available_from: DateTime) -> bool:
        return any(
            window.end > available_from
            for window in self.schedule.get_windows_for_day(day)
        )

    def _plan_day(
        self,
        day: DateTime,
        available_from: DateTime,
        meetings: Sequence[Meeting],
    ) -> DayPlan:
        """
        Compute the free ranges and capacity of ``day`` from ``available_from`` on.

        Capacity is the working time left in the day minus the duration of the
        non-optional meetings starting that day; on a partial first day only
        the part of a meeting after ``available_from`` counts.
        """
        day_windows = self.schedule.get_windows_for_day(day)
        windows = self._clip_windows(day_windows, available_from)
        window_minutes = sum(window.duration_minutes() for window in windows)

        # Meeting time before a mid-window start is already in the past
        cutoff = day
        if day_windows and available_from > day_windows[0].start:
            cutoff = available_from

        day_string = day.to_date_string()
        day_meetings = [
            meeting for meeting in meetings
            if not meeting.is_optional
            and meeting.start.in_timezone(day.timezone).to_date_string() == day_string
        ]

        busy_minutes = 0
        busy_ranges: List[TimeRange] = []
        counted: List[Meeting] = []
        for meeting in day_meetings:
            meeting_start = meeting.start.set(second=0, microsecond=0)
            meeting_end = meeting.end.set(second=0, microsecond=0)
            busy_start = max(meeting_start, cutoff)
            if meeting_end > busy_start:
                counted.append(meeting)
                busy_minutes += int((meeting_end - busy_start).total_seconds() // 60)
                busy_ranges.append(TimeRange(start=busy_start, end=meeting_end))

        free_ranges: List[TimeRange] = []
        for window in windows:
            overlapping = [busy for busy in busy_ranges if window.overlaps(busy)]
            free_ranges.extend(self._subtract_busy_from_block(window, overlapping))

        return DayPlan(
            free_ranges=free_ranges,
            capacity_minutes=max(0, window_minutes - busy_minutes),
            meetings=counted,
        )

    @staticmethod
    def _clip_windows(
        windows: List[TimeRange],
        available_from: DateTime,
    ) -> List[TimeRange]:
        clipped: List[TimeRange] = []
        for window in windows:
            if window.end <= available_from:
                continue
            clipped.append(
                TimeRange(start=max(window.start, available_from), end=window.end)
            )
        return clipped

    @staticmethod
    def _subtract_busy_from_block(
        working_block: TimeRange,
        busy_ranges: List[TimeRange]
    ) -> List[TimeRange]:
        """
        Subtract busy times from a working block, yielding free time ranges.

        Example:
        Working: 09:00 - 17:00
        Busy: [10:00-11:00, 14:00-15:00]
        Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
        """
        free_ranges: List[TimeRange] = []
        current_start = working_block.start

        for busy in sorted(busy_ranges, key=lambda r: r.start):
            clipped_busy_start = max(busy.start, working_block.start)
            clipped_busy_end = min(busy.end, working_block.end)

            if current_start < clipped_busy_start:
                free_ranges.append(
                    TimeRange(start=current_start, end=clipped_busy_start)
                )

            current_start = max(current_start, clipped_busy_end)

        if current_start < working_block.end:
            free_ranges.append(
                TimeRange(start=current_start, end=working_block.end)
            )

        return free_ranges

    @staticmethod
    def _locate_end(free_ranges: List[TimeRange], minutes: int) -> DateTime:
        """Consume ``minutes`` of free time in order and return the instant reached."""
        remaining = minutes
        for free in free_ranges:
            length = free.duration_minutes()
            if remaining <= length:
                return free.start.add(minutes=remaining)
            remaining -= length

        # Capacity never exceeds the free time
        return free_ranges[-1].end
