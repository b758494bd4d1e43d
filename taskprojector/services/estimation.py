"""
Application service for estimating task completion dates.

The meeting catalog can only be fetched for a bounded range, and that range
is itself the output of the projection. The service therefore runs the
domain-level ``DateProjectionEngine`` twice: a preliminary pass without
meetings, a calendar fetch for ``[start, preliminary end]``, and a resolution
pass with the resolved holidays and meetings. Meetings beyond the preliminary
end are never fetched; there is no further refinement.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

from pendulum import DateTime

from ..domain.exceptions import (
    CalculationFailedError,
    InvalidEstimateError,
    ScheduleConfigurationError,
)
from ..domain.exclusions import ExclusionResolver
from ..domain.models import (
    CalculationResult,
    CategorySelection,
    ExclusionSelection,
    Holiday,
    Meeting,
    WorkSchedule,
)
from ..domain.projection_engine import DateProjectionEngine

logger = logging.getLogger(__name__)

FetchEvents = Callable[[DateTime, DateTime], Awaitable[List[Meeting]]]


@dataclass
class EstimationRequest:
    """Everything a caller supplies for one estimation."""
    estimated_hours: float
    start_date: DateTime
    fetch_events: FetchEvents
    exclude_holidays: bool = True
    exclude_meetings: bool = False
    holidays: Sequence[Holiday] = field(default_factory=list)
    excluded_holiday_dates: Sequence[str] = field(default_factory=list)
    excluded_meeting_ids: Sequence[str] = field(default_factory=list)

    def selection(self) -> ExclusionSelection:
        """Exclusion choices expressed as domain selections."""
        return ExclusionSelection(
            holidays=CategorySelection(
                enabled=self.exclude_holidays,
                explicit_ids=frozenset(self.excluded_holiday_dates),
            ),
            meetings=CategorySelection(
                enabled=self.exclude_meetings,
                explicit_ids=frozenset(self.excluded_meeting_ids),
            ),
        )


class EstimationService:
    """
    Orchestrates the preliminary pass, calendar fetch and resolution pass.

    The schedule is passed in explicitly; the service never reads
    configuration on its own.
    """

    def __init__(
        self,
        schedule: WorkSchedule,
        resolver: Optional[ExclusionResolver] = None,
    ) -> None:
        self._engine = DateProjectionEngine(schedule)
        self._resolver = resolver or ExclusionResolver()

    async def calculate_task(self, request: EstimationRequest) -> CalculationResult:
        """
        Validate the request and run compute -> fetch -> compute.

        Raises:
            InvalidEstimateError: Before any calculation or fetch
            ScheduleConfigurationError: If the schedule has no capacity
            CalculationFailedError: If the fetch or either pass fails
        """
        estimated_hours = request.estimated_hours
        if not estimated_hours > 0 or not math.isfinite(estimated_hours):
            raise InvalidEstimateError()

        try:
            preliminary = self.preliminary_pass(request)
            meetings = await self.fetch_meetings(request, until=preliminary.end_date)
            return self.resolution_pass(request, meetings)

        except ScheduleConfigurationError:
            raise

        except Exception as exc:
            logger.exception("Calculation error for request starting %s", request.start_date)
            raise CalculationFailedError() from exc

    def preliminary_pass(self, request: EstimationRequest) -> CalculationResult:
        """Project without meetings to find the range the calendar must cover."""
        result = self._engine.calculate_end_date(
            start_date=request.start_date,
            estimated_hours=request.estimated_hours,
            holidays=request.holidays if request.exclude_holidays else [],
            meetings=[],
            exclude_holidays=request.exclude_holidays,
            exclude_meetings=False,
        )
        logger.debug("Preliminary end date: %s", result.end_date)
        return result

    async def fetch_meetings(
        self,
        request: EstimationRequest,
        *,
        until: DateTime,
    ) -> List[Meeting]:
        """Fetch meetings for ``[start_date, until]`` when meeting exclusion is on."""
        if not request.exclude_meetings:
            return []

        meetings = await request.fetch_events(request.start_date, until)
        logger.info(
            "Fetched %d meeting(s) between %s and %s",
            len(meetings),
            request.start_date,
            until,
        )
        return list(meetings)

    def resolution_pass(
        self,
        request: EstimationRequest,
        meetings: Sequence[Meeting],
    ) -> CalculationResult:
        """Project again with resolved holidays and the fetched meetings."""
        effective = self._resolver.resolve(
            holidays=request.holidays,
            meetings=meetings,
            selection=request.selection(),
        )

        return self._engine.calculate_end_date(
            start_date=request.start_date,
            estimated_hours=request.estimated_hours,
            holidays=effective.holidays,
            meetings=effective.meetings,
            exclude_holidays=bool(effective.holidays),
            exclude_meetings=True,
        )
