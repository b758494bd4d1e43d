"""
Tests for the EstimationService orchestration layer.
"""

import asyncio
from datetime import time
from typing import Dict, List

import pendulum
import pytest

from taskprojector.domain.exceptions import (
    CalculationFailedError,
    CalendarAPIError,
    InvalidEstimateError,
    ScheduleConfigurationError,
)
from taskprojector.domain.models import Holiday, Meeting, WorkSchedule
from taskprojector.services.estimation import EstimationRequest, EstimationService

TZ = "America/Guayaquil"


class StubCalendarClient:
    """Minimal stub serving meetings through fetch_events."""

    def __init__(self, meetings: List[Meeting], error: Exception | None = None):
        self._meetings = meetings
        self._error = error
        self.calls: List[Dict[str, str]] = []

    async def fetch_events(self, start_date, end_date):
        self.calls.append(
            {
                "start": start_date.to_datetime_string(),
                "end": end_date.to_datetime_string(),
            }
        )
        if self._error:
            raise self._error
        return [m for m in self._meetings if start_date <= m.start <= end_date]


def _schedule(work_days=(0, 1, 2, 3, 4)) -> WorkSchedule:
    return WorkSchedule(
        start_time=time(9, 0),
        end_time=time(17, 0),
        work_days=list(work_days),
        timezone=TZ,
    )


def _meeting(meeting_id: str, start: str, end: str) -> Meeting:
    return Meeting(
        id=meeting_id,
        title=meeting_id,
        start=pendulum.parse(start, tz=TZ),
        end=pendulum.parse(end, tz=TZ),
    )


def _request(client: StubCalendarClient, **overrides) -> EstimationRequest:
    params = {
        "estimated_hours": 16,
        "start_date": pendulum.parse("2024-01-01 09:00", tz=TZ),
        "fetch_events": client.fetch_events,
        "exclude_holidays": False,
        "exclude_meetings": True,
    }
    params.update(overrides)
    return EstimationRequest(**params)


def test_invalid_hours_never_reach_engine_or_calendar():
    client = StubCalendarClient([])
    service = EstimationService(_schedule())

    for hours in (0, -3, float("nan"), float("inf")):
        with pytest.raises(InvalidEstimateError):
            asyncio.run(service.calculate_task(_request(client, estimated_hours=hours)))

    assert client.calls == []


def test_calendar_is_queried_for_preliminary_range():
    client = StubCalendarClient([])
    service = EstimationService(_schedule())

    result = asyncio.run(service.calculate_task(_request(client)))

    assert client.calls == [{"start": "2024-01-01 09:00:00", "end": "2024-01-02 17:00:00"}]
    assert result.end_date == pendulum.parse("2024-01-02 17:00", tz=TZ)


def test_calendar_not_queried_when_meetings_disabled():
    client = StubCalendarClient([_meeting("m1", "2024-01-01 10:00", "2024-01-01 12:00")])
    service = EstimationService(_schedule())

    result = asyncio.run(service.calculate_task(_request(client, exclude_meetings=False)))

    assert client.calls == []
    assert result.end_date == pendulum.parse("2024-01-02 17:00", tz=TZ)


def test_meeting_in_range_pushes_final_result():
    """The resolution pass moves the end date by at least the meeting's duration."""
    meeting = _meeting("m1", "2024-01-02 10:00", "2024-01-02 12:00")
    client = StubCalendarClient([meeting])
    service = EstimationService(_schedule())
    request = _request(client)

    preliminary = service.preliminary_pass(request)
    final = asyncio.run(service.calculate_task(request))

    assert preliminary.end_date == pendulum.parse("2024-01-02 17:00", tz=TZ)
    assert final.end_date == pendulum.parse("2024-01-03 11:00", tz=TZ)
    assert final.end_date.diff(preliminary.end_date).in_minutes() >= meeting.duration_minutes()
    assert final.meetings_excluded == (meeting,)


def test_granular_meeting_selection():
    selected = _meeting("keep", "2024-01-01 10:00", "2024-01-01 11:00")
    ignored = _meeting("skip", "2024-01-01 14:00", "2024-01-01 16:00")
    client = StubCalendarClient([selected, ignored])
    service = EstimationService(_schedule())

    result = asyncio.run(
        service.calculate_task(_request(client, estimated_hours=8, excluded_meeting_ids=["keep"]))
    )

    assert result.end_date == pendulum.parse("2024-01-02 10:00", tz=TZ)
    assert result.meetings_excluded == (selected,)


def test_meetings_beyond_preliminary_range_are_not_fetched():
    """A single refinement: a meeting in the extended tail is not excluded."""
    early = _meeting("early", "2024-01-01 09:00", "2024-01-01 17:00")
    tail = _meeting("tail", "2024-01-02 09:00", "2024-01-02 13:00")
    client = StubCalendarClient([early, tail])
    service = EstimationService(_schedule())

    result = asyncio.run(service.calculate_task(_request(client, estimated_hours=8)))

    assert client.calls == [{"start": "2024-01-01 09:00:00", "end": "2024-01-01 17:00:00"}]
    assert result.end_date == pendulum.parse("2024-01-02 17:00", tz=TZ)
    assert result.meetings_excluded == (early,)


def test_holiday_selection_is_resolved():
    holidays = [
        Holiday(date="2024-01-01", name="Año Nuevo"),
        Holiday(date="2024-01-02", name="Puente"),
    ]
    client = StubCalendarClient([])
    service = EstimationService(_schedule())

    granular = asyncio.run(
        service.calculate_task(
            _request(
                client,
                estimated_hours=8,
                exclude_holidays=True,
                holidays=holidays,
                excluded_holiday_dates=["2024-01-01"],
            )
        )
    )
    blanket = asyncio.run(
        service.calculate_task(
            _request(client, estimated_hours=8, exclude_holidays=True, holidays=holidays)
        )
    )

    assert granular.end_date == pendulum.parse("2024-01-02 17:00", tz=TZ)
    assert blanket.end_date == pendulum.parse("2024-01-03 17:00", tz=TZ)


def test_calendar_failure_is_reported_once():
    client = StubCalendarClient([], error=CalendarAPIError("boom"))
    service = EstimationService(_schedule())

    with pytest.raises(CalculationFailedError) as exc_info:
        asyncio.run(service.calculate_task(_request(client)))

    assert isinstance(exc_info.value.__cause__, CalendarAPIError)


def test_degenerate_schedule_is_a_configuration_error():
    client = StubCalendarClient([])
    service = EstimationService(_schedule(work_days=()))

    with pytest.raises(ScheduleConfigurationError):
        asyncio.run(service.calculate_task(_request(client)))

    assert client.calls == []
