"""
Tests for the iCal client and the mock calendar client.
"""

import asyncio
import json

import pendulum
import pytest
import requests

from taskprojector.adapters import ical_client as ical_module
from taskprojector.adapters.ical_client import ICalClient
from taskprojector.adapters.mock_calendar_client import MockCalendarClient
from taskprojector.domain.exceptions import CalendarAPIError

TZ = "America/Guayaquil"

SAMPLE_ICAL = "\r\n".join([
    "BEGIN:VCALENDAR",
    "VERSION:2.0",
    "BEGIN:VEVENT",
    "UID:utc-event",
    "SUMMARY:Sprint planning",
    "DTSTART:20250602T150000Z",
    "DTEND:20250602T160000Z",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:local-event",
    "SUMMARY:Revisión de",
    "  arquitectura",
    "DTSTART;TZID=America/Guayaquil:20250603T140000",
    "DTEND;TZID=America/Guayaquil:20250603T153000",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:cancelled",
    "SUMMARY:Cancelled sync",
    "STATUS:CANCELLED",
    "DTSTART:20250604T150000Z",
    "DTEND:20250604T160000Z",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:optional",
    "SUMMARY:Charla (opcional)",
    "DTSTART:20250605T150000Z",
    "DTEND:20250605T160000Z",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "SUMMARY:No uid",
    "DTSTART:20250605T150000Z",
    "DTEND:20250605T160000Z",
    "END:VEVENT",
    "BEGIN:VEVENT",
    "UID:all-day",
    "SUMMARY:Offsite",
    "DTSTART;VALUE=DATE:20250620",
    "DTEND;VALUE=DATE:20250621",
    "END:VEVENT",
    "END:VCALENDAR",
])


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}")


class TestParseICal:
    """Parsing iCal text into meetings."""

    def test_parses_events(self):
        meetings = ICalClient("https://example.com/cal.ics", timezone=TZ).parse_ical(SAMPLE_ICAL)

        assert [m.id for m in meetings] == ["utc-event", "local-event", "cancelled", "optional", "all-day"]

        utc_event = meetings[0]
        assert utc_event.start == pendulum.datetime(2025, 6, 2, 15, tz="UTC")
        assert utc_event.duration_minutes() == 60
        assert utc_event.is_optional is False

    def test_folded_lines_and_tzid(self):
        local_event = ICalClient("https://example.com/cal.ics").parse_ical(SAMPLE_ICAL)[1]

        assert local_event.title == "Revisión de arquitectura"
        assert local_event.start == pendulum.datetime(2025, 6, 3, 14, tz=TZ)
        assert local_event.duration_minutes() == 90

    def test_optional_detection(self):
        meetings = {m.id: m for m in ICalClient("https://example.com/cal.ics").parse_ical(SAMPLE_ICAL)}

        assert meetings["cancelled"].is_optional is True
        assert meetings["optional"].is_optional is True

    def test_all_day_event(self):
        all_day = ICalClient("https://example.com/cal.ics", timezone=TZ).parse_ical(SAMPLE_ICAL)[-1]

        assert all_day.start == pendulum.datetime(2025, 6, 20, tz=TZ)
        assert all_day.duration_minutes() == 24 * 60

    def test_rejects_non_calendar(self):
        with pytest.raises(CalendarAPIError):
            ICalClient("https://example.com/cal.ics").parse_ical("<html></html>")


class TestFetchEvents:
    """Fetching and filtering events by range."""

    def test_no_url_returns_empty(self):
        start = pendulum.datetime(2025, 6, 1, tz=TZ)

        assert asyncio.run(ICalClient(None).fetch_events(start, start.add(days=7))) == []

    def test_filters_by_start_in_range(self, monkeypatch):
        monkeypatch.setattr(ical_module.requests, "get", lambda *a, **k: FakeResponse(SAMPLE_ICAL))
        client = ICalClient("https://example.com/cal.ics?token=secret", timezone=TZ)

        meetings = asyncio.run(
            client.fetch_events(
                pendulum.datetime(2025, 6, 2, tz=TZ),
                pendulum.datetime(2025, 6, 3, 23, 59, tz=TZ),
            )
        )

        assert [m.id for m in meetings] == ["utc-event", "local-event"]

    def test_http_failure_raises(self, monkeypatch):
        monkeypatch.setattr(
            ical_module.requests, "get", lambda *a, **k: FakeResponse("", status_code=500)
        )
        client = ICalClient("https://example.com/cal.ics")
        start = pendulum.datetime(2025, 6, 1, tz=TZ)

        with pytest.raises(CalendarAPIError):
            asyncio.run(client.fetch_events(start, start.add(days=7)))

    def test_sanitized_url_drops_query(self):
        client = ICalClient("https://user:pw@calendar.example.com/private/basic.ics?token=abc")

        assert client.sanitized_url() == "https://calendar.example.com/private/basic.ics"


class TestMockCalendarClient:
    """JSON-backed calendar client."""

    def test_reads_events_in_range(self, tmp_path):
        data_file = tmp_path / "events.json"
        data_file.write_text(json.dumps([
            {"id": "1", "title": "Standup", "start": "2025-06-02T09:00:00", "end": "2025-06-02T09:30:00"},
            {"id": "2", "start": "2025-06-10T09:00:00", "end": "2025-06-10T10:00:00", "optional": True},
            {"id": "broken"},
        ]), encoding="utf-8")
        client = MockCalendarClient(data_file=data_file, timezone=TZ)

        meetings = asyncio.run(
            client.fetch_events(
                pendulum.datetime(2025, 6, 1, tz=TZ),
                pendulum.datetime(2025, 6, 5, tz=TZ),
            )
        )

        assert [m.id for m in meetings] == ["1"]
        assert meetings[0].duration_minutes() == 30

    def test_bundled_data_loads(self):
        assert MockCalendarClient().calendar_events
