"""
Mock calendar client for trying the estimator without a real iCal feed.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.models import Meeting


class MockCalendarClient:
    """
    Mock client that serves meetings from a JSON file.

    Each entry needs ``id``, ``start`` and ``end``; ``title`` and ``optional``
    are optional. By default ``mock_calendar_data.json`` next to this module is
    used.
    """

    def __init__(self, data_file: Path | None = None, timezone: str = "America/Guayaquil"):
        self.data_file = data_file or Path(__file__).parent / "mock_calendar_data.json"
        self.timezone = timezone
        self.calendar_events = self._load_calendar_data()

    def _load_calendar_data(self) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not self.data_file.exists():
            return []

        with open(self.data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    async def fetch_events(self, start_date: DateTime, end_date: DateTime) -> List[Meeting]:
        """
        Return the mock meetings starting within the time window.
        """
        meetings: List[Meeting] = []

        for event in self.calendar_events:
            try:
                event_start = pendulum.parse(event["start"], tz=self.timezone)
                event_end = pendulum.parse(event["end"], tz=self.timezone)
            except (KeyError, ValueError):
                continue

            if start_date <= event_start <= end_date:
                meetings.append(
                    Meeting(
                        id=str(event["id"]),
                        title=event.get("title", "Sin título"),
                        start=event_start,
                        end=event_end,
                        is_optional=bool(event.get("optional", False)),
                    )
                )

        return meetings
