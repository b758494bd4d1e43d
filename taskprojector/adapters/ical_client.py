"""
iCal feed client for fetching meetings.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, List
from urllib.parse import urlsplit

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import Meeting

logger = logging.getLogger(__name__)


OPTIONAL_KEYWORDS = ["opcional", "optional"]

_FOLDED_LINE = re.compile(r"^[ \t]")


class ICalClient:
    """
    Client for a published iCal (``.ics``) calendar feed.

    The whole feed is downloaded and the events starting within the requested
    range are returned as meetings.
    """

    def __init__(self, url: str | None, timeout: float = 30, timezone: str = "America/Guayaquil"):
        """
        Initialize the iCal client.

        Args:
            url: Address of the iCal feed; no events are returned without one
            timeout: Request timeout in seconds
            timezone: Zone used for floating (local) event times
        """
        self.url = (url or "").strip()
        self.timeout = timeout
        self.timezone = timezone

    async def fetch_events(self, start_date: DateTime, end_date: DateTime) -> List[Meeting]:
        """
        Get the meetings starting between ``start_date`` and ``end_date``.

        Raises:
            CalendarAPIError: If the feed cannot be downloaded or parsed
        """
        if not self.url:
            return []

        logger.info(
            "Fetching iCal events from %s (%s - %s)",
            self.sanitized_url(),
            start_date.to_iso8601_string(),
            end_date.to_iso8601_string(),
        )

        ical_data = await asyncio.to_thread(self._download)

        meetings = [
            meeting for meeting in self.parse_ical(ical_data)
            if start_date <= meeting.start <= end_date
        ]

        logger.info("Kept %d iCal event(s) in range", len(meetings))
        return meetings

    def _download(self) -> str:
        try:
            response = requests.get(
                self.url,
                headers={"Accept": "text/calendar"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.text

        except requests.exceptions.RequestException as e:
            logger.error("iCal access error for %s: %s", self.sanitized_url(), e)
            raise CalendarAPIError(f"Failed to fetch iCal feed: {e}") from e

    def parse_ical(self, ical_data: str) -> List[Meeting]:
        """
        Parse iCal text into meetings.

        Handles folded lines and property parameters such as ``TZID``; events
        without UID or valid start/end are skipped.
        """
        if "BEGIN:VCALENDAR" not in ical_data:
            raise CalendarAPIError("Response is not an iCal calendar")

        meetings: List[Meeting] = []
        current: Dict[str, tuple[str, str]] | None = None

        for line in self._unfold(ical_data):
            if line == "BEGIN:VEVENT":
                current = {}
            elif line == "END:VEVENT" and current is not None:
                meeting = self._to_meeting(current)
                if meeting:
                    meetings.append(meeting)
                current = None
            elif current is not None and ":" in line:
                prop, value = line.split(":", 1)
                name, _, params = prop.partition(";")
                current[name.upper()] = (params, value)

        return meetings

    @staticmethod
    def _unfold(ical_data: str) -> List[str]:
        lines: List[str] = []
        for raw in re.split(r"\r?\n", ical_data):
            if _FOLDED_LINE.match(raw) and lines:
                lines[-1] += raw[1:]
            else:
                lines.append(raw)
        return lines

    def _to_meeting(self, event: Dict[str, tuple[str, str]]) -> Meeting | None:
        try:
            uid = event["UID"][1]
            start = self._parse_ical_date(*event["DTSTART"])
            end = self._parse_ical_date(*event["DTEND"])
        except (KeyError, ValueError) as e:
            logger.warning("Skipping invalid iCal event: %s", e)
            return None

        if not uid:
            return None

        summary = event.get("SUMMARY", ("", ""))[1]
        status = event.get("STATUS", ("", ""))[1].upper()
        transparency = event.get("TRANSP", ("", ""))[1].upper()

        return Meeting(
            id=uid,
            title=summary or "Sin título",
            start=start,
            end=end,
            is_optional=self._is_optional(summary, status, transparency),
        )

    def _parse_ical_date(self, params: str, value: str) -> DateTime:
        """
        Parse DTSTART/DTEND values.

        Supports ``YYYYMMDD``, ``YYYYMMDDTHHMMSSZ`` and local
        ``YYYYMMDDTHHMMSS`` (in its ``TZID`` zone when given).
        """
        value = value.strip()
        tz = self.timezone
        for param in params.split(";"):
            key, _, param_value = param.partition("=")
            if key.upper() == "TZID" and param_value:
                tz = param_value.strip('"')

        if len(value) == 8:
            return pendulum.from_format(value, "YYYYMMDD", tz=tz)
        if len(value) == 16 and value.endswith("Z"):
            return pendulum.from_format(value[:-1], "YYYYMMDD[T]HHmmss", tz="UTC")
        if len(value) == 15:
            return pendulum.from_format(value, "YYYYMMDD[T]HHmmss", tz=tz)

        parsed = pendulum.parse(value, tz=tz)
        if isinstance(parsed, DateTime):
            return parsed
        raise ValueError(f"Could not parse iCal date: {value}")

    @staticmethod
    def _is_optional(summary: str, status: str, transparency: str) -> bool:
        """Cancelled, transparent or explicitly optional events don't block time."""
        if status == "CANCELLED" or transparency == "TRANSPARENT":
            return True

        title = summary.lower()
        return any(keyword in title for keyword in OPTIONAL_KEYWORDS)

    def sanitized_url(self) -> str:
        """URL without query string or credentials, safe for logs."""
        parts = urlsplit(self.url)
        if not parts.scheme or not parts.hostname:
            return "invalid-url"
        return f"{parts.scheme}://{parts.hostname}{parts.path}"
