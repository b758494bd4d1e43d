"""
Adapters layer - External integrations (holiday API, iCal feeds).
"""

from .holiday_client import HolidayClient, static_holidays
from .ical_client import ICalClient
from .mock_calendar_client import MockCalendarClient

__all__ = ["HolidayClient", "ICalClient", "MockCalendarClient", "static_holidays"]
