"""
Public holiday catalog backed by the Calendarific API.

Callers always receive a usable list: without an API key, or when the API
call fails, the static Ecuador catalog for the requested year is returned.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests
from pendulum import DateTime

from ..domain.models import Holiday

logger = logging.getLogger(__name__)


# (month-day, name) of the fixed national holidays
FIXED_HOLIDAYS = [
    ("01-01", "Año Nuevo"),
    ("05-01", "Día del Trabajador"),
    ("05-24", "Batalla del Pichincha"),
    ("08-10", "Primer Grito de Independencia"),
    ("10-09", "Independencia de Guayaquil"),
    ("11-02", "Día de los Difuntos"),
    ("11-03", "Independencia de Cuenca"),
    ("12-25", "Navidad"),
]

# Movable holidays known per year
MOVABLE_HOLIDAYS: Dict[int, List[tuple[str, str]]] = {
    2024: [
        ("2024-02-12", "Carnaval"),
        ("2024-02-13", "Carnaval"),
        ("2024-03-29", "Viernes Santo"),
    ],
    2025: [
        ("2025-03-03", "Carnaval"),
        ("2025-03-04", "Carnaval"),
        ("2025-04-18", "Viernes Santo"),
    ],
    2026: [
        ("2026-02-16", "Carnaval"),
        ("2026-02-17", "Carnaval"),
        ("2026-04-03", "Viernes Santo"),
    ],
}


def static_holidays(year: int, country: str = "EC") -> List[Holiday]:
    """Static fallback catalog for ``year``: fixed holidays, then movable ones."""
    holidays = [
        Holiday(date=f"{year}-{month_day}", name=name, country=country)
        for month_day, name in FIXED_HOLIDAYS
    ]
    holidays.extend(
        Holiday(date=date, name=name, country=country)
        for date, name in MOVABLE_HOLIDAYS.get(year, [])
    )
    return holidays


class HolidayClient:
    """
    Client for the Calendarific holidays endpoint.
    """

    API_ENDPOINT = "https://calendarific.com/api/v2"

    def __init__(self, api_key: str | None = None, country: str = "EC", timeout: float = 10):
        """
        Initialize the holiday client.

        Args:
            api_key: Calendarific API key; the static catalog is used without one
            country: ISO country code
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or ""
        self.country = country
        self.timeout = timeout

    def fetch_holidays(self, year: int) -> List[Holiday]:
        """
        Get the holidays of ``year``.

        Never raises for network or payload problems; the static catalog is
        returned instead.
        """
        if not self.api_key:
            logger.debug("No holiday API key configured, using static catalog for %s", year)
            return static_holidays(year, self.country)

        try:
            response = requests.get(
                f"{self.API_ENDPOINT}/holidays",
                params={
                    "api_key": self.api_key,
                    "country": self.country,
                    "year": year,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            return self._parse_holidays_response(response.json())

        except (
            requests.exceptions.RequestException,
            AttributeError,
            IndexError,
            KeyError,
            TypeError,
            ValueError,
        ) as e:
            logger.warning("Error fetching holidays from API, using static catalog: %s", e)
            return static_holidays(year, self.country)

    def fetch_holidays_for_range(self, start_date: DateTime, end_date: DateTime) -> List[Holiday]:
        """Get the holidays of every year touched by ``[start_date, end_date]``."""
        holidays: List[Holiday] = []
        for year in range(start_date.year, end_date.year + 1):
            holidays.extend(self.fetch_holidays(year))
        return holidays

    def _parse_holidays_response(self, response_data: Dict[str, Any]) -> List[Holiday]:
        """
        Parse the Calendarific response into our domain model.

        Response format:
        {
            "response": {
                "holidays": [
                    {
                        "name": "...",
                        "date": {"iso": "2025-01-01"},
                        "type": ["National holiday"]
                    }
                ]
            }
        }
        """
        holidays: List[Holiday] = []

        for item in response_data["response"]["holidays"]:
            types = item.get("type") or ["national"]
            holidays.append(
                Holiday(
                    date=item["date"]["iso"][:10],
                    name=item["name"],
                    type=types[0],
                    country=self.country,
                    is_global=bool(item.get("global", False)),
                )
            )

        return holidays
