"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkSchedule


def _parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` string into a time object."""
    try:
        hours, minutes = (int(part) for part in value.split(":"))
        return time(hour=hours, minute=minutes)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValueError(f"Time must use the HH:MM format, got {value!r}") from exc


class WorkScheduleConfig(BaseModel):
    """Working hours as stored in the config file."""
    start_time: str = "08:30"
    end_time: str = "17:30"
    lunch_start: Optional[str] = "13:00"
    lunch_end: Optional[str] = "14:00"
    work_days: List[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])  # Monday..Friday

    @field_validator("start_time", "end_time", "lunch_start", "lunch_end")
    @classmethod
    def validate_clock(cls, value: Optional[str]) -> Optional[str]:
        """Validate HH:MM strings."""
        if value is not None:
            _parse_clock(value)
        return value

    @field_validator("work_days")
    @classmethod
    def validate_work_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"work_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def validate_hours_order(self) -> "WorkScheduleConfig":
        """Ensure the window opens before it closes and holds the lunch break."""
        start = _parse_clock(self.start_time)
        end = _parse_clock(self.end_time)
        if end <= start:
            raise ValueError("end_time must be later than start_time")

        if (self.lunch_start is None) != (self.lunch_end is None):
            raise ValueError("lunch_start and lunch_end must be set together")
        if self.lunch_start is not None:
            lunch_start = _parse_clock(self.lunch_start)
            lunch_end = _parse_clock(self.lunch_end)
            if not start <= lunch_start <= lunch_end <= end:
                raise ValueError("The lunch break must lie within the working hours")
        return self

    def to_work_schedule(self, timezone: str) -> WorkSchedule:
        """Build the domain schedule."""
        return WorkSchedule(
            start_time=_parse_clock(self.start_time),
            end_time=_parse_clock(self.end_time),
            lunch_start=_parse_clock(self.lunch_start) if self.lunch_start else None,
            lunch_end=_parse_clock(self.lunch_end) if self.lunch_end else None,
            work_days=list(self.work_days),
            timezone=timezone,
        )


class HolidayConfig(BaseModel):
    """Holiday provider settings."""
    api_key: Optional[str] = None
    country: str = "EC"
    timeout_seconds: float = 10


class CalendarConfig(BaseModel):
    """iCal provider settings."""
    ical_url: Optional[str] = None
    timeout_seconds: float = 30

    @field_validator("ical_url")
    @classmethod
    def validate_url(cls, value: Optional[str]) -> Optional[str]:
        """Only http(s) and webcal feeds are supported."""
        if value and not value.startswith(("http://", "https://", "webcal://")):
            raise ValueError(f"ical_url must be an http(s) or webcal URL, got {value!r}")
        if value and value.startswith("webcal://"):
            return "https://" + value[len("webcal://"):]
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "America/Guayaquil"
    work_schedule: WorkScheduleConfig = Field(default_factory=WorkScheduleConfig)
    holidays: HolidayConfig = Field(default_factory=HolidayConfig)
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)

    def get_work_schedule(self) -> WorkSchedule:
        """Get the configured work schedule."""
        return self.work_schedule.to_work_schedule(self.timezone)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
