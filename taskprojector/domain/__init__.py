"""
Domain layer - Pure business logic without external dependencies.
"""

from .exclusions import EffectiveExclusions, ExclusionResolver, is_holiday
from .models import (
    CalculationResult,
    CategorySelection,
    ExclusionSelection,
    Holiday,
    Meeting,
    TimeRange,
    WorkSchedule,
)
from .projection_engine import DateProjectionEngine

__all__ = [
    "CalculationResult",
    "CategorySelection",
    "DateProjectionEngine",
    "EffectiveExclusions",
    "ExclusionResolver",
    "ExclusionSelection",
    "Holiday",
    "Meeting",
    "TimeRange",
    "WorkSchedule",
    "is_holiday",
]
