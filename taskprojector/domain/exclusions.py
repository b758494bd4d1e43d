"""
Resolution of exclusion toggles and granular selections into effective sets.

Both categories follow the same rule:

- toggle off: nothing is excluded;
- toggle on with explicit ids: only the chosen catalog entries are excluded;
- toggle on without explicit ids: every catalog entry is excluded.
"""

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, TypeVar

from pendulum import DateTime

from .models import CategorySelection, ExclusionSelection, Holiday, Meeting

T = TypeVar("T")


@dataclass(frozen=True)
class EffectiveExclusions:
    """Holidays and meetings that actually apply to a projection."""
    holidays: Tuple[Holiday, ...]
    meetings: Tuple[Meeting, ...]


def _resolve(
    catalog: Sequence[T],
    selection: CategorySelection,
    key: Callable[[T], str],
) -> List[T]:
    if not selection.enabled:
        return []

    if selection.explicit_ids:
        return [item for item in catalog if key(item) in selection.explicit_ids]

    return list(catalog)


class ExclusionResolver:
    """Turns raw catalogs plus user selection into effective exclusion sets."""

    @staticmethod
    def resolve_holidays(
        holidays: Sequence[Holiday],
        selection: CategorySelection,
    ) -> List[Holiday]:
        return _resolve(holidays, selection, key=lambda h: h.date)

    @staticmethod
    def resolve_meetings(
        meetings: Sequence[Meeting],
        selection: CategorySelection,
    ) -> List[Meeting]:
        return _resolve(meetings, selection, key=lambda m: m.id)

    def resolve(
        self,
        holidays: Sequence[Holiday],
        meetings: Sequence[Meeting],
        selection: ExclusionSelection,
    ) -> EffectiveExclusions:
        """Resolve both categories at once."""
        return EffectiveExclusions(
            holidays=tuple(self.resolve_holidays(holidays, selection.holidays)),
            meetings=tuple(self.resolve_meetings(meetings, selection.meetings)),
        )


def is_holiday(date: DateTime, holidays: Sequence[Holiday]) -> Holiday | None:
    """Return the first holiday in catalog order falling on ``date``, if any."""
    date_string = date.to_date_string()
    for holiday in holidays:
        if holiday.date == date_string:
            return holiday
    return None
