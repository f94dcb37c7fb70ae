"""Episode filtering for downloads."""

from dataclasses import dataclass
from datetime import date

from pullapod.feeds.models import Episode
from pullapod.utils.datetime import is_date_in_range, parse_date
from pullapod.utils.errors import ValidationError


@dataclass
class FilterOptions:
    """Download filters; all given filters must match."""

    date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    name: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.date or self.start_date or self.end_date or self.name)


def _require_date(value: str, label: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(
            f"Invalid {label} format: {value}",
            suggestion="Use YYYY-MM-DD, for example 2024-01-31",
        )
    return parsed


class EpisodeFilter:
    """Selects episodes by publish date and title.

    Dates are compared on the calendar day in local time.
    """

    def filter(self, episodes: list[Episode], options: FilterOptions) -> list[Episode]:
        """Apply the filters in ``options``.

        Raises:
            ValidationError: If any date is not ``YYYY-MM-DD``
        """
        filtered = list(episodes)

        if options.date:
            target = _require_date(options.date, "date")
            filtered = [e for e in filtered if e.published.astimezone().date() == target]

        if options.start_date or options.end_date:
            start = _require_date(options.start_date, "start date") if options.start_date else None
            end = _require_date(options.end_date, "end date") if options.end_date else None
            filtered = [
                e for e in filtered if is_date_in_range(e.published.astimezone(), start, end)
            ]

        if options.name:
            needle = options.name.lower()
            filtered = [e for e in filtered if needle in e.title.lower()]

        return filtered

    def sort_by_date(self, episodes: list[Episode], descending: bool = True) -> list[Episode]:
        """Sort by publish date, newest first by default."""
        return sorted(episodes, key=lambda e: e.published, reverse=descending)
