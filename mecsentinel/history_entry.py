"""HistoryEntry class for maintenance records."""
from datetime import date
from typing import Optional

from .category import Category


class HistoryEntry:
    """The last known service of a category (date and/or odometer)."""

    def __init__(
            self,
            category: Category,
            date: Optional[str] = None,
            km: Optional[int] = None,
            notes: Optional[str] = None,
    ):
        self.category = category
        self.date = date
        self.km = km
        self.notes = notes

    @property
    def service_date(self) -> Optional[date]:
        """The service date parsed from its ISO string."""
        return date.fromisoformat(self.date) if self.date else None

    @property
    def is_empty(self) -> bool:
        """True when neither date nor odometer is known."""
        return self.date is None and self.km is None

    def __eq__(self, other):
        if not isinstance(other, HistoryEntry):
            return NotImplemented
        return (self.category, self.date, self.km, self.notes) == (
            other.category, other.date, other.km, other.notes
        )

    def __repr__(self):
        return f"HistoryEntry({self.category.value!r}, date={self.date!r}, km={self.km!r})"
