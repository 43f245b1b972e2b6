"""MaintenanceItem dataclass for calculated maintenance status."""

from dataclasses import dataclass
from datetime import date
from typing import Optional, TYPE_CHECKING

from .category import Category
from .status import Status

if TYPE_CHECKING:
    from .calculations import Interval
    from .history_entry import HistoryEntry


@dataclass(frozen=True)
class MaintenanceItem:
    """Calculated maintenance status for one category, valid for a single pass."""

    category: Category
    name: str
    status: Status
    days_remaining: int
    km_remaining: int
    next_date: date
    next_km: int
    interval: "Interval"
    description: str
    last_service: Optional["HistoryEntry"] = None

    @property
    def is_due(self) -> bool:
        return self.status in (Status.CRITICAL, Status.ATTENTION)

    def to_dict(self) -> dict:
        """JSON-friendly representation (camelCase keys)."""
        last = self.last_service
        return {
            "category": self.category.value,
            "name": self.name,
            "status": self.status.key,
            "daysRemaining": self.days_remaining,
            "kmRemaining": self.km_remaining,
            "lastChange": {
                "date": last.date if last else None,
                "km": last.km if last else None,
            },
            "nextChange": {
                "date": self.next_date.isoformat(),
                "km": self.next_km,
            },
            "interval": {"months": self.interval.months, "km": self.interval.km},
            "description": self.description,
        }
