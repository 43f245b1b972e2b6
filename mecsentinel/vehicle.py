"""Vehicle class - the main aggregate for vehicle data and calculations."""

from datetime import date
from typing import Dict, List, Optional

from .category import Category, Usage
from .history_entry import HistoryEntry
from .maintenance_item import MaintenanceItem
from .rule import MaintenanceRule
from .calculations import (
    DEFAULT_THRESHOLDS,
    Thresholds,
    average_km_per_month,
    build_maintenance_items,
    intervals_from_rules,
)


class Vehicle:
    """Vehicle record with its custom rules and maintenance history."""

    def __init__(
        self,
        kind: str,
        model: str,
        year: int,
        current_km: int,
        usage: Usage,
        zero_km: bool = False,
        rules: Optional[List[MaintenanceRule]] = None,
        history: Optional[List[HistoryEntry]] = None,
        vehicle_id: Optional[str] = None,
        user_id: Optional[str] = None,
        created_at: Optional[str] = None,
    ):
        self.kind = kind
        self.model = model
        self.year = year
        self.current_km = current_km
        self.usage = usage
        self.zero_km = zero_km
        self.rules = rules or []
        self.history = history or []
        self.vehicle_id = vehicle_id
        self.user_id = user_id
        self.created_at = created_at

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.year} {self.model}"

    @property
    def average_km_per_month(self) -> int:
        return average_km_per_month(self.usage)

    def get_rule(self, category: Category) -> Optional[MaintenanceRule]:
        """Find the custom rule for a category."""
        for rule in self.rules:
            if rule.category is category:
                return rule
        return None

    def get_history_for_category(self, category: Category) -> List[HistoryEntry]:
        """Get all history entries for a category."""
        return [h for h in self.history if h.category is category]

    def get_last_service(self, category: Category) -> Optional[HistoryEntry]:
        """
        Get the most recent service for a category.

        Dated entries win over undated ones; ties fall back to the odometer.
        """
        entries = [h for h in self.get_history_for_category(category) if not h.is_empty]
        if not entries:
            return None
        return max(entries, key=lambda h: (h.date or "", h.km or 0))

    def latest_history(self) -> Dict[Category, HistoryEntry]:
        """Last service per category, omitting categories never serviced."""
        latest = {}
        for category in Category:
            last = self.get_last_service(category)
            if last is not None:
                latest[category] = last
        return latest

    def get_history_sorted(self, reverse: bool = True) -> List[HistoryEntry]:
        """History sorted by date (undated entries last when newest first)."""
        return sorted(
            self.history, key=lambda h: (h.date or "", h.km or 0), reverse=reverse
        )

    def maintenance_items(
        self,
        now: date,
        use_rules: bool = True,
        thresholds: Thresholds = DEFAULT_THRESHOLDS,
    ) -> List[MaintenanceItem]:
        """
        Calculate maintenance status for every category.

        Args:
            now: The day the calculation is made for
            use_rules: If False, ignore custom rules and use default intervals
        """
        intervals = intervals_from_rules(self.rules) if use_rules else None
        return build_maintenance_items(
            self, self.latest_history(), now, intervals, thresholds
        )
