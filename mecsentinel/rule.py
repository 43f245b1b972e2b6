"""MaintenanceRule class for custom interval definitions."""
from typing import Optional

from .category import Category


class MaintenanceRule:
    """An interval override for one category, suggested by the advisor or set by the user."""

    def __init__(
            self,
            category: Category,
            interval_months: int,
            interval_km: int,
            name: Optional[str] = None,
            description: Optional[str] = None,
            ai_suggested: bool = False,
            user_adjusted: bool = False,
    ):
        self.category = category
        self.name = name or category.display_name
        self.interval_months = interval_months
        # Battery is time-only
        self.interval_km = 0 if category is Category.BATTERY else interval_km
        self.description = description or category.description
        self.ai_suggested = ai_suggested or False
        self.user_adjusted = user_adjusted or False

    def adjust(self, interval_months: int, interval_km: int) -> None:
        """Apply a user edit. ai_suggested is kept as provenance."""
        self.interval_months = interval_months
        self.interval_km = 0 if self.category is Category.BATTERY else interval_km
        self.user_adjusted = True

    def __repr__(self):
        return (
            f"MaintenanceRule({self.category.value!r}, {self.interval_months}mo, "
            f"{self.interval_km}km)"
        )
