"""Alerts derived from calculated maintenance items."""

from dataclasses import dataclass
from typing import List

from .category import Category
from .maintenance_item import MaintenanceItem
from .status import Status

SEVERITY = {
    Status.CRITICAL: "critical",
    Status.ATTENTION: "warning",
    Status.NORMAL: "info",
}


@dataclass(frozen=True)
class Alert:
    category: Category
    severity: str
    message: str


def alert_message(item: MaintenanceItem) -> str:
    """Human-readable alert for an item, worded by status."""
    remaining = f"{item.days_remaining} days or {item.km_remaining:,} km"
    if item.status == Status.CRITICAL:
        return f"URGENT: {item.name} needs attention now! Only {remaining} left."
    if item.status == Status.ATTENTION:
        return f"ATTENTION: {item.name} is getting close to its service. {remaining} left."
    return f"{item.name} is up to date. Next service in {remaining}."


def build_alerts(items: List[MaintenanceItem]) -> List[Alert]:
    """One alert per item, in the items' order."""
    return [
        Alert(category=item.category, severity=SEVERITY[item.status], message=alert_message(item))
        for item in items
    ]
