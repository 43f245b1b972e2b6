"""
Vehicle maintenance monitoring.

This package provides the models and scheduling logic behind MecSentinel:
- Category / Usage: the fixed maintenance domains and usage profiles
- Status: Urgency levels (CRITICAL, ATTENTION, NORMAL)
- HistoryEntry: Last known service records
- MaintenanceRule: Custom interval overrides
- MaintenanceItem: Calculated status per category
- Vehicle: Main aggregate combining all data
- calculations: the scheduler (projection, classification, urgency)
"""

from .status import Status
from .category import Category, Usage
from .history_entry import HistoryEntry
from .rule import MaintenanceRule
from .maintenance_item import MaintenanceItem
from .calculations import (
    DEFAULT_INTERVALS,
    DEFAULT_THRESHOLDS,
    Interval,
    Projection,
    Thresholds,
    add_months,
    average_km_per_month,
    build_maintenance_items,
    classify_status,
    intervals_from_rules,
    project_next_service,
    select_most_urgent,
)
from .vehicle import Vehicle
from .alert import Alert, alert_message, build_alerts
from .loader import (
    load_vehicle,
    create_vehicle,
    save_history_entry,
    save_history_entries,
    save_current_km,
    save_rules,
)
from .store import UnsafePathError, VehicleStore, VehicleNotFoundError

__all__ = [
    "Status",
    "Category",
    "Usage",
    "HistoryEntry",
    "MaintenanceRule",
    "MaintenanceItem",
    "DEFAULT_INTERVALS",
    "DEFAULT_THRESHOLDS",
    "Interval",
    "Projection",
    "Thresholds",
    "add_months",
    "average_km_per_month",
    "build_maintenance_items",
    "classify_status",
    "intervals_from_rules",
    "project_next_service",
    "select_most_urgent",
    "Vehicle",
    "Alert",
    "alert_message",
    "build_alerts",
    "load_vehicle",
    "create_vehicle",
    "save_history_entry",
    "save_history_entries",
    "save_current_km",
    "save_rules",
    "VehicleStore",
    "VehicleNotFoundError",
    "UnsafePathError",
]
