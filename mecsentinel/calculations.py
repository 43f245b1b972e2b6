"""Maintenance scheduling: projections, status classification and urgency."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, TYPE_CHECKING

from dateutil.relativedelta import relativedelta

from .category import Category, Usage
from .history_entry import HistoryEntry
from .maintenance_item import MaintenanceItem
from .status import Status

if TYPE_CHECKING:
    from .rule import MaintenanceRule
    from .vehicle import Vehicle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Interval:
    """How often a category recurs. km == 0 means time-only."""

    months: int
    km: int


@dataclass(frozen=True)
class Thresholds:
    """Status cut-offs and the km-per-day factor used to compare urgency."""

    critical_days: int = 7
    critical_km: int = 500
    attention_days: int = 30
    attention_km: int = 2000
    km_per_day: float = 50


@dataclass(frozen=True)
class Projection:
    """When and where the next service falls, and how far away it is."""

    next_date: date
    next_km: int
    days_remaining: int
    km_remaining: int


DEFAULT_INTERVALS: Dict[Category, Interval] = {
    Category.OIL: Interval(months=6, km=10000),
    Category.TIRES: Interval(months=48, km=60000),
    Category.BRAKES: Interval(months=24, km=40000),
    Category.BATTERY: Interval(months=36, km=0),
}

DEFAULT_THRESHOLDS = Thresholds()

AVERAGE_KM_PER_MONTH: Dict[Usage, int] = {
    Usage.CITY: 800,
    Usage.HIGHWAY: 2000,
    Usage.MIXED: 1200,
}


def average_km_per_month(usage: Usage) -> int:
    """Typical monthly distance for a usage profile."""
    return AVERAGE_KM_PER_MONTH[usage]


def add_months(start: date, months: int) -> date:
    """
    Advance a date by calendar months.

    Days past the end of the target month clamp to its last day
    (Jan 31 + 1 month = Feb 28, or Feb 29 in a leap year).
    """
    return start + relativedelta(months=months)


def classify_status(
    days_remaining: int,
    km_remaining: int,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> Status:
    """Whichever of time or distance is closer decides the status."""
    if days_remaining <= thresholds.critical_days or km_remaining <= thresholds.critical_km:
        return Status.CRITICAL
    if days_remaining <= thresholds.attention_days or km_remaining <= thresholds.attention_km:
        return Status.ATTENTION
    return Status.NORMAL


def project_next_service(
    last_date: Optional[date],
    last_km: Optional[int],
    current_km: int,
    interval_months: int,
    interval_km: int,
    now: date,
) -> Projection:
    """
    Project the next service from the last one.

    - Without a last date the interval counts from now.
    - Without a last odometer reading the interval counts from current_km.
    - Remaining days/km never go below zero.
    """
    base_date = last_date if last_date is not None else now
    next_date = add_months(base_date, interval_months)

    base_km = last_km if last_km is not None else current_km
    next_km = base_km + interval_km

    return Projection(
        next_date=next_date,
        next_km=next_km,
        days_remaining=max(0, (next_date - now).days),
        km_remaining=max(0, int(next_km - current_km)),
    )


def intervals_from_rules(rules: Iterable["MaintenanceRule"]) -> Dict[Category, Interval]:
    """Interval table with custom rules laid over the defaults."""
    intervals = dict(DEFAULT_INTERVALS)
    for rule in rules:
        intervals[rule.category] = Interval(rule.interval_months, rule.interval_km)
    return intervals


def build_maintenance_items(
    vehicle: "Vehicle",
    history: Mapping[Category, HistoryEntry],
    now: date,
    intervals: Optional[Mapping[Category, Interval]] = None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> List[MaintenanceItem]:
    """Calculate one item per category, in category order."""
    intervals = intervals or DEFAULT_INTERVALS
    items = []
    for category in Category:
        interval = intervals.get(category, DEFAULT_INTERVALS[category])
        last = history.get(category)

        projection = project_next_service(
            last.service_date if last else None,
            last.km if last else None,
            vehicle.current_km,
            interval.months,
            interval.km,
            now,
        )
        status = classify_status(
            projection.days_remaining, projection.km_remaining, thresholds
        )
        logger.debug(
            "%s: %s (%d days, %d km remaining)",
            category.value,
            status.key,
            projection.days_remaining,
            projection.km_remaining,
        )

        items.append(
            MaintenanceItem(
                category=category,
                name=category.display_name,
                status=status,
                days_remaining=projection.days_remaining,
                km_remaining=projection.km_remaining,
                next_date=projection.next_date,
                next_km=projection.next_km,
                interval=interval,
                description=category.description,
                last_service=last,
            )
        )
    return items


def urgency_key(item: MaintenanceItem, thresholds: Thresholds = DEFAULT_THRESHOLDS):
    """Sort key: most urgent status first, then closest in days or km/50."""
    return (
        -item.status.rank,
        min(item.days_remaining, item.km_remaining / thresholds.km_per_day),
    )


def select_most_urgent(
    items: List[MaintenanceItem], thresholds: Thresholds = DEFAULT_THRESHOLDS
) -> Optional[MaintenanceItem]:
    """The single item needing attention soonest, or None for no items."""
    if not items:
        return None
    return sorted(items, key=lambda i: urgency_key(i, thresholds))[0]
