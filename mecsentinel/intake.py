"""
Intake of user-entered vehicle data.

Turns the answers of the vehicle quiz into a Vehicle with its history,
and validates odometer updates. User input arrives as strings; anything
that does not parse is rejected here, before the scheduler sees it.
"""

import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from .category import Category, Usage
from .history_entry import HistoryEntry
from .vehicle import Vehicle

NOT_DONE = "not_done"

# Quiz answer key for each category's last service
ANSWER_KEYS = {
    Category.OIL: "lastOilChange",
    Category.TIRES: "lastTireChange",
    Category.BRAKES: "lastBrakeChange",
    Category.BATTERY: "lastBatteryChange",
}

YES_ANSWERS = ("yes", "y", "true", "sim", "1")

# Plain digits, or digit groups of three with one consistent separator
_KM_PATTERN = re.compile(r"^(?:\d+|\d{1,3}([.,\s])\d{3}(?:\1\d{3})*)$")


class IntakeError(ValueError):
    """User-entered data could not be accepted."""


def parse_km(text: Any) -> Optional[int]:
    """
    Parse an odometer value; None for blank, non-numeric, fractional or negative input.

    Thousands may be grouped with ",", "." or spaces ("45,000", "45.000",
    "45 000"). A separator not followed by exactly three digits makes the
    value fractional, so "12.5" is rejected rather than read as 125.
    """
    if text is None:
        return None
    if isinstance(text, bool):
        return None
    if isinstance(text, int):
        return text if text >= 0 else None
    if isinstance(text, float):
        if not text.is_integer() or text < 0:
            return None
        return int(text)
    cleaned = str(text).strip()
    if not _KM_PATTERN.match(cleaned):
        return None
    return int(re.sub(r"[.,\s]", "", cleaned))


def parse_date(text: Any) -> Optional[str]:
    """Normalize a service date to an ISO string; None when blank."""
    if text is None or text == "":
        return None
    if isinstance(text, date):
        return text.isoformat()
    try:
        return date.fromisoformat(str(text).strip()).isoformat()
    except ValueError:
        raise IntakeError(f"Invalid date '{text}' (expected YYYY-MM-DD)")


def parse_usage(text: Any) -> Usage:
    try:
        return Usage(str(text).strip().lower())
    except ValueError:
        raise IntakeError(f"Invalid usage '{text}' (expected city, highway or mixed)")


def _is_yes(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in YES_ANSWERS


def history_from_answers(answers: Dict[str, Any]) -> List[HistoryEntry]:
    """
    Build history entries from the per-category quiz answers.

    Each answer looks like {"type": "date"|"km"|"not_done", "date": ..., "km": ...}.
    "not_done" (or a missing answer) means never serviced: no entry.
    """
    entries = []
    for category in Category:
        answer = answers.get(ANSWER_KEYS[category])
        if not answer or answer.get("type") == NOT_DONE:
            continue
        entry = HistoryEntry(
            category,
            date=parse_date(answer.get("date")),
            km=parse_km(answer.get("km")),
        )
        if not entry.is_empty:
            entries.append(entry)
    return entries


def build_vehicle_from_answers(answers: Dict[str, Any], user_id: Optional[str] = None) -> Vehicle:
    """Build a Vehicle (with history) from the quiz answers."""
    try:
        year = int(str(answers.get("vehicleYear", "")).strip())
    except ValueError:
        raise IntakeError(f"Invalid year '{answers.get('vehicleYear')}'")

    zero_km = _is_yes(answers.get("isZeroKm", False))
    if zero_km:
        current_km = 0
    else:
        current_km = parse_km(answers.get("currentKm"))
        if current_km is None:
            raise IntakeError(f"Invalid odometer reading '{answers.get('currentKm')}'")

    model = str(answers.get("vehicleModel") or "").strip()
    if not model:
        raise IntakeError("Vehicle model is required")

    return Vehicle(
        kind=str(answers.get("vehicleType") or "car").strip().lower(),
        model=model,
        year=year,
        current_km=current_km,
        usage=parse_usage(answers.get("usageType")),
        zero_km=zero_km,
        history=history_from_answers(answers),
        user_id=user_id,
    )


def apply_odometer_reading(current_km: int, reading: Any) -> int:
    """New odometer value from a reading; must exceed the current one."""
    km = parse_km(reading)
    if km is None:
        raise IntakeError(f"Invalid odometer reading '{reading}'")
    if km <= current_km:
        raise IntakeError(f"New reading {km:,} must be greater than current {current_km:,}")
    return km


def apply_monthly_distance(current_km: int, distance: Any) -> int:
    """New odometer value after driving the given distance."""
    km = parse_km(distance)
    if km is None or km <= 0:
        raise IntakeError(f"Invalid distance '{distance}'")
    return current_km + km


def parse_interval(months: Any, km: Any) -> Tuple[int, int]:
    """Interval of a custom rule: months must be positive, km zero or more."""
    try:
        months, km = int(months), int(km or 0)
    except (TypeError, ValueError):
        raise IntakeError(f"Invalid interval '{months} months / {km} km'")
    if months <= 0 or km < 0:
        raise IntakeError(
            f"Invalid interval '{months} months / {km} km' "
            "(months must be positive, km zero or more)"
        )
    return months, km
