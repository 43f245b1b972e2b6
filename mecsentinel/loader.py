"""YAML loading and saving utilities for vehicle data."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import yaml

from .category import Category, Usage
from .history_entry import HistoryEntry
from .rule import MaintenanceRule
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


def _parse_object(dct: Dict[str, Any]) -> Union[MaintenanceRule, HistoryEntry, Vehicle, dict]:
    """Parse dictionary into appropriate object type."""
    # Rule object
    if "category" in dct and "intervalMonths" in dct:
        return MaintenanceRule(
            Category(dct["category"]),
            dct["intervalMonths"],
            dct.get("intervalKm") or 0,
            dct.get("name"),
            dct.get("description"),
            dct.get("aiSuggested"),
            dct.get("userAdjusted"),
        )
    # History entry
    elif "category" in dct:
        return HistoryEntry(
            Category(dct["category"]),
            dct.get("date"),
            dct.get("km"),
            dct.get("notes"),
        )
    # Top-level vehicle object
    elif "vehicle" in dct:
        meta = dct["vehicle"]
        state = dct.get("state") or {}
        return Vehicle(
            kind=meta["type"],
            model=meta["model"],
            year=meta["year"],
            current_km=state.get("currentKm") or 0,
            usage=Usage(meta["usage"]),
            zero_km=meta.get("zeroKm") or False,
            rules=dct.get("rules"),
            history=dct.get("history"),
            vehicle_id=meta.get("id"),
            user_id=meta.get("userId"),
            created_at=meta.get("createdAt"),
        )
    else:
        # Return dict as-is for unknown structures (like 'state')
        return dct


def _read(filename: Union[str, Path]) -> Dict[str, Any]:
    with open(filename, "r") as fp:
        return yaml.load(fp, Loader=yaml.SafeLoader) or {}


def _write(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def load_vehicle(filename: Union[str, Path]) -> Vehicle:
    """Load a vehicle from a YAML file."""
    with open(filename, "rb") as fp:
        # default=str turns unquoted YAML dates back into ISO strings
        json_data = json.dumps(yaml.load(fp, Loader=yaml.SafeLoader), default=str)
        return json.loads(json_data, object_hook=_parse_object)


def _history_to_dict(entry: HistoryEntry) -> Dict[str, Any]:
    """Serialize a HistoryEntry, omitting None values for cleaner YAML."""
    d: Dict[str, Any] = {"category": entry.category.value}
    if entry.date is not None:
        d["date"] = entry.date
    if entry.km is not None:
        d["km"] = entry.km
    if entry.notes is not None:
        d["notes"] = entry.notes
    return d


def _rule_to_dict(rule: MaintenanceRule) -> Dict[str, Any]:
    """Serialize a MaintenanceRule to the YAML dict format (camelCase keys)."""
    return {
        "category": rule.category.value,
        "name": rule.name,
        "intervalMonths": rule.interval_months,
        "intervalKm": rule.interval_km,
        "description": rule.description,
        "aiSuggested": rule.ai_suggested,
        "userAdjusted": rule.user_adjusted,
    }


def _vehicle_meta_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if vehicle.vehicle_id is not None:
        d["id"] = vehicle.vehicle_id
    if vehicle.user_id is not None:
        d["userId"] = vehicle.user_id
    d.update(
        {
            "type": vehicle.kind,
            "model": vehicle.model,
            "year": vehicle.year,
            "zeroKm": vehicle.zero_km,
            "usage": vehicle.usage.value,
        }
    )
    if vehicle.created_at is not None:
        d["createdAt"] = vehicle.created_at
    return d


def create_vehicle(filename: Union[str, Path], vehicle: Vehicle) -> None:
    """Write a new vehicle YAML file, including any rules and history it carries."""
    data: Dict[str, Any] = {
        "vehicle": _vehicle_meta_to_dict(vehicle),
        "state": {"currentKm": vehicle.current_km},
        "rules": [_rule_to_dict(r) for r in vehicle.rules],
        "history": [_history_to_dict(h) for h in vehicle.history],
    }
    _write(filename, data)
    logger.info("Created vehicle file %s", filename)


def save_history_entries(
    filename: Union[str, Path], entries: Iterable[HistoryEntry]
) -> None:
    """
    Append history entries to a vehicle YAML file.

    Loads the raw YAML, extends the history list,
    and writes back to the file.
    """
    data = _read(filename)

    if data.get("history") is None:
        data["history"] = []

    added = [_history_to_dict(e) for e in entries]
    data["history"].extend(added)

    _write(filename, data)
    logger.info("Saved %d history entries to %s", len(added), filename)


def save_history_entry(filename: Union[str, Path], entry: HistoryEntry) -> None:
    """Append a single history entry to a vehicle YAML file."""
    save_history_entries(filename, [entry])


def save_current_km(filename: Union[str, Path], km: int) -> None:
    """
    Update the current odometer in the state section of a vehicle YAML file.
    """
    data = _read(filename)

    if data.get("state") is None:
        data["state"] = {}

    data["state"]["currentKm"] = km

    _write(filename, data)
    logger.info("Updated current km of %s to %d", filename, km)


def save_rules(filename: Union[str, Path], rules: List[MaintenanceRule]) -> None:
    """Replace the custom rules of a vehicle YAML file."""
    data = _read(filename)
    data["rules"] = [_rule_to_dict(r) for r in rules]
    _write(filename, data)
    logger.info("Saved %d rules to %s", len(rules), filename)
