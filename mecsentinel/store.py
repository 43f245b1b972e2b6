"""Directory-backed vehicle store: one YAML file per vehicle, grouped by user."""

import logging
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .history_entry import HistoryEntry
from .loader import (
    create_vehicle,
    load_vehicle,
    save_current_km,
    save_history_entries,
    save_rules,
)
from .rule import MaintenanceRule
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class VehicleNotFoundError(LookupError):
    """No vehicle file exists for the given user and id."""


class UnsafePathError(ValueError):
    """A user or vehicle id that would leave the store directory."""


def is_safe_id(value) -> bool:
    """True for ids made only of letters, digits, "-" and "_"."""
    return isinstance(value, str) and bool(_SAFE_ID.match(value))


class VehicleStore:
    """Vehicles stored under <root>/<user_id>/<vehicle_id>.yaml."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def user_dir(self, user_id: str) -> Path:
        """Directory holding a user's vehicles; rejects ids that are not plain names."""
        if not is_safe_id(user_id):
            raise UnsafePathError(f"Invalid user id '{user_id}'")
        path = (self.root / user_id).resolve()
        if path.parent != self.root.resolve():
            raise UnsafePathError(f"Invalid user id '{user_id}'")
        return path

    def path_for(self, user_id: str, vehicle_id: str) -> Path:
        """Get full path for a user's vehicle."""
        if not is_safe_id(vehicle_id):
            raise UnsafePathError(f"Invalid vehicle id '{vehicle_id}'")
        return self.user_dir(user_id) / f"{vehicle_id}.yaml"

    def _existing_path(self, user_id: str, vehicle_id: str) -> Path:
        path = self.path_for(user_id, vehicle_id)
        if not path.exists():
            raise VehicleNotFoundError(f"Vehicle '{vehicle_id}' not found for user '{user_id}'")
        return path

    def list_vehicles(self, user_id: str) -> List[Vehicle]:
        """All vehicles of a user, oldest first."""
        user_dir = self.user_dir(user_id)
        if not user_dir.is_dir():
            return []
        vehicles = [load_vehicle(p) for p in sorted(user_dir.glob("*.yaml"))]
        return sorted(vehicles, key=lambda v: v.created_at or "")

    def get_latest_vehicle(self, user_id: str) -> Optional[Vehicle]:
        """The most recently created vehicle of a user, or None."""
        vehicles = self.list_vehicles(user_id)
        return vehicles[-1] if vehicles else None

    def get_vehicle(self, user_id: str, vehicle_id: str) -> Vehicle:
        return load_vehicle(self._existing_path(user_id, vehicle_id))

    def create_vehicle(self, vehicle: Vehicle) -> Vehicle:
        """Persist a new vehicle, assigning an id and creation time when missing."""
        if vehicle.user_id is None:
            raise ValueError("Vehicle has no user_id")
        if vehicle.vehicle_id is None:
            vehicle.vehicle_id = uuid.uuid4().hex
        if vehicle.created_at is None:
            vehicle.created_at = datetime.now().isoformat(timespec="microseconds")

        path = self.path_for(vehicle.user_id, vehicle.vehicle_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        create_vehicle(path, vehicle)
        return vehicle

    def insert_maintenance_history(
        self, user_id: str, vehicle_id: str, entries: Iterable[HistoryEntry]
    ) -> None:
        save_history_entries(self._existing_path(user_id, vehicle_id), entries)

    def update_current_km(self, user_id: str, vehicle_id: str, km: int) -> None:
        save_current_km(self._existing_path(user_id, vehicle_id), km)

    def save_rules(
        self, user_id: str, vehicle_id: str, rules: List[MaintenanceRule]
    ) -> None:
        save_rules(self._existing_path(user_id, vehicle_id), rules)
