"""Maintenance categories and usage profiles."""

from enum import Enum

_NAMES = {
    "oil": "Engine oil",
    "tires": "Tires",
    "brakes": "Brake pads",
    "battery": "Battery",
}

_DESCRIPTIONS = {
    "oil": "Essential for lubricating and protecting the engine",
    "tires": "Keep the vehicle safe and gripping the road",
    "brakes": "Fundamental to the vehicle's safety",
    "battery": "Powers the starter and electrical systems",
}


class Category(Enum):
    """The fixed maintenance domains, in display order."""

    OIL = "oil"
    TIRES = "tires"
    BRAKES = "brakes"
    BATTERY = "battery"

    @property
    def display_name(self) -> str:
        return _NAMES[self.value]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.value]


class Usage(Enum):
    """How the vehicle is mostly driven."""

    CITY = "city"
    HIGHWAY = "highway"
    MIXED = "mixed"
