"""Status enum for maintenance urgency levels."""

from enum import Enum


class Status(Enum):
    """Maintenance status categories. Lower value = more urgent."""

    CRITICAL = 1
    ATTENTION = 2
    NORMAL = 3

    @property
    def key(self) -> str:
        """Lowercase name used in files, JSON and templates."""
        return self.name.lower()

    @property
    def rank(self) -> int:
        """Urgency rank: critical=3, attention=2, normal=1."""
        return 4 - self.value
