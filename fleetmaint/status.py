"""Status and dimension enums for maintenance urgency."""

from enum import Enum


class Status(Enum):
    """Due-status categories. Lower value = more urgent."""

    OVERDUE = 1
    DUE = 2
    UPCOMING = 3
    OK = 4

    @property
    def key(self) -> str:
        return self.name.lower()

    @classmethod
    def from_key(cls, key: str) -> "Status":
        return cls[key.upper()]


class Dimension(Enum):
    """Which interval dimension triggered a status."""

    MILEAGE = "mileage"
    TIME = "time"
    NONE = "none"


PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}
