"""Evaluator thresholds and runtime settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ValidationError

DEFAULT_FLEET_FILE = Path(__file__).parent.parent / "fleet.yaml"


@dataclass(frozen=True)
class Thresholds:
    """
    Classification windows for the due-status evaluator.

    A dimension is DUE when its remaining value is at or below the due
    threshold and UPCOMING when at or below the upcoming threshold.
    """

    due_km: float = 500
    due_days: int = 7
    upcoming_km: float = 2000
    upcoming_days: int = 30

    def __post_init__(self):
        for name in ("due_km", "due_days", "upcoming_km", "upcoming_days"):
            if getattr(self, name) < 0:
                raise ValidationError(f"Threshold {name} cannot be negative")
        if self.due_km > self.upcoming_km:
            raise ValidationError("dueKm cannot exceed upcomingKm")
        if self.due_days > self.upcoming_days:
            raise ValidationError("dueDays cannot exceed upcomingDays")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Thresholds":
        """Build from the camelCase `settings` section of a fleet file."""
        data = data or {}
        defaults = cls()
        return cls(
            due_km=data.get("dueKm", defaults.due_km),
            due_days=data.get("dueDays", defaults.due_days),
            upcoming_km=data.get("upcomingKm", defaults.upcoming_km),
            upcoming_days=data.get("upcomingDays", defaults.upcoming_days),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dueKm": self.due_km,
            "dueDays": self.due_days,
            "upcomingKm": self.upcoming_km,
            "upcomingDays": self.upcoming_days,
        }


def get_fleet_file() -> Path:
    """Fleet file path from FLEET_FILE, defaulting to fleet.yaml in the project root."""
    return Path(os.environ.get("FLEET_FILE", DEFAULT_FLEET_FILE))


def get_log_level(default: str = "INFO") -> str:
    return os.environ.get("LOG_LEVEL", default).upper()
