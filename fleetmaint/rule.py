"""MaintenanceRule class for maintenance interval definitions."""
from typing import Optional

from .errors import ValidationError

INTERVAL_TYPES = ("mileage", "time", "both")
PRIORITIES = ("low", "medium", "high", "critical")
MAX_DESCRIPTION_LENGTH = 500


class MaintenanceRule:
    """A maintenance rule defining when a service should be performed."""

    def __init__(
            self,
            id: str,
            name: str,
            category: str,
            interval_type: str,
            interval_mileage: Optional[float] = None,
            interval_days: Optional[int] = None,
            priority: str = "medium",
            estimated_cost: Optional[float] = None,
            estimated_duration: Optional[float] = None,
            is_active: bool = True,
            description: Optional[str] = None,
    ):
        self.id = id
        self.name = name
        self.category = category
        self.interval_type = interval_type
        self.interval_mileage = interval_mileage
        self.interval_days = interval_days
        self.priority = priority or "medium"
        self.estimated_cost = estimated_cost
        self.estimated_duration = estimated_duration
        self.is_active = True if is_active is None else bool(is_active)
        self.description = description

    @property
    def uses_mileage(self) -> bool:
        return self.interval_type in ("mileage", "both")

    @property
    def uses_time(self) -> bool:
        return self.interval_type in ("time", "both")

    @property
    def display_name(self) -> str:
        """Name with category, e.g. 'Engine oil (oil_change)'."""
        return f"{self.name} ({self.category})"

    def validate(self) -> None:
        """
        Check the interval-field invariant and value ranges.

        Raises ValidationError describing the first problem found.
        """
        if not self.name or not str(self.name).strip():
            raise ValidationError("Rule name is required")
        if not self.category:
            raise ValidationError(f"Rule '{self.name}': category is required")
        if self.interval_type not in INTERVAL_TYPES:
            raise ValidationError(
                f"Rule '{self.name}': intervalType must be one of "
                f"{', '.join(INTERVAL_TYPES)}, got {self.interval_type!r}"
            )
        if self.uses_mileage and self.interval_mileage is None:
            raise ValidationError(
                f"Rule '{self.name}': intervalMileage is required for "
                f"intervalType '{self.interval_type}'"
            )
        if self.uses_time and self.interval_days is None:
            raise ValidationError(
                f"Rule '{self.name}': intervalDays is required for "
                f"intervalType '{self.interval_type}'"
            )
        if self.interval_mileage is not None and self.interval_mileage <= 0:
            raise ValidationError(f"Rule '{self.name}': intervalMileage must be positive")
        if self.interval_days is not None and self.interval_days <= 0:
            raise ValidationError(f"Rule '{self.name}': intervalDays must be positive")
        if self.priority not in PRIORITIES:
            raise ValidationError(
                f"Rule '{self.name}': priority must be one of {', '.join(PRIORITIES)}"
            )
        if self.estimated_cost is not None and self.estimated_cost < 0:
            raise ValidationError(f"Rule '{self.name}': cost cannot be negative")
        if self.estimated_duration is not None and self.estimated_duration < 0:
            raise ValidationError(f"Rule '{self.name}': duration cannot be negative")
        if self.description and len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Rule '{self.name}': description cannot exceed "
                f"{MAX_DESCRIPTION_LENGTH} characters"
            )
