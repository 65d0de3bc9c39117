"""Truck class - the vehicle record the scheduler reads."""

from datetime import date
from typing import Optional

from .errors import ValidationError

TRUCK_STATUSES = ("available", "in_use", "maintenance", "inactive")


class Truck:
    """Truck identification, odometer and registration baseline."""

    def __init__(
        self,
        id: str,
        plate_number: str,
        brand: str,
        model: str,
        year: Optional[int],
        mileage: float,
        registration_date: date,
        registration_mileage: float = 0,
        status: str = "available",
    ):
        self.id = id
        self.plate_number = plate_number.upper() if plate_number else plate_number
        self.brand = brand
        self.model = model
        self.year = year
        self.mileage = mileage or 0
        self.registration_date = registration_date
        self.registration_mileage = registration_mileage or 0
        self.status = status or "available"

    @property
    def name(self) -> str:
        """Human-readable truck name."""
        base = f"{self.brand} {self.model}"
        if self.year:
            base = f"{self.year} {base}"
        return f"{base} [{self.plate_number}]"

    @property
    def is_active(self) -> bool:
        return self.status != "inactive"

    def validate(self) -> None:
        if self.mileage < 0:
            raise ValidationError(f"Truck {self.plate_number}: mileage cannot be negative")
        if self.registration_mileage < 0:
            raise ValidationError(
                f"Truck {self.plate_number}: registration mileage cannot be negative"
            )
        if self.status not in TRUCK_STATUSES:
            raise ValidationError(
                f"Truck {self.plate_number}: status must be one of {', '.join(TRUCK_STATUSES)}"
            )
