"""DueStatus dataclass for calculated maintenance urgency."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from .status import Dimension, Status


@dataclass
class DueStatus:
    """Computed urgency of one rule for one truck at a point in time."""

    rule_id: str
    vehicle_id: str
    status: Status
    triggering_dimension: Dimension = Dimension.NONE
    km_remaining: Optional[float] = None
    days_remaining: Optional[int] = None
    last_service_mileage: Optional[float] = None
    last_service_date: Optional[date] = None
    next_due_mileage: Optional[float] = None
    next_due_date: Optional[date] = None
    urgency: Optional[float] = None  # smallest remaining fraction of an interval
    anomaly: Optional[str] = None

    @property
    def is_due(self) -> bool:
        return self.status in (Status.OVERDUE, Status.DUE)

    @property
    def needs_attention(self) -> bool:
        return self.status != Status.OK

    @property
    def reason(self) -> str:
        """Short explanation, e.g. 'Exceeded mileage interval by 1,000 km'."""
        parts = []
        if self.km_remaining is not None and self.km_remaining <= 0:
            parts.append(f"exceeded mileage interval by {abs(self.km_remaining):,.0f} km")
        if self.days_remaining is not None and self.days_remaining <= 0:
            parts.append(f"exceeded time interval by {abs(self.days_remaining)} days")
        if not parts:
            if self.triggering_dimension == Dimension.MILEAGE:
                parts.append(f"due in {self.km_remaining:,.0f} km")
            elif self.triggering_dimension == Dimension.TIME:
                parts.append(f"due in {self.days_remaining} days")
            else:
                parts.append("within interval")
        text = " and ".join(parts)
        return text[0].upper() + text[1:]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "vehicleId": self.vehicle_id,
            "status": self.status.key,
            "triggeringDimension": self.triggering_dimension.value,
            "kmRemaining": self.km_remaining,
            "daysRemaining": self.days_remaining,
            "lastServiceMileage": self.last_service_mileage,
            "lastServiceDate": _iso(self.last_service_date),
            "nextDueMileage": self.next_due_mileage,
            "nextDueDate": _iso(self.next_due_date),
            "reason": self.reason,
            "anomaly": self.anomaly,
        }


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None
