"""MaintenanceRecord class and its status state machine."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple, TYPE_CHECKING

from .errors import ConflictError

if TYPE_CHECKING:
    from .rule import MaintenanceRule


class RecordStatus(Enum):
    SCHEDULED = "scheduled"
    PENDING = "pending"
    COMPLETED = "completed"


# completed is terminal; a new record is opened for the next interval
TRANSITIONS = {
    RecordStatus.SCHEDULED: {RecordStatus.PENDING, RecordStatus.COMPLETED},
    RecordStatus.PENDING: {RecordStatus.COMPLETED},
    RecordStatus.COMPLETED: set(),
}


class MaintenanceRecord:
    """One occurrence of maintenance for a truck, scheduled or performed."""

    def __init__(
            self,
            id: str,
            vehicle_id: str,
            category: str,
            status: RecordStatus = RecordStatus.PENDING,
            rule_id: Optional[str] = None,
            description: Optional[str] = None,
            scheduled_date: Optional[date] = None,
            completed_date: Optional[date] = None,
            mileage_at_service: Optional[float] = None,
            cost: Optional[float] = None,
            notes: Optional[str] = None,
            created_at: Optional[date] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.category = category
        self.status = status
        self.rule_id = rule_id
        self.description = description
        self.scheduled_date = scheduled_date
        self.completed_date = completed_date
        self.mileage_at_service = mileage_at_service
        self.cost = cost
        self.notes = notes
        self.created_at = created_at

    @property
    def is_open(self) -> bool:
        return self.status != RecordStatus.COMPLETED

    def matches_rule(self, rule: "MaintenanceRule") -> bool:
        """
        True if this record tracks the given rule.

        Records opened by the scheduler carry the rule id. Records entered
        by hand may only carry a category, which then matches any rule of
        that category.
        """
        if self.rule_id is not None:
            return self.rule_id == rule.id
        return self.category == rule.category

    def can_transition(self, new_status: RecordStatus) -> bool:
        return new_status in TRANSITIONS[self.status]

    def transition_to(self, new_status: RecordStatus) -> None:
        """Move to new_status, raising ConflictError on an illegal move."""
        if not self.can_transition(new_status):
            if self.status == RecordStatus.COMPLETED:
                raise ConflictError(f"Maintenance record {self.id} already completed")
            raise ConflictError(
                f"Maintenance record {self.id} cannot move from "
                f"{self.status.value} to {new_status.value}"
            )
        self.status = new_status


@dataclass
class RecordFilter:
    """Explicit filter for listing maintenance records."""

    status: Optional[RecordStatus] = None
    vehicle_id: Optional[str] = None
    category: Optional[str] = None
    date_range: Optional[Tuple[Optional[date], Optional[date]]] = None

    def matches(self, record: MaintenanceRecord) -> bool:
        if self.status is not None and record.status != self.status:
            return False
        if self.vehicle_id is not None and record.vehicle_id != self.vehicle_id:
            return False
        if self.category is not None and record.category != self.category:
            return False
        if self.date_range is not None:
            start, end = self.date_range
            if record.scheduled_date is None:
                return False
            if start is not None and record.scheduled_date < start:
                return False
            if end is not None and record.scheduled_date > end:
                return False
        return True
