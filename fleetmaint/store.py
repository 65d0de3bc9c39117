"""In-memory fleet store backed by a YAML fleet file."""

import logging
import threading
import uuid
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from . import lifecycle
from .config import Thresholds
from .due_status import DueStatus
from .errors import FleetError, NotFoundError, ValidationError
from .loader import FleetDocument, read_fleet, truck_to_dict, write_fleet
from .record import MaintenanceRecord, RecordFilter
from .rule import MaintenanceRule
from .schema import validate_definition
from .status import PRIORITY_ORDER
from .truck import Truck
from .vehicle_state import (
    VehicleMaintenanceState,
    build_vehicle_state,
    find_open_record,
    last_completed_record,
    record_service_date,
)

logger = logging.getLogger(__name__)


class FleetStore:
    """
    Trucks, rules and maintenance records for the scheduler.

    Implements the rule, vehicle and record-history sources the engine
    consumes. When created with a path every mutation is written back to
    that file. `lock` serializes mutations; lifecycle operations hold it
    across their check-and-write.
    """

    def __init__(
        self,
        trucks: Optional[Iterable[Truck]] = None,
        rules: Optional[Iterable[MaintenanceRule]] = None,
        records: Optional[Iterable[MaintenanceRecord]] = None,
        thresholds: Optional[Thresholds] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        self.lock = threading.RLock()
        self.thresholds = thresholds or Thresholds()
        self.path = Path(path) if path is not None else None
        self._trucks: Dict[str, Truck] = {}
        self._rules: Dict[str, MaintenanceRule] = {}
        self._records: Dict[str, MaintenanceRecord] = {}
        for truck in trucks or []:
            self._trucks[truck.id] = truck
        for rule in rules or []:
            self._rules[rule.id] = rule
        for record in records or []:
            self._records[record.id] = record

    @classmethod
    def load(cls, path: Union[str, Path]) -> "FleetStore":
        """Load a store from a fleet file; later mutations write back to it."""
        document = read_fleet(path)
        trucks = _only(document.trucks, Truck, "truck")
        rules = _only(document.rules, MaintenanceRule, "rule")
        records = _only(document.records, MaintenanceRecord, "record")
        for truck in trucks:
            _check_truck(truck)
        logger.info(
            "Loaded %s: %d trucks, %d rules, %d records",
            path, len(trucks), len(rules), len(records),
        )
        return cls(trucks, rules, records, document.thresholds, path)

    def to_document(self) -> FleetDocument:
        with self.lock:
            return FleetDocument(
                trucks=list(self._trucks.values()),
                rules=list(self._rules.values()),
                records=list(self._records.values()),
                thresholds=self.thresholds,
            )

    def save(self) -> None:
        if self.path is None:
            return
        with self.lock:
            write_fleet(self.path, self.to_document())

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex[:12]

    # -------------------------------------------------------------------------
    # Trucks
    # -------------------------------------------------------------------------

    def list_trucks(self) -> List[Truck]:
        return list(self._trucks.values())

    def find_truck(self, truck_id: str) -> Optional[Truck]:
        return self._trucks.get(truck_id)

    def get_truck(self, truck_id: str) -> Truck:
        truck = self._trucks.get(truck_id)
        if truck is None:
            raise NotFoundError(f"Truck {truck_id} not found")
        return truck

    def add_truck(self, truck: Truck) -> Truck:
        truck.validate()
        if truck.registration_date is None:
            raise ValidationError(f"Truck {truck.plate_number}: registrationDate is required")
        with self.lock:
            if not truck.id:
                truck.id = self.new_id()
            self._trucks[truck.id] = truck
            self.save()
        return truck

    def update_mileage(self, truck_id: str, mileage: float) -> Truck:
        if mileage is None or mileage < 0:
            raise ValidationError("Mileage cannot be negative")
        with self.lock:
            truck = self.get_truck(truck_id)
            if mileage < truck.mileage:
                logger.warning(
                    "Truck %s odometer set back from %s to %s", truck_id, truck.mileage, mileage
                )
            truck.mileage = mileage
            self.save()
        return truck

    def get_vehicle_state(
        self, vehicle_id: str, rules: Optional[List[MaintenanceRule]] = None
    ) -> VehicleMaintenanceState:
        """Snapshot of a truck's mileage and baselines for the given (or all active) rules."""
        with self.lock:
            truck = self.get_truck(vehicle_id)
            if rules is None:
                rules = self.list_active_rules()
            return build_vehicle_state(truck, rules, list(self._records.values()))

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def list_rules(
        self, category: Optional[str] = None, is_active: Optional[bool] = None
    ) -> List[MaintenanceRule]:
        """Rules filtered by category/active flag, highest priority first."""
        rules = list(self._rules.values())
        if category is not None:
            rules = [r for r in rules if r.category == category]
        if is_active is not None:
            rules = [r for r in rules if r.is_active == is_active]
        return sorted(rules, key=lambda r: PRIORITY_ORDER.get(r.priority, len(PRIORITY_ORDER)))

    def list_active_rules(self) -> List[MaintenanceRule]:
        return [r for r in self._rules.values() if r.is_active]

    def get_rule(self, rule_id: str) -> MaintenanceRule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise NotFoundError(f"Maintenance rule {rule_id} not found")
        return rule

    def create_rule(self, rule: MaintenanceRule) -> MaintenanceRule:
        rule.validate()
        with self.lock:
            if not rule.id:
                rule.id = self.new_id()
            self._rules[rule.id] = rule
            self.save()
        logger.info("Created rule %s (%s)", rule.id, rule.name)
        return rule

    def update_rule(self, rule_id: str, rule: MaintenanceRule) -> MaintenanceRule:
        rule.validate()
        with self.lock:
            self.get_rule(rule_id)
            rule.id = rule_id
            self._rules[rule_id] = rule
            self.save()
        logger.info("Updated rule %s", rule_id)
        return rule

    def delete_rule(self, rule_id: str) -> None:
        with self.lock:
            self.get_rule(rule_id)
            del self._rules[rule_id]
            self.save()
        logger.info("Deleted rule %s", rule_id)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def list_records(self, record_filter: Optional[RecordFilter] = None) -> List[MaintenanceRecord]:
        """Records matching the filter, latest scheduled first."""
        records = list(self._records.values())
        if record_filter is not None:
            records = [r for r in records if record_filter.matches(r)]
        return sorted(records, key=lambda r: record_service_date(r) or date.min, reverse=True)

    def get_record(self, record_id: str) -> MaintenanceRecord:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(f"Maintenance record {record_id} not found")
        return record

    def add_record(self, record: MaintenanceRecord) -> None:
        with self.lock:
            self._records[record.id] = record

    def get_last_completed_record(
        self, vehicle_id: str, rule: MaintenanceRule
    ) -> Optional[MaintenanceRecord]:
        return last_completed_record(self._records.values(), vehicle_id, rule)

    def get_open_record(
        self, vehicle_id: str, rule: MaintenanceRule
    ) -> Optional[MaintenanceRecord]:
        return find_open_record(self._records.values(), vehicle_id, rule)

    def create_pending_record(
        self, vehicle_id: str, rule: MaintenanceRule, due_info: Optional[DueStatus], now: date
    ) -> MaintenanceRecord:
        return lifecycle.open_pending_record(self, vehicle_id, rule, now, due_info)

    def complete_record(self, record_id: str, now: date, **completion) -> MaintenanceRecord:
        return lifecycle.complete_record(self, record_id, now, **completion)


def _check_truck(truck: Truck) -> None:
    """
    Log a truck that fails the schema.

    The truck is kept; the fleet pass reports it per rule it cannot be
    evaluated against.
    """
    try:
        validate_definition(truck_to_dict(truck), "truck")
    except FleetError as e:
        logger.error("Truck %s is malformed: %s", truck.id, e)


def _only(items: list, kind: type, label: str) -> list:
    """Keep parsed objects of the expected type, logging anything unparseable."""
    kept = []
    for item in items:
        if isinstance(item, kind):
            kept.append(item)
        else:
            logger.error("Ignoring unparseable %s entry: %r", label, item)
    return kept
