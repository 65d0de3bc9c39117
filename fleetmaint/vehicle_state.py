"""Vehicle maintenance state derived from truck data and record history."""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from .record import MaintenanceRecord, RecordStatus
from .rule import MaintenanceRule
from .truck import Truck


@dataclass
class Baseline:
    """Mileage/date anchor the next interval is measured from."""

    mileage: float
    date: date
    from_record: bool = False


def record_service_date(record: MaintenanceRecord) -> Optional[date]:
    """Date a record's work was done, falling back to when it was planned."""
    return record.completed_date or record.scheduled_date or record.created_at


def last_completed_record(
    records: Iterable[MaintenanceRecord], vehicle_id: str, rule: MaintenanceRule
) -> Optional[MaintenanceRecord]:
    """Most recent completed record for a truck and rule, or None."""
    matching = [
        r for r in records
        if r.vehicle_id == vehicle_id
        and r.status == RecordStatus.COMPLETED
        and r.matches_rule(rule)
    ]
    if not matching:
        return None
    return max(
        matching,
        key=lambda r: (record_service_date(r) or date.min, r.mileage_at_service or 0),
    )


def derive_baseline(
    truck: Truck, rule: MaintenanceRule, records: Iterable[MaintenanceRecord]
) -> Baseline:
    """
    Derive the baseline for a rule on a truck.

    Mileage comes from the most recent completed record that has a mileage
    stamp, the date from the most recent one with a date. Either falls back
    to the truck's registration when no such record exists.
    """
    completed = [
        r for r in records
        if r.vehicle_id == truck.id
        and r.status == RecordStatus.COMPLETED
        and r.matches_rule(rule)
    ]
    mileage = truck.registration_mileage
    service_date = truck.registration_date
    from_record = False

    with_mileage = [r for r in completed if r.mileage_at_service is not None]
    if with_mileage:
        latest = max(
            with_mileage,
            key=lambda r: (record_service_date(r) or date.min, r.mileage_at_service),
        )
        mileage = latest.mileage_at_service
        from_record = True

    with_date = [r for r in completed if record_service_date(r) is not None]
    if with_date:
        service_date = max(record_service_date(r) for r in with_date)
        from_record = True

    return Baseline(mileage=mileage, date=service_date, from_record=from_record)


def find_open_record(
    records: Iterable[MaintenanceRecord],
    vehicle_id: str,
    rule: MaintenanceRule,
    after: Optional[date] = None,
) -> Optional[MaintenanceRecord]:
    """
    The open (scheduled or pending) record for a truck and rule, if any.

    With `after`, records dated before that day are left out: they predate
    the last completion and do not cover the current interval.
    """
    matching = [
        r for r in records
        if r.vehicle_id == vehicle_id and r.is_open and r.matches_rule(rule)
    ]
    if after is not None:
        matching = [
            r for r in matching
            if record_service_date(r) is None or record_service_date(r) >= after
        ]
    if not matching:
        return None
    return min(matching, key=lambda r: (record_service_date(r) or date.max, r.id))


@dataclass
class VehicleMaintenanceState:
    """Snapshot of one truck's odometer and per-rule maintenance baselines."""

    vehicle_id: str
    current_mileage: float
    registration_date: date
    registration_mileage: float = 0
    baselines: Dict[str, Baseline] = field(default_factory=dict)
    open_records: Dict[str, MaintenanceRecord] = field(default_factory=dict)

    def baseline_for(self, rule: MaintenanceRule) -> Baseline:
        baseline = self.baselines.get(rule.id)
        if baseline is not None:
            return baseline
        return Baseline(mileage=self.registration_mileage, date=self.registration_date)

    def open_record_for(self, rule: MaintenanceRule) -> Optional[MaintenanceRecord]:
        return self.open_records.get(rule.id)


def build_vehicle_state(
    truck: Truck,
    rules: List[MaintenanceRule],
    records: Iterable[MaintenanceRecord],
) -> VehicleMaintenanceState:
    """Build the state snapshot for a truck across the given rules."""
    truck_records = [r for r in records if r.vehicle_id == truck.id]
    state = VehicleMaintenanceState(
        vehicle_id=truck.id,
        current_mileage=truck.mileage,
        registration_date=truck.registration_date,
        registration_mileage=truck.registration_mileage,
    )
    for rule in rules:
        baseline = derive_baseline(truck, rule, truck_records)
        state.baselines[rule.id] = baseline
        open_record = find_open_record(
            truck_records, truck.id, rule, baseline.date if baseline.from_record else None
        )
        if open_record is not None:
            state.open_records[rule.id] = open_record
    return state
