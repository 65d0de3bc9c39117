"""
Maintenance record lifecycle: scheduled -> pending -> completed.

Every mutation runs under the store lock so the check for an existing open
record and the write that follows it cannot interleave with another request.
"""

import logging
from datetime import date
from typing import List, Optional, TYPE_CHECKING

from .due_status import DueStatus
from .errors import ConflictError, FleetError, ValidationError
from .record import MaintenanceRecord, RecordStatus
from .rule import MaintenanceRule
from .status import Dimension

if TYPE_CHECKING:
    from .scheduler import FleetReport
    from .store import FleetStore

logger = logging.getLogger(__name__)


def schedule_record(
    store: "FleetStore",
    vehicle_id: str,
    rule_id: str,
    scheduled_date: date,
    now: date,
    description: Optional[str] = None,
    cost: Optional[float] = None,
    notes: Optional[str] = None,
) -> MaintenanceRecord:
    """Open a record in `scheduled` ahead of time for a truck and rule."""
    if scheduled_date is None:
        raise ValidationError("scheduledDate is required")
    if cost is not None and cost < 0:
        raise ValidationError("Cost cannot be negative")
    with store.lock:
        store.get_truck(vehicle_id)
        rule = store.get_rule(rule_id)
        existing = store.get_open_record(vehicle_id, rule)
        if existing is not None:
            raise ConflictError(
                f"Truck {vehicle_id} already has open record {existing.id} "
                f"({existing.status.value}) for rule {rule.id}"
            )
        record = MaintenanceRecord(
            id=store.new_id(),
            vehicle_id=vehicle_id,
            category=rule.category,
            status=RecordStatus.SCHEDULED,
            rule_id=rule.id,
            description=description or rule.name,
            scheduled_date=scheduled_date,
            cost=cost,
            notes=notes,
            created_at=now,
        )
        store.add_record(record)
        store.save()
    logger.info("Scheduled record %s: truck %s, rule %s on %s", record.id, vehicle_id, rule.id, scheduled_date)
    return record


def open_pending_record(
    store: "FleetStore",
    vehicle_id: str,
    rule: MaintenanceRule,
    now: date,
    due: Optional[DueStatus] = None,
) -> MaintenanceRecord:
    """
    Create-if-absent a pending record for a truck and rule.

    A `scheduled` record for the pair is promoted to `pending` instead of
    opening a second one. An existing `pending` record raises ConflictError.
    """
    with store.lock:
        store.get_truck(vehicle_id)
        existing = store.get_open_record(vehicle_id, rule)
        if existing is not None:
            if existing.status == RecordStatus.PENDING:
                raise ConflictError(
                    f"Truck {vehicle_id} already has pending record {existing.id} for rule {rule.id}"
                )
            existing.transition_to(RecordStatus.PENDING)
            if due is not None and existing.notes is None:
                existing.notes = due.reason
            store.save()
            logger.info("Promoted record %s to pending", existing.id)
            return existing

        scheduled_date = now
        if (
            due is not None
            and due.triggering_dimension == Dimension.TIME
            and due.next_due_date is not None
            and due.next_due_date > now
        ):
            scheduled_date = due.next_due_date
        record = MaintenanceRecord(
            id=store.new_id(),
            vehicle_id=vehicle_id,
            category=rule.category,
            status=RecordStatus.PENDING,
            rule_id=rule.id,
            description=rule.name,
            scheduled_date=scheduled_date,
            cost=rule.estimated_cost,
            notes=due.reason if due is not None else None,
            created_at=now,
        )
        store.add_record(record)
        store.save()
    logger.info("Opened pending record %s: truck %s, rule %s", record.id, vehicle_id, rule.id)
    return record


def open_pending_records(
    store: "FleetStore", report: "FleetReport", now: date
) -> List[MaintenanceRecord]:
    """
    Open pending records for every due or overdue alert in a report.

    This is the explicit step that turns detections into records. Alerts
    already backed by a pending record are left alone; conflicts raised
    because another request got there first are logged and skipped.
    """
    opened = []
    for alert in report.alerts:
        if not alert.due.is_due:
            continue
        if alert.record is not None and alert.record.status == RecordStatus.PENDING:
            continue
        try:
            opened.append(open_pending_record(store, alert.vehicle_id, alert.rule, now, alert.due))
        except ConflictError as e:
            logger.info("Not opening record: %s", e)
        except FleetError as e:
            logger.error("Truck %s, rule %s: %s", alert.vehicle_id, alert.rule.id, e)
    return opened


def complete_record(
    store: "FleetStore",
    record_id: str,
    now: date,
    mileage_at_service: Optional[float] = None,
    completed_date: Optional[date] = None,
    cost: Optional[float] = None,
    notes: Optional[str] = None,
) -> MaintenanceRecord:
    """
    Complete a record, resetting the baseline for its rule.

    The mileage stamp defaults to the truck's current mileage and the date
    to `now`. A truck held in `maintenance` goes back to `available`.
    Completing a completed record raises ConflictError and changes nothing.
    """
    if mileage_at_service is not None and mileage_at_service < 0:
        raise ValidationError("Mileage cannot be negative")
    if cost is not None and cost < 0:
        raise ValidationError("Cost cannot be negative")

    with store.lock:
        record = store.get_record(record_id)
        if not record.can_transition(RecordStatus.COMPLETED):
            raise ConflictError(f"Maintenance record {record_id} already completed")

        truck = store.find_truck(record.vehicle_id)
        if mileage_at_service is None and truck is not None:
            mileage_at_service = truck.mileage

        record.transition_to(RecordStatus.COMPLETED)
        record.completed_date = completed_date or now
        record.mileage_at_service = mileage_at_service
        if cost is not None:
            record.cost = cost
        if notes is not None:
            record.notes = notes

        if truck is not None:
            if mileage_at_service is not None and mileage_at_service > truck.mileage:
                logger.info(
                    "Truck %s odometer advanced to %s by service record", truck.id, mileage_at_service
                )
                truck.mileage = mileage_at_service
            if truck.status == "maintenance":
                truck.status = "available"
        store.save()

    logger.info("Completed record %s at %s km on %s", record.id, record.mileage_at_service, record.completed_date)
    return record
