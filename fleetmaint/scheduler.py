"""Fleet scheduler: evaluates active rules across trucks and buckets the results."""

import heapq
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from .config import Thresholds
from .due_status import DueStatus
from .errors import DataAnomaly, FleetError, ItemError, NotFoundError
from .evaluator import DEFAULT_THRESHOLDS, as_date, evaluate_due_status
from .record import MaintenanceRecord
from .rule import MaintenanceRule, PRIORITIES
from .status import PRIORITY_ORDER, Dimension, Status
from .vehicle_state import VehicleMaintenanceState

if TYPE_CHECKING:
    from .store import FleetStore

logger = logging.getLogger(__name__)

OVERDUE = "overdue"
PENDING = "pending"


@dataclass
class Alert:
    """A due status joined with its rule and any open record for the pair."""

    due: DueStatus
    rule: MaintenanceRule
    bucket: str
    record: Optional[MaintenanceRecord] = None

    @property
    def vehicle_id(self) -> str:
        return self.due.vehicle_id

    @property
    def status(self) -> Status:
        return self.due.status

    @property
    def status_key(self) -> str:
        """Due-status name, or the record's status when the rule itself is OK."""
        if self.due.status == Status.OK and self.record is not None:
            return self.record.status.value
        return self.due.status.key

    @property
    def remaining(self) -> float:
        """Remaining km or days in the triggering dimension (0 when none triggered)."""
        if self.due.triggering_dimension == Dimension.MILEAGE:
            return self.due.km_remaining
        if self.due.triggering_dimension == Dimension.TIME:
            return self.due.days_remaining
        return 0

    @property
    def fraction(self) -> float:
        """Share of the triggering interval still left; negative once overdue."""
        if self.due.triggering_dimension == Dimension.MILEAGE:
            return self.due.km_remaining / self.rule.interval_mileage
        if self.due.triggering_dimension == Dimension.TIME:
            return self.due.days_remaining / self.rule.interval_days
        return self.due.urgency if self.due.urgency is not None else 0

    def _tiebreak(self):
        return (
            PRIORITY_ORDER.get(self.rule.priority, len(PRIORITY_ORDER)),
            self.vehicle_id,
            self.rule.id,
        )

    @property
    def sort_key(self):
        """Order within one triggering dimension: status, then raw km or days left."""
        return (self.status.value, self.remaining) + self._tiebreak()

    @property
    def merge_key(self):
        """Order across dimensions: status, then fraction of the interval left."""
        return (self.status.value, self.fraction) + self._tiebreak()

    def to_dict(self) -> Dict[str, Any]:
        data = self.due.to_dict()
        data.update({
            "ruleName": self.rule.name,
            "category": self.rule.category,
            "priority": self.rule.priority,
            "estimatedCost": self.rule.estimated_cost,
            "estimatedDuration": self.rule.estimated_duration,
            "record": None,
        })
        if self.record is not None:
            data["record"] = {"id": self.record.id, "status": self.record.status.value}
        return data


@dataclass
class FleetReport:
    """Result of a fleet-wide evaluation pass."""

    pending: List[Alert] = field(default_factory=list)
    overdue: List[Alert] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    errors: List[ItemError] = field(default_factory=list)
    anomalies: List[DataAnomaly] = field(default_factory=list)

    @property
    def alerts(self) -> List[Alert]:
        return self.overdue + self.pending


def order_alerts(alerts: List[Alert]) -> List[Alert]:
    """
    Most urgent first: DUE before UPCOMING, then least remaining.

    Within one triggering dimension alerts are ordered by raw km or days
    left, so 2,000 km over comes before 1,000 km over whatever the interval.
    Mileage and time alerts are then interleaved by the share of their
    interval left.
    """
    lanes: Dict[Dimension, List[Alert]] = {}
    for alert in alerts:
        lanes.setdefault(alert.due.triggering_dimension, []).append(alert)
    ordered = [sorted(lane, key=lambda a: a.sort_key) for lane in lanes.values()]
    return list(heapq.merge(*ordered, key=lambda a: a.merge_key))


def _bucket_for(due: DueStatus, record: Optional[MaintenanceRecord], now: date) -> Optional[str]:
    if due.status == Status.OVERDUE:
        return OVERDUE
    if record is not None:
        # open work stays visible; it is late once its scheduled date has passed
        if record.scheduled_date is not None and record.scheduled_date < now:
            return OVERDUE
        return PENDING
    if due.status in (Status.DUE, Status.UPCOMING):
        return PENDING
    return None


def _valid_active_rules(rules: Iterable[MaintenanceRule], errors: List[ItemError]) -> List[MaintenanceRule]:
    valid = []
    for rule in rules:
        if not rule.is_active:
            continue
        try:
            rule.validate()
        except FleetError as e:
            logger.error("Skipping malformed rule %s: %s", rule.id, e)
            errors.append(ItemError(str(e), rule_id=rule.id))
            continue
        valid.append(rule)
    return valid


def summarize(alerts: List[Alert], vehicle_count: int, rule_count: int) -> Dict[str, Any]:
    """Dashboard summary: totals plus counts by priority, category and truck."""
    by_priority: Dict[str, Dict[str, int]] = {p: {} for p in PRIORITIES}
    by_category: Dict[str, Dict[str, int]] = {}
    by_vehicle: Dict[str, Dict[str, int]] = {}

    for alert in alerts:
        key = alert.status_key
        for bucket, name in (
            (by_priority, alert.rule.priority),
            (by_category, alert.rule.category),
            (by_vehicle, alert.vehicle_id),
        ):
            counts = bucket.setdefault(name, {})
            counts[key] = counts.get(key, 0) + 1

    def count(status: Status) -> int:
        return sum(1 for a in alerts if a.status == status)

    return {
        "totalVehicles": vehicle_count,
        "totalRules": rule_count,
        "totalOverdue": sum(1 for a in alerts if a.bucket == OVERDUE),
        "totalPending": sum(1 for a in alerts if a.bucket == PENDING),
        "totalDue": count(Status.DUE),
        "totalUpcoming": count(Status.UPCOMING),
        "vehiclesNeedingAttention": len(by_vehicle),
        "byPriority": by_priority,
        "byCategory": by_category,
        "vehicles": [
            {"vehicleId": vehicle_id, **counts}
            for vehicle_id, counts in sorted(by_vehicle.items())
        ],
    }


def evaluate_fleet(
    rules: List[MaintenanceRule],
    vehicles: List[VehicleMaintenanceState],
    now: date,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> FleetReport:
    """
    Evaluate every active rule against every truck.

    - inactive rules are skipped; malformed ones are reported in `errors`
    - a pair with an open record is surfaced with that record, not flagged anew
    - overdue is sorted most overdue first, pending soonest due first
    - a failure on one pair is logged and collected; the pass continues

    Read-only: no records are created here.
    """
    now = as_date(now)
    report = FleetReport()
    active_rules = _valid_active_rules(rules, report.errors)

    for state in vehicles:
        for rule in active_rules:
            try:
                due = evaluate_due_status(rule, state, now, thresholds)
            except FleetError as e:
                logger.error("Truck %s, rule %s: %s", state.vehicle_id, rule.id, e)
                report.errors.append(ItemError(str(e), vehicle_id=state.vehicle_id, rule_id=rule.id))
                continue

            if due.anomaly:
                report.anomalies.append(DataAnomaly(state.vehicle_id, rule.id, due.anomaly))

            record = state.open_record_for(rule)
            bucket = _bucket_for(due, record, now)
            if bucket is None:
                continue
            alert = Alert(due=due, rule=rule, bucket=bucket, record=record)
            if bucket == OVERDUE:
                report.overdue.append(alert)
            else:
                report.pending.append(alert)

    report.overdue = order_alerts(report.overdue)
    report.pending = order_alerts(report.pending)
    report.summary = summarize(report.alerts, len(vehicles), len(active_rules))
    report.summary["errors"] = len(report.errors)
    logger.info(
        "Evaluated %d trucks x %d rules: %d overdue, %d pending, %d errors",
        len(vehicles), len(active_rules), len(report.overdue), len(report.pending),
        len(report.errors),
    )
    return report


def upcoming_for_vehicle(
    rules: List[MaintenanceRule],
    state: VehicleMaintenanceState,
    now: date,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> List[Alert]:
    """Non-OK statuses for one truck, sorted by status then rule priority."""
    report = evaluate_fleet(rules, [state], now, thresholds)
    alerts = [a for a in report.alerts if a.status != Status.OK]
    alerts.sort(key=lambda a: (
        a.status.value,
        PRIORITY_ORDER.get(a.rule.priority, len(PRIORITY_ORDER)),
        a.merge_key,
    ))
    return alerts


def evaluate_store(
    store: "FleetStore",
    now: date,
    vehicle_ids: Optional[List[str]] = None,
) -> FleetReport:
    """
    Run a fleet pass over a snapshot taken from the store.

    Trucks that disappear between listing and lookup are reported as
    per-item errors rather than aborting the pass.
    """
    rules = store.list_active_rules()
    if vehicle_ids is None:
        vehicle_ids = [t.id for t in store.list_trucks() if t.is_active]

    states = []
    missing = []
    for vehicle_id in vehicle_ids:
        try:
            states.append(store.get_vehicle_state(vehicle_id, rules))
        except NotFoundError as e:
            logger.warning("Skipping truck %s: %s", vehicle_id, e)
            missing.append(ItemError(str(e), vehicle_id=vehicle_id))

    report = evaluate_fleet(rules, states, now, store.thresholds)
    report.errors = missing + report.errors
    report.summary["errors"] = len(report.errors)
    return report
