"""Due-status evaluator: maps a rule and a truck's state to a DueStatus."""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from .calculations import (
    calc_days_remaining,
    calc_due_date,
    calc_due_miles,
    calc_km_remaining,
    check_status,
)
from .config import Thresholds
from .due_status import DueStatus
from .errors import ValidationError
from .rule import MaintenanceRule
from .status import Dimension, Status
from .vehicle_state import VehicleMaintenanceState

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = Thresholds()


def as_date(value) -> date:
    """Reduce a datetime to its date; pass dates through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def evaluate(
    rule: MaintenanceRule,
    vehicle_id: str,
    current_mileage: float,
    last_service_mileage: float,
    last_service_date: Optional[date],
    now: date,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> DueStatus:
    """
    Calculate the due status of a rule for one truck.

    Logic:
    - mileage: km_remaining = interval - (current - last service mileage)
    - time: days_remaining = interval - days since last service date
    - each dimension is classified on its own against the thresholds;
      the more urgent classification wins
    - the triggering dimension is the one that decided the status, ties
      going to the smaller remaining fraction of its interval

    The function reads no clock and keeps no state; `now` is supplied.
    """
    if current_mileage is None or current_mileage < 0:
        raise ValidationError(f"Truck {vehicle_id}: current mileage must be >= 0")
    now = as_date(now)
    last_service_date = as_date(last_service_date)
    last_service_mileage = last_service_mileage or 0
    if rule.uses_time and last_service_date is None:
        raise ValidationError(
            f"Truck {vehicle_id}: no registration or service date for time-based rule {rule.id}"
        )

    anomaly = None
    if rule.uses_mileage and current_mileage < last_service_mileage:
        anomaly = (
            f"current mileage {current_mileage:,.0f} is below last service "
            f"mileage {last_service_mileage:,.0f}; distance treated as 0"
        )
        logger.warning("Truck %s, rule %s: %s", vehicle_id, rule.id, anomaly)

    km_remaining = None
    days_remaining = None
    dimensions: List[Tuple[Dimension, Status, float]] = []

    if rule.uses_mileage:
        km_remaining = calc_km_remaining(
            rule.interval_mileage, current_mileage, last_service_mileage
        )
        if km_remaining is not None:
            dimensions.append((
                Dimension.MILEAGE,
                check_status(km_remaining, thresholds.due_km, thresholds.upcoming_km),
                km_remaining / rule.interval_mileage,
            ))

    if rule.uses_time:
        days_remaining = calc_days_remaining(rule.interval_days, last_service_date, now)
        if days_remaining is not None:
            dimensions.append((
                Dimension.TIME,
                check_status(days_remaining, thresholds.due_days, thresholds.upcoming_days),
                days_remaining / rule.interval_days,
            ))

    status = Status.OK
    triggering = Dimension.NONE
    urgency = None
    if dimensions:
        dimension, status, _ = min(dimensions, key=lambda d: (d[1].value, d[2]))
        urgency = min(d[2] for d in dimensions)
        if status != Status.OK:
            triggering = dimension

    return DueStatus(
        rule_id=rule.id,
        vehicle_id=vehicle_id,
        status=status,
        triggering_dimension=triggering,
        km_remaining=km_remaining,
        days_remaining=days_remaining,
        last_service_mileage=last_service_mileage if rule.uses_mileage else None,
        last_service_date=last_service_date if rule.uses_time else None,
        next_due_mileage=(
            calc_due_miles(last_service_mileage, rule.interval_mileage)
            if rule.uses_mileage else None
        ),
        next_due_date=(
            calc_due_date(last_service_date, rule.interval_days)
            if rule.uses_time else None
        ),
        urgency=urgency,
        anomaly=anomaly,
    )


def evaluate_due_status(
    rule: MaintenanceRule,
    state: VehicleMaintenanceState,
    now: date,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> DueStatus:
    """Evaluate a rule against a truck's state snapshot."""
    baseline = state.baseline_for(rule)
    return evaluate(
        rule,
        state.vehicle_id,
        state.current_mileage,
        baseline.mileage,
        baseline.date,
        now,
        thresholds,
    )
