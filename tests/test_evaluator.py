#!/usr/bin/env python3
"""Tests for the due-status evaluator."""
import logging
from datetime import date, datetime, timedelta

import pytest

from fleetmaint import (
    Baseline,
    Dimension,
    MaintenanceRule,
    Status,
    Thresholds,
    ValidationError,
    VehicleMaintenanceState,
    evaluate,
    evaluate_due_status,
)

NOW = date(2025, 6, 1)


def mileage_rule(interval=10000, **kwargs):
    return MaintenanceRule("r-oil", "Engine oil", "oil_change", "mileage", interval_mileage=interval, **kwargs)


def time_rule(days=90):
    return MaintenanceRule("r-brakes", "Brake inspection", "brakes", "time", interval_days=days)


def both_rule(interval=10000, days=90):
    return MaintenanceRule(
        "r-service", "Full service", "service", "both", interval_mileage=interval, interval_days=days
    )


class TestMileageRules:
    """Mileage-only rules."""

    def test_due_within_threshold(self):
        """40,000 last service + 10,000 interval, at 49,600 -> 400 km left, due."""
        due = evaluate(mileage_rule(), "t1", 49600, 40000, date(2025, 1, 1), NOW)
        assert due.km_remaining == 400
        assert due.status == Status.DUE
        assert due.triggering_dimension == Dimension.MILEAGE
        assert due.days_remaining is None

    def test_overdue_past_interval(self):
        due = evaluate(mileage_rule(), "t1", 51000, 40000, date(2025, 1, 1), NOW)
        assert due.km_remaining == -1000
        assert due.status == Status.OVERDUE
        assert due.triggering_dimension == Dimension.MILEAGE
        assert due.reason == "Exceeded mileage interval by 1,000 km"

    def test_upcoming(self):
        due = evaluate(mileage_rule(), "t1", 48500, 40000, None, NOW)
        assert due.km_remaining == 1500
        assert due.status == Status.UPCOMING

    def test_ok_has_no_trigger(self):
        due = evaluate(mileage_rule(), "t1", 45000, 40000, None, NOW)
        assert due.status == Status.OK
        assert due.triggering_dimension == Dimension.NONE
        assert due.reason == "Within interval"

    def test_threshold_boundaries(self):
        rule = mileage_rule()
        assert evaluate(rule, "t1", 50000, 40000, None, NOW).status == Status.OVERDUE
        assert evaluate(rule, "t1", 49500, 40000, None, NOW).status == Status.DUE
        assert evaluate(rule, "t1", 48000, 40000, None, NOW).status == Status.UPCOMING
        assert evaluate(rule, "t1", 47999, 40000, None, NOW).status == Status.OK

    def test_next_due_mileage(self):
        due = evaluate(mileage_rule(), "t1", 45000, 40000, None, NOW)
        assert due.next_due_mileage == 50000
        assert due.next_due_date is None

    def test_ignores_dates(self):
        """A mileage rule never goes overdue by age alone."""
        due = evaluate(mileage_rule(), "t1", 41000, 40000, date(2015, 1, 1), NOW)
        assert due.status == Status.OK
        assert due.days_remaining is None


class TestTimeRules:
    """Time-only rules."""

    def test_overdue_by_days(self):
        due = evaluate(time_rule(), "t1", 50000, 0, NOW - timedelta(days=95), NOW)
        assert due.days_remaining == -5
        assert due.status == Status.OVERDUE
        assert due.triggering_dimension == Dimension.TIME
        assert due.reason == "Exceeded time interval by 5 days"

    def test_next_due_date(self):
        due = evaluate(time_rule(), "t1", 50000, 0, date(2025, 3, 1), NOW)
        assert due.next_due_date == date(2025, 5, 30)
        assert due.next_due_mileage is None
        assert due.km_remaining is None

    def test_ignores_mileage(self):
        """A time rule never goes overdue by mileage alone."""
        due = evaluate(time_rule(), "t1", 900000, 0, NOW - timedelta(days=10), NOW)
        assert due.status == Status.OK
        assert due.km_remaining is None


class TestBothRules:
    """Rules tracking mileage and time together."""

    def test_time_triggers_when_mileage_ok(self):
        """3,000 km left is fine, but 2 days left is due."""
        due = evaluate(both_rule(), "t1", 47000, 40000, NOW - timedelta(days=88), NOW)
        assert due.km_remaining == 3000
        assert due.days_remaining == 2
        assert due.status == Status.DUE
        assert due.triggering_dimension == Dimension.TIME
        assert due.reason == "Due in 2 days"

    def test_most_urgent_dimension_wins(self):
        due = evaluate(both_rule(), "t1", 51000, 40000, NOW - timedelta(days=10), NOW)
        assert due.status == Status.OVERDUE
        assert due.triggering_dimension == Dimension.MILEAGE

    def test_tie_goes_to_smaller_fraction(self):
        """Both due: 400/10,000 km beats 5/90 days."""
        due = evaluate(both_rule(), "t1", 49600, 40000, NOW - timedelta(days=85), NOW)
        assert due.status == Status.DUE
        assert due.triggering_dimension == Dimension.MILEAGE
        assert due.urgency == pytest.approx(0.04)

    def test_both_overdue_reason(self):
        due = evaluate(both_rule(), "t1", 51000, 40000, NOW - timedelta(days=100), NOW)
        assert due.reason == "Exceeded mileage interval by 1,000 km and exceeded time interval by 10 days"


class TestThresholds:
    def test_custom_thresholds(self):
        thresholds = Thresholds(due_km=1000, due_days=14, upcoming_km=3000, upcoming_days=60)
        assert evaluate(mileage_rule(), "t1", 49100, 40000, None, NOW, thresholds).status == Status.DUE
        assert evaluate(mileage_rule(), "t1", 47500, 40000, None, NOW, thresholds).status == Status.UPCOMING

    def test_due_above_upcoming_rejected(self):
        with pytest.raises(ValidationError):
            Thresholds(due_km=3000, upcoming_km=2000)

    def test_from_dict_defaults(self):
        thresholds = Thresholds.from_dict({"dueKm": 800})
        assert thresholds.due_km == 800
        assert thresholds.upcoming_days == 30


class TestEvaluateProperties:
    def test_same_inputs_same_result(self):
        first = evaluate(both_rule(), "t1", 49600, 40000, date(2025, 3, 1), NOW)
        second = evaluate(both_rule(), "t1", 49600, 40000, date(2025, 3, 1), NOW)
        assert first == second

    def test_accepts_datetime_now(self):
        due = evaluate(time_rule(), "t1", 0, 0, date(2025, 3, 3), datetime(2025, 6, 1, 15, 30))
        assert due.days_remaining == 0
        assert due.status == Status.OVERDUE

    def test_mileage_below_last_service_is_anomaly(self, caplog):
        with caplog.at_level(logging.WARNING):
            due = evaluate(mileage_rule(), "t1", 39000, 40000, None, NOW)
        assert due.km_remaining == 10000
        assert due.status == Status.OK
        assert "below last service" in due.anomaly
        assert "t1" in caplog.text

    def test_negative_mileage_rejected(self):
        with pytest.raises(ValidationError):
            evaluate(mileage_rule(), "t1", -1, 0, None, NOW)

    def test_missing_mileage_rejected(self):
        with pytest.raises(ValidationError):
            evaluate(mileage_rule(), "t1", None, 0, None, NOW)

    def test_to_dict(self):
        data = evaluate(mileage_rule(), "t1", 51000, 40000, None, NOW).to_dict()
        assert data["status"] == "overdue"
        assert data["triggeringDimension"] == "mileage"
        assert data["kmRemaining"] == -1000
        assert data["nextDueMileage"] == 50000
        assert data["nextDueDate"] is None


class TestEvaluateDueStatus:
    """Evaluation from a vehicle state snapshot."""

    def test_uses_rule_baseline(self):
        state = VehicleMaintenanceState(
            vehicle_id="t1",
            current_mileage=49600,
            registration_date=date(2019, 1, 1),
            baselines={"r-oil": Baseline(40000, date(2025, 1, 1), from_record=True)},
        )
        due = evaluate_due_status(mileage_rule(), state, NOW)
        assert due.last_service_mileage == 40000
        assert due.status == Status.DUE

    def test_falls_back_to_registration(self):
        state = VehicleMaintenanceState(
            vehicle_id="t1",
            current_mileage=12000,
            registration_date=date(2025, 1, 1),
            registration_mileage=2000,
        )
        due = evaluate_due_status(mileage_rule(), state, NOW)
        assert due.last_service_mileage == 2000
        assert due.km_remaining == 0
        assert due.status == Status.OVERDUE


class TestMissingBaselineDate:
    def test_time_rule_without_date_rejected(self):
        with pytest.raises(ValidationError, match="time-based rule r-brakes"):
            evaluate(time_rule(), "t1", 50000, 0, None, NOW)

    def test_both_rule_without_date_rejected(self):
        with pytest.raises(ValidationError):
            evaluate(both_rule(), "t1", 45000, 40000, None, NOW)
