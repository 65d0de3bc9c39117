"""Flask JSON API for fleet maintenance scheduling."""

import logging
import os
from datetime import date
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from fleetmaint import (
    ConflictError,
    FleetStore,
    MaintenanceRule,
    NotFoundError,
    RecordFilter,
    RecordStatus,
    ValidationError,
    complete_record,
    evaluate_store,
    open_pending_records,
    schedule_record,
    upcoming_for_vehicle,
)
from fleetmaint.config import get_fleet_file, get_log_level
from fleetmaint.loader import create_fleet_file, parse_date, record_to_dict, rule_to_dict, truck_to_dict
from fleetmaint.schema import validate_rule_payload

logger = logging.getLogger(__name__)


def parse_number(value: Any, field: str) -> Optional[float]:
    """Parse an optional numeric field from a request."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {field} value: {value!r}") from e


def parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.lower() == "true"


def as_of() -> date:
    """Evaluation date from the asOf query parameter, defaulting to today."""
    return parse_date(request.args.get("asOf")) or date.today()


def json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def rule_from_payload(payload: Dict[str, Any], rule_id: Optional[str] = None) -> MaintenanceRule:
    """Validate a camelCase rule payload and build a MaintenanceRule."""
    payload = {k: v for k, v in payload.items() if k != "id"}
    validate_rule_payload(payload)
    return MaintenanceRule(
        id=rule_id,
        name=payload["name"],
        category=payload["category"],
        interval_type=payload["intervalType"],
        interval_mileage=payload.get("intervalMileage"),
        interval_days=payload.get("intervalDays"),
        priority=payload.get("priority", "medium"),
        estimated_cost=payload.get("estimatedCost"),
        estimated_duration=payload.get("estimatedDuration"),
        is_active=payload.get("isActive", True),
        description=payload.get("description"),
    )


def ok(data: Any, status: int = 200, **extra):
    body = {"success": True}
    if isinstance(data, list):
        body["count"] = len(data)
    body["data"] = data
    body.update(extra)
    return jsonify(body), status


def report_errors(report):
    return [
        {"message": e.message, "vehicleId": e.vehicle_id, "ruleId": e.rule_id}
        for e in report.errors
    ]


def create_app(store: Optional[FleetStore] = None) -> Flask:
    """
    Build the Flask app around a fleet store.

    Without a store, the fleet file from FLEET_FILE is loaded (and created
    empty if missing).
    """
    if store is None:
        path = get_fleet_file()
        if not path.exists():
            logger.info("Creating empty fleet file %s", path)
            create_fleet_file(path)
        store = FleetStore.load(path)

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
    app.config["FLEET_STORE"] = store

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    def error_response(e: Exception, status: int):
        return jsonify({"success": False, "error": str(e)}), status

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return error_response(e, 400)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return error_response(e, 404)

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return error_response(e, 409)

    # -------------------------------------------------------------------------
    # Alerts
    # -------------------------------------------------------------------------

    @app.route("/maintenance/alerts/pending")
    def pending_alerts():
        report = evaluate_store(store, as_of())
        return ok([a.to_dict() for a in report.pending], errors=report_errors(report))

    @app.route("/maintenance/alerts/overdue")
    def overdue_alerts():
        report = evaluate_store(store, as_of())
        return ok([a.to_dict() for a in report.overdue], errors=report_errors(report))

    @app.route("/maintenance/alerts/open", methods=["POST"])
    def open_alerts():
        """Explicitly open pending records for everything due or overdue."""
        now = as_of()
        report = evaluate_store(store, now)
        opened = open_pending_records(store, report, now)
        return ok([record_to_dict(r) for r in opened], 201)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    @app.route("/maintenance", methods=["GET"])
    def list_records():
        status = request.args.get("status")
        start = parse_date(request.args.get("startDate"))
        end = parse_date(request.args.get("endDate"))
        try:
            record_status = RecordStatus(status) if status else None
        except ValueError as e:
            raise ValidationError(f"Invalid status {status!r}") from e
        record_filter = RecordFilter(
            status=record_status,
            vehicle_id=request.args.get("vehicleId"),
            category=request.args.get("category"),
            date_range=(start, end) if start or end else None,
        )
        return ok([record_to_dict(r) for r in store.list_records(record_filter)])

    @app.route("/maintenance", methods=["POST"])
    def create_record():
        payload = json_body()
        vehicle_id = payload.get("vehicleId")
        rule_id = payload.get("ruleId")
        if not vehicle_id or not rule_id:
            raise ValidationError("vehicleId and ruleId are required")
        record = schedule_record(
            store,
            str(vehicle_id),
            str(rule_id),
            parse_date(payload.get("scheduledDate")),
            date.today(),
            description=payload.get("description"),
            cost=parse_number(payload.get("cost"), "cost"),
            notes=payload.get("notes"),
        )
        return ok(record_to_dict(record), 201)

    @app.route("/maintenance/<record_id>", methods=["GET"])
    def get_record(record_id: str):
        return ok(record_to_dict(store.get_record(record_id)))

    @app.route("/maintenance/<record_id>/complete", methods=["PATCH"])
    def complete(record_id: str):
        payload = json_body()
        record = complete_record(
            store,
            record_id,
            date.today(),
            mileage_at_service=parse_number(payload.get("mileageAtService"), "mileageAtService"),
            completed_date=parse_date(payload.get("completedDate")),
            cost=parse_number(payload.get("cost"), "cost"),
            notes=payload.get("notes"),
        )
        return ok(record_to_dict(record))

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    @app.route("/maintenance-rules", methods=["GET"])
    def list_rules():
        rules = store.list_rules(
            category=request.args.get("category"),
            is_active=parse_bool(request.args.get("isActive")),
        )
        return ok([rule_to_dict(r) for r in rules])

    @app.route("/maintenance-rules", methods=["POST"])
    def create_rule():
        rule = store.create_rule(rule_from_payload(json_body()))
        return ok(rule_to_dict(rule), 201)

    @app.route("/maintenance-rules/dashboard")
    def dashboard():
        report = evaluate_store(store, as_of())
        return ok(report.summary["vehicles"], summary=report.summary)

    @app.route("/maintenance-rules/<rule_id>", methods=["GET"])
    def get_rule(rule_id: str):
        return ok(rule_to_dict(store.get_rule(rule_id)))

    @app.route("/maintenance-rules/<rule_id>", methods=["PUT"])
    def update_rule(rule_id: str):
        merged = rule_to_dict(store.get_rule(rule_id))
        merged.update(json_body())
        rule = store.update_rule(rule_id, rule_from_payload(merged, rule_id))
        return ok(rule_to_dict(rule))

    @app.route("/maintenance-rules/<rule_id>", methods=["DELETE"])
    def delete_rule(rule_id: str):
        store.delete_rule(rule_id)
        return ok({})

    # -------------------------------------------------------------------------
    # Trucks
    # -------------------------------------------------------------------------

    @app.route("/trucks/<truck_id>/upcoming-maintenance")
    def upcoming_maintenance(truck_id: str):
        truck = store.get_truck(truck_id)
        state = store.get_vehicle_state(truck_id)
        alerts = upcoming_for_vehicle(store.list_active_rules(), state, as_of(), store.thresholds)
        return ok([a.to_dict() for a in alerts], truck=truck_to_dict(truck))

    @app.route("/trucks/<truck_id>/mileage", methods=["PATCH"])
    def update_mileage(truck_id: str):
        mileage = parse_number(json_body().get("mileage"), "mileage")
        if mileage is None:
            raise ValidationError("mileage is required")
        truck = store.update_mileage(truck_id, mileage)
        return ok(truck_to_dict(truck))

    return app


if __name__ == "__main__":
    logging.basicConfig(level=get_log_level())
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
