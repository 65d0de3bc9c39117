"""YAML loading and saving utilities for fleet data."""

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dateutil.parser import isoparse

from .config import Thresholds
from .errors import ValidationError
from .record import MaintenanceRecord, RecordStatus
from .rule import MaintenanceRule
from .truck import Truck


@dataclass
class FleetDocument:
    """Parsed contents of a fleet file."""

    trucks: List[Truck] = field(default_factory=list)
    rules: List[MaintenanceRule] = field(default_factory=list)
    records: List[MaintenanceRecord] = field(default_factory=list)
    thresholds: Thresholds = field(default_factory=Thresholds)


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse an ISO 8601 date or datetime string into a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value)).date()
    except ValueError as e:
        raise ValidationError(f"Invalid date {value!r}: {e}") from e


def parse_record_status(value: Optional[str]) -> RecordStatus:
    try:
        return RecordStatus(value or RecordStatus.PENDING.value)
    except ValueError as e:
        raise ValidationError(f"Invalid record status {value!r}") from e


def _json_default(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not serializable")


def _parse_object(dct: Dict[str, Any]) -> Union[Truck, MaintenanceRule, MaintenanceRecord, FleetDocument, dict]:
    """Parse dictionary into appropriate object type."""
    # Truck
    if "plateNumber" in dct:
        return Truck(
            str(dct["id"]),
            dct["plateNumber"],
            dct.get("brand"),
            dct.get("model"),
            dct.get("year"),
            dct.get("mileage", 0),
            parse_date(dct.get("registrationDate")),
            dct.get("registrationMileage", 0),
            dct.get("status", "available"),
        )
    # Rule
    elif "intervalType" in dct:
        return MaintenanceRule(
            str(dct["id"]),
            dct.get("name"),
            dct.get("category"),
            dct["intervalType"],
            dct.get("intervalMileage"),
            dct.get("intervalDays"),
            dct.get("priority", "medium"),
            dct.get("estimatedCost"),
            dct.get("estimatedDuration"),
            dct.get("isActive", True),
            dct.get("description"),
        )
    # Maintenance record
    elif "vehicleId" in dct:
        return MaintenanceRecord(
            str(dct["id"]),
            str(dct["vehicleId"]),
            dct.get("category"),
            parse_record_status(dct.get("status")),
            str(dct["ruleId"]) if dct.get("ruleId") is not None else None,
            dct.get("description"),
            parse_date(dct.get("scheduledDate")),
            parse_date(dct.get("completedDate")),
            dct.get("mileageAtService"),
            dct.get("cost"),
            dct.get("notes"),
            parse_date(dct.get("createdAt")),
        )
    # Top-level fleet document
    elif "trucks" in dct or "rules" in dct or "records" in dct:
        return FleetDocument(
            trucks=dct.get("trucks") or [],
            rules=dct.get("rules") or [],
            records=dct.get("records") or [],
            thresholds=Thresholds.from_dict(dct.get("settings")),
        )
    else:
        # Return dict as-is for unknown structures (like 'settings')
        return dct


def read_fleet(filename: Union[str, Path]) -> FleetDocument:
    """Load a fleet document from a YAML file."""
    with open(filename, "rb") as fp:
        raw = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    json_data = json.dumps(raw, indent=4, default=_json_default)
    parsed = json.loads(json_data, object_hook=_parse_object)
    if isinstance(parsed, FleetDocument):
        return parsed
    return FleetDocument(thresholds=Thresholds.from_dict(parsed.get("settings")))


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def truck_to_dict(truck: Truck) -> Dict[str, Any]:
    """Serialize a Truck to the YAML dict format (camelCase keys)."""
    d: Dict[str, Any] = {
        "id": truck.id,
        "plateNumber": truck.plate_number,
    }
    if truck.brand is not None:
        d["brand"] = truck.brand
    if truck.model is not None:
        d["model"] = truck.model
    if truck.year is not None:
        d["year"] = truck.year
    d["mileage"] = truck.mileage
    d["registrationDate"] = _iso(truck.registration_date)
    if truck.registration_mileage:
        d["registrationMileage"] = truck.registration_mileage
    d["status"] = truck.status
    return d


def rule_to_dict(rule: MaintenanceRule) -> Dict[str, Any]:
    """Serialize a MaintenanceRule to the YAML dict format (camelCase keys)."""
    d: Dict[str, Any] = {
        "id": rule.id,
        "name": rule.name,
        "category": rule.category,
        "intervalType": rule.interval_type,
    }
    if rule.interval_mileage is not None:
        d["intervalMileage"] = rule.interval_mileage
    if rule.interval_days is not None:
        d["intervalDays"] = rule.interval_days
    d["priority"] = rule.priority
    if rule.estimated_cost is not None:
        d["estimatedCost"] = rule.estimated_cost
    if rule.estimated_duration is not None:
        d["estimatedDuration"] = rule.estimated_duration
    d["isActive"] = rule.is_active
    if rule.description is not None:
        d["description"] = rule.description
    return d


def record_to_dict(record: MaintenanceRecord) -> Dict[str, Any]:
    """Serialize a MaintenanceRecord, omitting None values for cleaner YAML."""
    d: Dict[str, Any] = {
        "id": record.id,
        "vehicleId": record.vehicle_id,
    }
    if record.rule_id is not None:
        d["ruleId"] = record.rule_id
    d["category"] = record.category
    d["status"] = record.status.value
    optional = (
        ("description", record.description),
        ("scheduledDate", _iso(record.scheduled_date)),
        ("completedDate", _iso(record.completed_date)),
        ("mileageAtService", record.mileage_at_service),
        ("cost", record.cost),
        ("notes", record.notes),
        ("createdAt", _iso(record.created_at)),
    )
    for key, value in optional:
        if value is not None:
            d[key] = value
    return d


def fleet_to_dict(document: FleetDocument) -> Dict[str, Any]:
    return {
        "settings": document.thresholds.to_dict(),
        "trucks": [truck_to_dict(t) for t in document.trucks],
        "rules": [rule_to_dict(r) for r in document.rules],
        "records": [record_to_dict(r) for r in document.records],
    }


def write_fleet(filename: Union[str, Path], document: FleetDocument) -> None:
    """
    Write a fleet document to a YAML file, replacing its contents.

    The document is dumped to a temporary file beside the target and moved
    over it, so a failed write leaves the previous file intact.
    """
    path = Path(filename)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as fp:
            yaml.dump(
                fleet_to_dict(document),
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )
        os.replace(tmp_name, path)
    except Exception:
        os.unlink(tmp_name)
        raise


def create_fleet_file(
    filename: Union[str, Path], thresholds: Optional[Thresholds] = None
) -> None:
    """Create an empty fleet file with default or given thresholds."""
    write_fleet(filename, FleetDocument(thresholds=thresholds or Thresholds()))
