"""
Fleet maintenance scheduling.

This package provides the maintenance-scheduling engine for a truck fleet:
- MaintenanceRule: interval definitions keyed off mileage, time, or both
- MaintenanceRecord: one scheduled/pending/completed occurrence
- evaluate / evaluate_due_status: rule + truck state -> DueStatus
- evaluate_fleet: active rules x trucks -> pending/overdue lists and summary
- lifecycle: scheduling, opening and completing records
- FleetStore: YAML-backed store implementing the data sources
"""

from .status import Status, Dimension
from .errors import (
    FleetError,
    ValidationError,
    NotFoundError,
    ConflictError,
    ItemError,
    DataAnomaly,
)
from .config import Thresholds
from .rule import MaintenanceRule
from .truck import Truck
from .record import MaintenanceRecord, RecordStatus, RecordFilter
from .due_status import DueStatus
from .vehicle_state import Baseline, VehicleMaintenanceState, build_vehicle_state
from .evaluator import evaluate, evaluate_due_status
from .scheduler import Alert, FleetReport, evaluate_fleet, evaluate_store, upcoming_for_vehicle
from .lifecycle import schedule_record, open_pending_record, open_pending_records, complete_record
from .loader import FleetDocument, read_fleet, write_fleet, create_fleet_file
from .store import FleetStore

__all__ = [
    "Status",
    "Dimension",
    "FleetError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ItemError",
    "DataAnomaly",
    "Thresholds",
    "MaintenanceRule",
    "Truck",
    "MaintenanceRecord",
    "RecordStatus",
    "RecordFilter",
    "DueStatus",
    "Baseline",
    "VehicleMaintenanceState",
    "build_vehicle_state",
    "evaluate",
    "evaluate_due_status",
    "Alert",
    "FleetReport",
    "evaluate_fleet",
    "evaluate_store",
    "upcoming_for_vehicle",
    "schedule_record",
    "open_pending_record",
    "open_pending_records",
    "complete_record",
    "FleetDocument",
    "read_fleet",
    "write_fleet",
    "create_fleet_file",
    "FleetStore",
]
