"""Error types raised and collected by the scheduling engine."""

from dataclasses import dataclass
from typing import Optional


class FleetError(Exception):
    """Base class for maintenance-scheduling errors."""


class ValidationError(FleetError):
    """A rule, record or truck violates its field invariants."""


class NotFoundError(FleetError):
    """A referenced truck, rule or record does not exist."""


class ConflictError(FleetError):
    """A mutation conflicts with the current record state."""


@dataclass
class ItemError:
    """A per-item failure collected during a fleet pass."""

    message: str
    vehicle_id: Optional[str] = None
    rule_id: Optional[str] = None


@dataclass
class DataAnomaly:
    """Non-fatal data inconsistency, e.g. odometer below the last service."""

    vehicle_id: Optional[str]
    rule_id: Optional[str]
    message: str
