"""
Vehicle fleet tracking models and services.

This package provides:
- VehicleStatus / PartStatus / Priority: status enums (with severity ordering)
- Vehicle, Part, MaintenanceRecord, PartUsage, Alert: fleet entities
- derive_part_status: stock status of a part
- evaluate_vehicle / VehicleStatusValidator: rule-based vehicle status
- validate_all: fleet-wide validation sweep
- get_dashboard_stats: summary counts
- FleetStore: YAML-file entity store
"""

from .status import VehicleStatus, PartStatus, Priority, max_severity
from .vehicle import Vehicle, VehicleType
from .part import Part, PartCategory
from .maintenance_record import MaintenanceRecord, MaintenanceType, PartUsage
from .alert import Alert
from .errors import FleetError, NotFoundError, ValidationInputError, PersistenceError
from .calculations import derive_part_status, days_since, calc_next_due, utc_now
from .validation_result import ValidationResult
from .validator import evaluate_vehicle, VehicleStatusValidator
from .orchestrator import validate_all, FleetValidationReport, VehicleFailure
from .dashboard import get_dashboard_stats, DashboardStats
from .store import FleetStore

__all__ = [
    "VehicleStatus",
    "PartStatus",
    "Priority",
    "max_severity",
    "Vehicle",
    "VehicleType",
    "Part",
    "PartCategory",
    "MaintenanceRecord",
    "MaintenanceType",
    "PartUsage",
    "Alert",
    "FleetError",
    "NotFoundError",
    "ValidationInputError",
    "PersistenceError",
    "derive_part_status",
    "days_since",
    "calc_next_due",
    "utc_now",
    "ValidationResult",
    "evaluate_vehicle",
    "VehicleStatusValidator",
    "validate_all",
    "FleetValidationReport",
    "VehicleFailure",
    "get_dashboard_stats",
    "DashboardStats",
    "FleetStore",
]
