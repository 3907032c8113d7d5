"""Conversion between fleet entities and their camelCase dict form.

The same dict form is used in the YAML data file and in JSON responses.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from dateutil.parser import isoparse

from .alert import Alert
from .maintenance_record import (
    DEFAULT_TECHNICIAN,
    MaintenanceRecord,
    MaintenanceType,
    PartUsage,
)
from .part import Part, PartCategory
from .status import Priority, VehicleStatus
from .vehicle import Vehicle, VehicleType


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 value into an aware datetime (naive means UTC)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# Vehicles
# =============================================================================


def vehicle_from_dict(dct: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        dct["plate"],
        dct["make"],
        dct["model"],
        dct["year"],
        VehicleType(dct["type"]),
        dct.get("mileage", 0),
        VehicleStatus(dct.get("status", VehicleStatus.OPERATIONAL.value)),
        dct.get("id"),
        parse_timestamp(dct.get("createdAt")),
    )


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    """Serialize a Vehicle to the dict format (camelCase keys)."""
    return {
        "id": vehicle.id,
        "plate": vehicle.plate,
        "make": vehicle.make,
        "model": vehicle.model,
        "year": vehicle.year,
        "type": vehicle.type.value,
        "mileage": vehicle.mileage,
        "status": vehicle.status.value,
        "createdAt": format_timestamp(vehicle.created_at),
    }


# =============================================================================
# Parts
# =============================================================================


def part_from_dict(dct: Dict[str, Any]) -> Part:
    return Part(
        dct["name"],
        dct["reference"],
        PartCategory(dct["category"]),
        dct.get("stock", 0),
        dct.get("minStock", 5),
        dct.get("unitPrice", 0),
        dct.get("id"),
        parse_timestamp(dct.get("createdAt")),
    )


def part_to_dict(part: Part, with_status: bool = False) -> Dict[str, Any]:
    """
    Serialize a Part to the dict format (camelCase keys).

    The derived stock status is only included on request; it is never
    written to the data file.
    """
    d: Dict[str, Any] = {
        "id": part.id,
        "name": part.name,
        "reference": part.reference,
        "category": part.category.value,
        "stock": part.stock,
        "minStock": part.min_stock,
        "unitPrice": part.unit_price,
        "createdAt": format_timestamp(part.created_at),
    }
    if with_status:
        d["status"] = part.status.value
    return d


# =============================================================================
# Maintenance records and part usage
# =============================================================================


def maintenance_record_from_dict(dct: Dict[str, Any]) -> MaintenanceRecord:
    return MaintenanceRecord(
        dct["vehicleId"],
        MaintenanceType(dct["type"]),
        dct["description"],
        dct.get("cost", 0),
        dct.get("duration", 60),
        dct.get("technician", DEFAULT_TECHNICIAN),
        parse_timestamp(dct.get("completedAt")),
        parse_timestamp(dct.get("nextDue")),
        dct.get("id"),
    )


def maintenance_record_to_dict(record: MaintenanceRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "vehicleId": record.vehicle_id,
        "type": record.type.value,
        "description": record.description,
        "cost": record.cost,
        "duration": record.duration,
        "technician": record.technician,
        "completedAt": format_timestamp(record.completed_at),
        "nextDue": format_timestamp(record.next_due),
    }


def part_usage_from_dict(dct: Dict[str, Any]) -> PartUsage:
    return PartUsage(
        dct["maintenanceId"],
        dct["partId"],
        dct.get("quantity", 1),
        dct.get("id"),
    )


def part_usage_to_dict(usage: PartUsage) -> Dict[str, Any]:
    return {
        "id": usage.id,
        "maintenanceId": usage.maintenance_id,
        "partId": usage.part_id,
        "quantity": usage.quantity,
    }


# =============================================================================
# Alerts
# =============================================================================


def alert_from_dict(dct: Dict[str, Any]) -> Alert:
    return Alert(
        dct["vehicleId"],
        dct["type"],
        dct["message"],
        Priority(dct.get("priority", Priority.MEDIUM.value)),
        dct.get("isRead", False),
        dct.get("id"),
        parse_timestamp(dct.get("createdAt")),
    )


def alert_to_dict(alert: Alert) -> Dict[str, Any]:
    return {
        "id": alert.id,
        "vehicleId": alert.vehicle_id,
        "type": alert.type,
        "message": alert.message,
        "priority": alert.priority.value,
        "isRead": alert.is_read,
        "createdAt": format_timestamp(alert.created_at),
    }
