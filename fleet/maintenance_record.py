"""Maintenance records and the parts they consumed."""

from datetime import datetime
from enum import Enum
from typing import Optional


class MaintenanceType(Enum):
    OIL_CHANGE = "oil-change"
    INSPECTION = "inspection"
    GENERAL_SERVICE = "general-service"
    REPAIR = "repair"
    UPKEEP = "upkeep"

    @property
    def is_major(self) -> bool:
        """Major services reset the time-based maintenance clock."""
        return self in MAJOR_MAINTENANCE_TYPES


MAJOR_MAINTENANCE_TYPES = frozenset(
    {
        MaintenanceType.OIL_CHANGE,
        MaintenanceType.GENERAL_SERVICE,
        MaintenanceType.INSPECTION,
    }
)

DEFAULT_TECHNICIAN = "System technician"


class MaintenanceRecord:
    """A completed service or repair event for one vehicle."""

    def __init__(
        self,
        vehicle_id: int,
        type: MaintenanceType,
        description: str,
        cost: int = 0,
        duration: int = 60,
        technician: str = DEFAULT_TECHNICIAN,
        completed_at: Optional[datetime] = None,
        next_due: Optional[datetime] = None,
        id: Optional[int] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.type = type
        self.description = description
        self.cost = cost
        self.duration = duration
        self.technician = technician
        self.completed_at = completed_at
        self.next_due = next_due


class PartUsage:
    """Quantity of a part consumed by a maintenance record."""

    def __init__(
        self,
        maintenance_id: int,
        part_id: int,
        quantity: int = 1,
        id: Optional[int] = None,
    ):
        self.id = id
        self.maintenance_id = maintenance_id
        self.part_id = part_id
        self.quantity = quantity
