"""Status enums for vehicles, parts and alerts."""

from enum import Enum


class VehicleStatus(Enum):
    """Operational state of a vehicle. Higher severity = more urgent."""

    OPERATIONAL = "operational"
    MAINTENANCE_DUE = "maintenance_due"
    IN_REPAIR = "in_repair"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    VehicleStatus.OPERATIONAL: 0,
    VehicleStatus.MAINTENANCE_DUE: 1,
    VehicleStatus.IN_REPAIR: 2,
}


def max_severity(*statuses: VehicleStatus) -> VehicleStatus:
    """Return the most severe of the given statuses (OPERATIONAL if none)."""
    if not statuses:
        return VehicleStatus.OPERATIONAL
    return max(statuses, key=lambda s: s.severity)


class PartStatus(Enum):
    """Stock level of a part, derived from stock and min_stock."""

    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class Priority(Enum):
    """Alert priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def is_pressing(self) -> bool:
        """High and urgent alerts count as urgent issues when unread."""
        return self in (Priority.HIGH, Priority.URGENT)
