"""Dashboard summary counts."""

from dataclasses import dataclass
from typing import Any, Dict

from .calculations import derive_part_status
from .status import PartStatus, VehicleStatus


@dataclass
class DashboardStats:
    total_vehicles: int = 0
    operational: int = 0
    maintenance_due: int = 0
    in_repair: int = 0
    total_parts: int = 0
    parts_in_stock: int = 0
    parts_low_stock: int = 0
    parts_out_of_stock: int = 0
    unread_alerts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalVehicles": self.total_vehicles,
            "operational": self.operational,
            "maintenanceDue": self.maintenance_due,
            "inRepair": self.in_repair,
            "totalParts": self.total_parts,
            "partsInStock": self.parts_in_stock,
            "partsLowStock": self.parts_low_stock,
            "partsOutOfStock": self.parts_out_of_stock,
            "unreadAlerts": self.unread_alerts,
        }


def get_dashboard_stats(store) -> DashboardStats:
    """
    Count vehicles by stored status, parts by derived stock status and
    unread alerts. Read-only.
    """
    vehicles = store.get_vehicles()
    parts = store.get_parts()
    alerts = store.get_alerts()

    vehicle_counts = {status: 0 for status in VehicleStatus}
    for vehicle in vehicles:
        vehicle_counts[vehicle.status] += 1

    part_counts = {status: 0 for status in PartStatus}
    for part in parts:
        part_counts[derive_part_status(part.stock, part.min_stock)] += 1

    return DashboardStats(
        total_vehicles=len(vehicles),
        operational=vehicle_counts[VehicleStatus.OPERATIONAL],
        maintenance_due=vehicle_counts[VehicleStatus.MAINTENANCE_DUE],
        in_repair=vehicle_counts[VehicleStatus.IN_REPAIR],
        total_parts=len(parts),
        parts_in_stock=part_counts[PartStatus.IN_STOCK],
        parts_low_stock=part_counts[PartStatus.LOW_STOCK],
        parts_out_of_stock=part_counts[PartStatus.OUT_OF_STOCK],
        unread_alerts=sum(1 for a in alerts if not a.is_read),
    )
