"""Joined read models returned by the store for detail views."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .alert import Alert
from .loader import (
    alert_to_dict,
    maintenance_record_to_dict,
    part_to_dict,
    part_usage_to_dict,
    vehicle_to_dict,
)
from .maintenance_record import MaintenanceRecord, PartUsage
from .part import Part
from .vehicle import Vehicle


@dataclass
class VehicleDetail:
    """A vehicle with its alerts and most recent maintenance record."""

    vehicle: Vehicle
    alerts: List[Alert] = field(default_factory=list)
    last_maintenance: Optional[MaintenanceRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        d = vehicle_to_dict(self.vehicle)
        d["alerts"] = [alert_to_dict(a) for a in self.alerts]
        if self.last_maintenance is not None:
            d["lastMaintenance"] = maintenance_record_to_dict(self.last_maintenance)
        return d


@dataclass
class MaintenanceDetail:
    """A maintenance record with its vehicle and the parts it used."""

    record: MaintenanceRecord
    vehicle: Vehicle
    parts_used: List[Tuple[PartUsage, Part]] = field(default_factory=list)

    @property
    def parts_cost(self) -> int:
        """Catalogue value of the parts consumed, in minor units."""
        return sum(usage.quantity * part.unit_price for usage, part in self.parts_used)

    def to_dict(self) -> Dict[str, Any]:
        d = maintenance_record_to_dict(self.record)
        d["vehicle"] = vehicle_to_dict(self.vehicle)
        used = []
        for usage, part in self.parts_used:
            usage_dict = part_usage_to_dict(usage)
            usage_dict["part"] = part_to_dict(part)
            used.append(usage_dict)
        d["partsUsed"] = used
        return d
