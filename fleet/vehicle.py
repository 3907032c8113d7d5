"""Vehicle class for fleet assets."""

from datetime import datetime
from enum import Enum
from typing import Optional

from .status import VehicleStatus


class VehicleType(Enum):
    CAR = "car"
    VAN = "van"
    TRUCK = "truck"


class Vehicle:
    """A tracked fleet vehicle and its last known operational status."""

    def __init__(
        self,
        plate: str,
        make: str,
        model: str,
        year: int,
        type: VehicleType,
        mileage: int = 0,
        status: VehicleStatus = VehicleStatus.OPERATIONAL,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.plate = plate
        self.make = make
        self.model = model
        self.year = year
        self.type = type
        self.mileage = mileage
        self.status = status
        self.created_at = created_at

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.year} {self.make} {self.model} ({self.plate})"
