"""Part class for spare-parts inventory."""

from datetime import datetime
from enum import Enum
from typing import Optional

from .calculations import derive_part_status
from .status import PartStatus


class PartCategory(Enum):
    ENGINE = "engine"
    BRAKES = "brakes"
    FILTERS = "filters"
    TYRES = "tyres"
    BODY = "body"
    ELECTRICAL = "electrical"


class Part:
    """An inventory item. Prices are in minor currency units (cents)."""

    def __init__(
        self,
        name: str,
        reference: str,
        category: PartCategory,
        stock: int = 0,
        min_stock: int = 5,
        unit_price: int = 0,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.reference = reference
        self.category = category
        self.stock = stock
        self.min_stock = min_stock
        self.unit_price = unit_price
        self.created_at = created_at

    @property
    def status(self) -> PartStatus:
        """Stock status, recomputed on every read."""
        return derive_part_status(self.stock, self.min_stock)
