"""Sample fleet used to populate an empty data file."""

import logging
from datetime import datetime, timezone

from .alert import Alert
from .maintenance_record import MaintenanceRecord, MaintenanceType
from .part import Part, PartCategory
from .status import Priority, VehicleStatus
from .vehicle import Vehicle, VehicleType

logger = logging.getLogger(__name__)


def seed_sample_data(store) -> bool:
    """
    Insert three vans, four parts, three maintenance records and three
    alerts. Does nothing (returns False) when the store already has data.
    """
    if not store.is_empty():
        logger.info("Sample data skipped: %s already has data", store.path)
        return False

    vans = [
        store.create_vehicle(
            Vehicle("ABC-123", "Renault", "Master", 2020, VehicleType.VAN, 125430)
        ),
        store.create_vehicle(
            Vehicle(
                "XYZ-789",
                "Peugeot",
                "Partner",
                2019,
                VehicleType.VAN,
                89750,
                VehicleStatus.MAINTENANCE_DUE,
            )
        ),
        store.create_vehicle(
            Vehicle(
                "DEF-456",
                "Ford",
                "Transit",
                2018,
                VehicleType.VAN,
                156890,
                VehicleStatus.IN_REPAIR,
            )
        ),
    ]

    for part in [
        Part("Oil filter", "FLT-001-D", PartCategory.FILTERS, 25, 5, 1250),
        Part("Brake pads", "BRK-002-F", PartCategory.BRAKES, 3, 5, 4500),
        Part("12V battery", "BAT-003-70", PartCategory.ENGINE, 0, 2, 8500),
        Part("Tyre 215/75 R16", "TYR-004-16", PartCategory.TYRES, 8, 4, 12000),
    ]:
        store.create_part(part)

    store.create_maintenance_record(
        MaintenanceRecord(
            vans[0].id,
            MaintenanceType.OIL_CHANGE,
            "Engine oil and filter change",
            6500,
            90,
            "J. Dubois",
            datetime(2024, 1, 8, tzinfo=timezone.utc),
            datetime(2024, 7, 8, tzinfo=timezone.utc),
        )
    )
    store.create_maintenance_record(
        MaintenanceRecord(
            vans[1].id,
            MaintenanceType.REPAIR,
            "Brake pad replacement",
            12000,
            165,
            "M. Martin",
            datetime(2024, 1, 5, tzinfo=timezone.utc),
        )
    )
    store.create_maintenance_record(
        MaintenanceRecord(
            vans[2].id,
            MaintenanceType.INSPECTION,
            "Periodic technical inspection",
            7800,
            60,
            "Auto Control+",
            datetime(2023, 12, 22, tzinfo=timezone.utc),
            datetime(2024, 12, 22, tzinfo=timezone.utc),
        )
    )

    store.create_alert(
        Alert(vans[0].id, "maintenance-due", "Oil change due in 7 days", Priority.MEDIUM)
    )
    store.create_alert(
        Alert(
            vans[1].id, "overdue", "Technical inspection expired 3 days ago", Priority.URGENT
        )
    )
    store.create_alert(
        Alert(vans[2].id, "inspection-needed", "Brake pads need checking", Priority.HIGH)
    )
    logger.info("Seeded sample fleet into %s", store.path)
    return True
