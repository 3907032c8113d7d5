#!/usr/bin/env python3
"""Tests for dict conversion of fleet entities."""

from datetime import datetime, timedelta, timezone

import pytest

from fleet import (
    Alert,
    MaintenanceRecord,
    MaintenanceType,
    Part,
    PartCategory,
    Priority,
    Vehicle,
    VehicleStatus,
    VehicleType,
)
from fleet.loader import (
    alert_from_dict,
    alert_to_dict,
    format_timestamp,
    maintenance_record_from_dict,
    maintenance_record_to_dict,
    parse_timestamp,
    part_from_dict,
    part_to_dict,
    vehicle_from_dict,
    vehicle_to_dict,
)
from fleet.maintenance_record import DEFAULT_TECHNICIAN

# =============================================================================
# Timestamps
# =============================================================================


class TestParseTimestamp:
    """Tests for parse_timestamp function."""

    def test_naive_string_is_utc(self):
        assert parse_timestamp("2024-01-08T10:30:00") == datetime(
            2024, 1, 8, 10, 30, tzinfo=timezone.utc
        )

    def test_date_only(self):
        assert parse_timestamp("2024-01-08") == datetime(2024, 1, 8, tzinfo=timezone.utc)

    def test_keeps_offset(self):
        dt = parse_timestamp("2024-01-08T10:30:00+02:00")
        assert dt.utcoffset() == timedelta(hours=2)
        assert dt == datetime(2024, 1, 8, 8, 30, tzinfo=timezone.utc)

    def test_datetime_passthrough(self):
        naive = datetime(2024, 1, 8)
        assert parse_timestamp(naive).tzinfo == timezone.utc

    def test_none(self):
        assert parse_timestamp(None) is None

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_timestamp("next tuesday")

    def test_format_timestamp(self):
        when = datetime(2024, 1, 8, tzinfo=timezone.utc)
        assert format_timestamp(when) == "2024-01-08T00:00:00+00:00"
        assert format_timestamp(None) is None


# =============================================================================
# Entities
# =============================================================================


class TestVehicleDict:
    """Tests for vehicle_from_dict / vehicle_to_dict."""

    def test_from_dict(self):
        vehicle = vehicle_from_dict(
            {
                "id": 3,
                "plate": "DEF-456",
                "make": "Ford",
                "model": "Transit",
                "year": 2018,
                "type": "van",
                "mileage": 156890,
                "status": "in_repair",
                "createdAt": "2024-01-01T00:00:00Z",
            }
        )
        assert vehicle.id == 3
        assert vehicle.type == VehicleType.VAN
        assert vehicle.status == VehicleStatus.IN_REPAIR
        assert vehicle.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert vehicle.name == "2018 Ford Transit (DEF-456)"

    def test_defaults(self):
        vehicle = vehicle_from_dict(
            {"plate": "A", "make": "Ford", "model": "Ka", "year": 2010, "type": "car"}
        )
        assert vehicle.mileage == 0
        assert vehicle.status == VehicleStatus.OPERATIONAL
        assert vehicle.id is None

    def test_to_dict_keys_are_camel_case(self):
        vehicle = Vehicle("A", "Ford", "Ka", 2010, VehicleType.CAR, id=1)
        d = vehicle_to_dict(vehicle)
        assert list(d) == [
            "id",
            "plate",
            "make",
            "model",
            "year",
            "type",
            "mileage",
            "status",
            "createdAt",
        ]
        assert d["status"] == "operational"
        assert d["createdAt"] is None


class TestPartDict:
    """Tests for part_from_dict / part_to_dict."""

    def test_status_only_on_request(self):
        part = Part("Brake pads", "BRK-002-F", PartCategory.BRAKES, 3, 5, 4500, id=2)
        assert "status" not in part_to_dict(part)
        assert part_to_dict(part, with_status=True)["status"] == "low_stock"

    def test_from_dict(self):
        part = part_from_dict(
            {
                "id": 1,
                "name": "Oil filter",
                "reference": "FLT-001-D",
                "category": "filters",
                "stock": 25,
                "minStock": 5,
                "unitPrice": 1250,
            }
        )
        assert part.min_stock == 5
        assert part.unit_price == 1250
        assert part.category == PartCategory.FILTERS


class TestMaintenanceRecordDict:
    """Tests for maintenance record conversion."""

    def test_technician_defaults(self):
        record = maintenance_record_from_dict(
            {"id": 1, "vehicleId": 1, "type": "repair", "description": "Brakes"}
        )
        assert record.technician == DEFAULT_TECHNICIAN
        assert record.duration == 60
        assert record.cost == 0
        assert record.completed_at is None

    def test_to_dict(self):
        record = MaintenanceRecord(
            1,
            MaintenanceType.OIL_CHANGE,
            "Oil",
            6500,
            90,
            "J. Dubois",
            datetime(2024, 1, 8, tzinfo=timezone.utc),
            id=4,
        )
        d = maintenance_record_to_dict(record)
        assert d["vehicleId"] == 1
        assert d["type"] == "oil-change"
        assert d["completedAt"] == "2024-01-08T00:00:00+00:00"
        assert d["nextDue"] is None


class TestAlertDict:
    def test_round_trip_fields(self):
        alert = alert_from_dict(
            {
                "id": 2,
                "vehicleId": 1,
                "type": "overdue",
                "message": "Inspection expired",
                "priority": "urgent",
                "isRead": True,
            }
        )
        assert alert.priority == Priority.URGENT
        assert alert.is_read
        assert not alert.is_urgent_issue
        assert alert_to_dict(alert)["isRead"] is True

    def test_defaults(self):
        alert = alert_from_dict({"vehicleId": 1, "type": "x", "message": "m"})
        assert alert.priority == Priority.MEDIUM
        assert alert.is_read is False

    def test_unread_high_is_urgent_issue(self):
        assert Alert(1, "x", "m", Priority.HIGH).is_urgent_issue
