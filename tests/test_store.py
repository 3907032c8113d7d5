#!/usr/bin/env python3
"""Tests for the YAML-file fleet store."""

import threading
from datetime import datetime, timezone

import pytest
import yaml

from fleet import (
    Alert,
    FleetStore,
    MaintenanceRecord,
    MaintenanceType,
    NotFoundError,
    Part,
    PartCategory,
    PartStatus,
    PartUsage,
    PersistenceError,
    Priority,
    ValidationInputError,
    VehicleStatus,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_record(vehicle_id, type=MaintenanceType.OIL_CHANGE, completed_at=None):
    return MaintenanceRecord(
        vehicle_id=vehicle_id,
        type=type,
        description="Engine oil and filter",
        cost=6500,
        completed_at=completed_at,
    )


# =============================================================================
# Raw file handling
# =============================================================================


class TestFileHandling:
    """Tests for loading and writing the data file."""

    def test_missing_file_is_empty(self, store):
        assert store.is_empty()
        assert store.get_vehicles() == []

    def test_blank_collections_are_empty(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        path.write_text("vehicles:\nparts:\n")
        assert FleetStore(path).get_parts() == []

    def test_corrupt_yaml(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        path.write_text("vehicles: [unclosed\n")
        with pytest.raises(PersistenceError):
            FleetStore(path).get_vehicles()

    def test_orphaned_record_in_joined_read(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        path.write_text(
            "vehicles: []\n"
            "maintenanceRecords:\n"
            "  - {id: 1, vehicleId: 3, type: repair, description: x, cost: 0,\n"
            "     duration: 60, technician: T}\n"
        )
        with pytest.raises(PersistenceError, match="refers to missing vehicle 3"):
            FleetStore(path).get_maintenance_records_with_parts()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(PersistenceError):
            FleetStore(path).get_vehicles()

    def test_unwritable_path(self, tmp_path):
        store = FleetStore(tmp_path / "missing-dir" / "fleet.yaml")
        with pytest.raises(PersistenceError):
            store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS))

    def test_written_file_uses_camel_case(self, store, add_vehicle):
        vehicle = add_vehicle()
        store.create_maintenance_record(make_record(vehicle.id))
        data = yaml.safe_load(store.path.read_text())
        assert set(data) == {"vehicles", "parts", "maintenanceRecords", "partUsage", "alerts"}
        record = data["maintenanceRecords"][0]
        assert record["vehicleId"] == vehicle.id
        assert record["completedAt"] == "2024-06-01T12:00:00+00:00"


# =============================================================================
# Vehicles
# =============================================================================


class TestVehicles:
    """Tests for vehicle CRUD."""

    def test_create_assigns_id_and_created_at(self, store, add_vehicle):
        first = add_vehicle(plate="A")
        second = add_vehicle(plate="B")
        assert (first.id, second.id) == (1, 2)
        assert store.get_vehicle(1).created_at == NOW

    def test_duplicate_plate_rejected(self, add_vehicle):
        add_vehicle(plate="A")
        with pytest.raises(ValidationInputError):
            add_vehicle(plate="A")

    def test_get_missing(self, store):
        with pytest.raises(NotFoundError) as exc:
            store.get_vehicle(7)
        assert str(exc.value) == "Vehicle 7 not found"

    def test_update_only_given_fields(self, store, add_vehicle):
        vehicle = add_vehicle(mileage=1000)
        store.update_vehicle(vehicle.id, status=VehicleStatus.IN_REPAIR)
        stored = store.get_vehicle(vehicle.id)
        assert stored.status == VehicleStatus.IN_REPAIR
        assert stored.mileage == 1000

    def test_update_unknown_field(self, store, add_vehicle):
        vehicle = add_vehicle()
        with pytest.raises(ValidationInputError) as exc:
            store.update_vehicle(vehicle.id, colour="red")
        assert exc.value.errors == ["Unknown field 'colour'"]

    def test_update_to_taken_plate(self, store, add_vehicle):
        add_vehicle(plate="A")
        second = add_vehicle(plate="B")
        with pytest.raises(ValidationInputError):
            store.update_vehicle(second.id, plate="A")

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update_vehicle(3, mileage=10)

    def test_delete_cascades(self, store, add_vehicle):
        van = add_vehicle(plate="A")
        other = add_vehicle(plate="B")
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS, 10))
        store.create_maintenance_record(make_record(van.id), [(part.id, 1)])
        kept = store.create_maintenance_record(make_record(other.id), [(part.id, 2)])
        store.create_alert(Alert(van.id, "x", "gone"))
        store.create_alert(Alert(other.id, "x", "kept"))

        store.delete_vehicle(van.id)

        assert [v.id for v in store.get_vehicles()] == [other.id]
        assert [r.id for r in store.get_maintenance_records()] == [kept.id]
        assert [u.quantity for u, _ in store.get_part_usage(kept.id)] == [2]
        assert [a.message for a in store.get_alerts()] == ["kept"]
        assert store.get_part(part.id).name == "Oil filter"

    def test_detail(self, store, add_vehicle):
        van = add_vehicle()
        store.create_maintenance_record(
            make_record(van.id, completed_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        )
        latest = store.create_maintenance_record(
            make_record(van.id, completed_at=datetime(2024, 3, 1, tzinfo=timezone.utc))
        )
        store.create_alert(Alert(van.id, "x", "check tyres", Priority.HIGH))

        detail = store.get_vehicle_detail(van.id)
        assert detail.last_maintenance.id == latest.id
        d = detail.to_dict()
        assert d["plate"] == van.plate
        assert [a["message"] for a in d["alerts"]] == ["check tyres"]
        assert d["lastMaintenance"]["id"] == latest.id

    def test_detail_without_maintenance(self, store, add_vehicle):
        van = add_vehicle()
        assert "lastMaintenance" not in store.get_vehicle_detail(van.id).to_dict()


# =============================================================================
# Parts
# =============================================================================


class TestParts:
    """Tests for part CRUD."""

    def test_parts_with_status(self, store):
        store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS, 25, 5, 1250))
        store.create_part(Part("Battery", "E1", PartCategory.ELECTRICAL, 0, 2, 8500))
        assert [p["status"] for p in store.get_parts_with_status()] == [
            "in_stock",
            "out_of_stock",
        ]

    def test_status_is_not_stored(self, store):
        store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS, 25, 5))
        data = yaml.safe_load(store.path.read_text())
        assert "status" not in data["parts"][0]

    def test_update_changes_status(self, store):
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS, 25, 5))
        updated = store.update_part(part.id, stock=4)
        assert updated.status == PartStatus.LOW_STOCK

    def test_duplicate_reference(self, store):
        store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS))
        with pytest.raises(ValidationInputError):
            store.create_part(Part("Other filter", "F1", PartCategory.FILTERS))

    def test_delete_unused(self, store):
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS))
        store.delete_part(part.id)
        assert store.get_parts() == []

    def test_delete_used_part_rejected(self, store, add_vehicle):
        van = add_vehicle()
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS))
        store.create_maintenance_record(make_record(van.id), [(part.id, 1)])
        with pytest.raises(ValidationInputError):
            store.delete_part(part.id)

    def test_delete_missing(self, store):
        with pytest.raises(NotFoundError):
            store.delete_part(1)


# =============================================================================
# Maintenance records and part usage
# =============================================================================


class TestMaintenanceRecords:
    """Tests for maintenance record CRUD."""

    def test_completed_at_defaults_to_now(self, store, add_vehicle):
        van = add_vehicle()
        record = store.create_maintenance_record(make_record(van.id))
        assert record.completed_at == NOW
        assert store.get_maintenance_record(record.id).completed_at == NOW

    def test_unknown_vehicle(self, store):
        with pytest.raises(NotFoundError):
            store.create_maintenance_record(make_record(5))

    def test_unknown_part_writes_nothing(self, store, add_vehicle):
        van = add_vehicle()
        with pytest.raises(NotFoundError):
            store.create_maintenance_record(make_record(van.id), [(9, 1)])
        assert store.get_maintenance_records() == []

    def test_parts_used(self, store, add_vehicle):
        van = add_vehicle()
        filt = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS, 10, 2, 1250))
        pads = store.create_part(Part("Brake pads", "B1", PartCategory.BRAKES, 10, 2, 4500))
        record = store.create_maintenance_record(make_record(van.id), [(filt.id, 1), (pads.id, 2)])

        used = store.get_part_usage(record.id)
        assert [(u.part_id, u.quantity) for u, _ in used] == [(filt.id, 1), (pads.id, 2)]
        assert [p.reference for _, p in used] == ["F1", "B1"]

        detail = store.get_maintenance_records_with_parts()[0]
        assert detail.vehicle.id == van.id
        assert detail.parts_cost == 1250 + 2 * 4500
        d = detail.to_dict()
        assert d["vehicle"]["plate"] == van.plate
        assert d["partsUsed"][1]["part"]["reference"] == "B1"

    def test_stock_not_decremented(self, store, add_vehicle):
        van = add_vehicle()
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS, 10))
        store.create_maintenance_record(make_record(van.id), [(part.id, 3)])
        assert store.get_part(part.id).stock == 10

    def test_by_vehicle(self, store, add_vehicle):
        a = add_vehicle(plate="A")
        b = add_vehicle(plate="B")
        store.create_maintenance_record(make_record(a.id))
        store.create_maintenance_record(make_record(b.id))
        assert [r.vehicle_id for r in store.get_maintenance_records_by_vehicle(b.id)] == [b.id]

    def test_update(self, store, add_vehicle):
        van = add_vehicle()
        record = store.create_maintenance_record(make_record(van.id))
        updated = store.update_maintenance_record(record.id, cost=9900, technician="M. Martin")
        assert updated.cost == 9900
        assert store.get_maintenance_record(record.id).technician == "M. Martin"

    def test_update_to_unknown_vehicle(self, store, add_vehicle):
        van = add_vehicle()
        record = store.create_maintenance_record(make_record(van.id))
        with pytest.raises(NotFoundError):
            store.update_maintenance_record(record.id, vehicle_id=42)

    def test_delete_cascades_usage(self, store, add_vehicle):
        van = add_vehicle()
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS))
        record = store.create_maintenance_record(make_record(van.id), [(part.id, 1)])
        store.delete_maintenance_record(record.id)
        assert store.get_part_usage(record.id) == []
        store.delete_part(part.id)

    def test_create_part_usage(self, store, add_vehicle):
        van = add_vehicle()
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS))
        record = store.create_maintenance_record(make_record(van.id))
        usage = store.create_part_usage(PartUsage(record.id, part.id, 4))
        assert usage.id == 1
        with pytest.raises(NotFoundError):
            store.create_part_usage(PartUsage(99, part.id))


# =============================================================================
# Alerts
# =============================================================================


class TestAlerts:
    """Tests for alert operations."""

    def test_create_requires_vehicle(self, store):
        with pytest.raises(NotFoundError):
            store.create_alert(Alert(1, "x", "m"))

    def test_mark_as_read(self, store, add_vehicle):
        van = add_vehicle()
        alert = store.create_alert(Alert(van.id, "x", "m", Priority.URGENT))
        assert alert.created_at == NOW
        assert store.mark_alert_as_read(alert.id).is_read
        assert store.get_alerts()[0].is_read

    def test_delete(self, store, add_vehicle):
        van = add_vehicle()
        alert = store.create_alert(Alert(van.id, "x", "m"))
        store.delete_alert(alert.id)
        assert store.get_alerts_by_vehicle(van.id) == []
        with pytest.raises(NotFoundError):
            store.delete_alert(alert.id)


# =============================================================================
# Locking
# =============================================================================


class TestLocking:
    def test_vehicle_lock_is_reentrant(self, store, add_vehicle):
        van = add_vehicle()
        with store.vehicle_lock(van.id):
            store.update_vehicle(van.id, mileage=5)
        assert store.get_vehicle(van.id).mileage == 5

    def test_concurrent_creates_keep_every_row(self, store, add_vehicle):
        van = add_vehicle()

        def raise_alerts():
            for i in range(10):
                store.create_alert(Alert(van.id, "x", f"m{i}"))

        threads = [threading.Thread(target=raise_alerts) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        alerts = store.get_alerts()
        assert len(alerts) == 40
        assert len({a.id for a in alerts}) == 40

    @pytest.fixture
    def van_history(self, store, add_vehicle):
        """A van with one record, one part usage and one alert."""
        van = add_vehicle()
        part = store.create_part(Part("Oil filter", "F1", PartCategory.FILTERS))
        record = store.create_maintenance_record(make_record(van.id))
        alert = store.create_alert(Alert(van.id, "x", "m", Priority.URGENT))
        return van, part, record, alert

    @pytest.mark.parametrize(
        "edit",
        [
            lambda s, part, record, alert: s.update_maintenance_record(record.id, cost=1),
            lambda s, part, record, alert: s.delete_maintenance_record(record.id),
            lambda s, part, record, alert: s.create_part_usage(PartUsage(record.id, part.id)),
            lambda s, part, record, alert: s.create_alert(Alert(record.vehicle_id, "y", "m")),
            lambda s, part, record, alert: s.mark_alert_as_read(alert.id),
            lambda s, part, record, alert: s.delete_alert(alert.id),
        ],
        ids=[
            "update-record",
            "delete-record",
            "create-usage",
            "create-alert",
            "mark-read",
            "delete-alert",
        ],
    )
    def test_edits_wait_for_vehicle_lock(self, store, van_history, edit):
        van, part, record, alert = van_history
        worker = threading.Thread(target=edit, args=(store, part, record, alert))
        with store.vehicle_lock(van.id):
            worker.start()
            worker.join(timeout=0.2)
            assert worker.is_alive()
        worker.join(timeout=5)
        assert not worker.is_alive()

    def test_moving_record_waits_for_new_vehicle(self, store, van_history, add_vehicle):
        _, _, record, _ = van_history
        other = add_vehicle(plate="ZZ-999-ZZ")
        worker = threading.Thread(
            target=store.update_maintenance_record,
            args=(record.id,),
            kwargs={"vehicle_id": other.id},
        )
        with store.vehicle_lock(other.id):
            worker.start()
            worker.join(timeout=0.2)
            assert worker.is_alive()
        worker.join(timeout=5)
        assert store.get_maintenance_record(record.id).vehicle_id == other.id
