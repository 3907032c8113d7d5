#!/usr/bin/env python3
"""Tests for the sample fleet seed."""

from fleet import Alert, VehicleStatus
from fleet.sample_data import seed_sample_data


class TestSeedSampleData:
    """Tests for seed_sample_data."""

    def test_seeds_empty_store(self, store):
        assert seed_sample_data(store) is True
        assert [v.plate for v in store.get_vehicles()] == ["ABC-123", "XYZ-789", "DEF-456"]
        assert [v.status for v in store.get_vehicles()] == [
            VehicleStatus.OPERATIONAL,
            VehicleStatus.MAINTENANCE_DUE,
            VehicleStatus.IN_REPAIR,
        ]
        assert len(store.get_parts()) == 4
        assert len(store.get_maintenance_records()) == 3
        assert len(store.get_alerts()) == 3

    def test_skips_store_with_data(self, store, add_vehicle):
        van = add_vehicle()
        store.create_alert(Alert(van.id, "x", "m"))
        assert seed_sample_data(store) is False
        assert len(store.get_vehicles()) == 1
