"""Shared fixtures: an empty store on a temp file and a fixed clock."""

from datetime import datetime, timezone

import pytest

from fleet import FleetStore, Vehicle, VehicleType

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store(tmp_path):
    return FleetStore(tmp_path / "fleet.yaml", clock=lambda: NOW)


@pytest.fixture
def add_vehicle(store):
    """Create a van; keyword arguments override the defaults."""

    def _add(plate="AB-123-CD", **kwargs):
        fields = dict(make="Renault", model="Master", year=2020, type=VehicleType.VAN)
        fields.update(kwargs)
        return store.create_vehicle(Vehicle(plate=plate, **fields))

    return _add
