"""YAML-file entity store for vehicles, parts, maintenance records and alerts.

Every operation loads the raw YAML, works on the camelCase dicts and, for
mutations, writes the whole document back. The store is the only place that
touches the data file.
"""

import logging
import threading
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import yaml

from .alert import Alert
from .calculations import utc_now
from .details import MaintenanceDetail, VehicleDetail
from .errors import NotFoundError, PersistenceError, ValidationInputError
from .loader import (
    alert_from_dict,
    alert_to_dict,
    maintenance_record_from_dict,
    maintenance_record_to_dict,
    part_from_dict,
    part_to_dict,
    part_usage_from_dict,
    part_usage_to_dict,
    vehicle_from_dict,
    vehicle_to_dict,
)
from .maintenance_record import MaintenanceRecord, PartUsage
from .part import Part
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

COLLECTIONS = ("vehicles", "parts", "maintenanceRecords", "partUsage", "alerts")

VEHICLE_FIELDS = frozenset({"plate", "make", "model", "year", "type", "mileage", "status"})
PART_FIELDS = frozenset(
    {"name", "reference", "category", "stock", "min_stock", "unit_price"}
)
MAINTENANCE_FIELDS = frozenset(
    {
        "vehicle_id",
        "type",
        "description",
        "cost",
        "duration",
        "technician",
        "completed_at",
        "next_due",
    }
)


def _apply_changes(entity: Any, changes: Dict[str, Any], allowed: frozenset) -> None:
    """Set attributes on an entity, rejecting fields that cannot be edited."""
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationInputError([f"Unknown field '{key}'" for key in unknown])
    for key, value in changes.items():
        setattr(entity, key, value)


def _next_id(rows: List[Dict[str, Any]]) -> int:
    return max((row["id"] for row in rows), default=0) + 1


class FleetStore:
    """CRUD access to a fleet YAML data file."""

    def __init__(
        self,
        path: Union[str, Path],
        clock: Callable[[], Any] = utc_now,
    ):
        self.path = Path(path)
        self.clock = clock
        self._lock = threading.RLock()
        self._vehicle_locks: Dict[int, Any] = {}
        self._vehicle_locks_guard = threading.Lock()

    # =========================================================================
    # Locking and raw file access
    # =========================================================================

    @contextmanager
    def vehicle_lock(self, vehicle_id: int) -> Iterator[None]:
        """
        Serialize work on one vehicle.

        Re-entrant, so a validation holding the lock can still call the
        store's own vehicle mutations. Must not be acquired while holding
        the file lock.
        """
        with self._vehicle_locks_guard:
            lock = self._vehicle_locks.setdefault(vehicle_id, threading.RLock())
        with lock:
            yield

    @contextmanager
    def _vehicles_locked(self, vehicle_ids: Iterable[int]) -> Iterator[None]:
        """Hold several vehicle locks, always taken in ascending id order."""
        with ExitStack() as stack:
            for vehicle_id in sorted(set(vehicle_ids)):
                stack.enter_context(self.vehicle_lock(vehicle_id))
            yield

    def _owner_of(self, collection: str, entity_id: int, kind: str) -> int:
        with self._lock:
            rows = self._load_raw()[collection]
            return rows[self._index_of(rows, entity_id, kind)]["vehicleId"]

    @contextmanager
    def _owner_lock(
        self, collection: str, entity_id: int, kind: str, *extra_ids: int
    ) -> Iterator[int]:
        """
        Hold the lock of the vehicle owning a row (plus any extra vehicles).

        The owner is looked up again once its lock is held; if the row moved
        to another vehicle in between, the locks are dropped and retaken.
        """
        while True:
            owner = self._owner_of(collection, entity_id, kind)
            with self._vehicles_locked((owner,) + extra_ids):
                if self._owner_of(collection, entity_id, kind) == owner:
                    yield owner
                    return

    def _load_raw(self) -> Dict[str, List[Dict[str, Any]]]:
        """Load the raw YAML data (not parsed into objects)."""
        if not self.path.exists():
            return {name: [] for name in COLLECTIONS}
        try:
            with open(self.path, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader)
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not contain a fleet document")
        for name in COLLECTIONS:
            if data.get(name) is None:
                data[name] = []
        return data

    def _write_raw(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        try:
            with open(self.path, "w") as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

    @staticmethod
    def _index_of(rows: List[Dict[str, Any]], entity_id: int, kind: str) -> int:
        for index, row in enumerate(rows):
            if row.get("id") == entity_id:
                return index
        raise NotFoundError(kind, entity_id)

    def _joined(
        self, entities: Dict[int, Any], entity_id: int, kind: str, owner: str, owner_id: int
    ) -> Any:
        """Look up the target of a foreign key in a joined read."""
        try:
            return entities[entity_id]
        except KeyError:
            raise PersistenceError(
                f"{self.path}: {owner} {owner_id} refers to missing {kind} {entity_id}"
            ) from None

    def is_empty(self) -> bool:
        with self._lock:
            data = self._load_raw()
        return not any(data[name] for name in COLLECTIONS)

    # =========================================================================
    # Vehicles
    # =========================================================================

    def get_vehicles(self) -> List[Vehicle]:
        with self._lock:
            data = self._load_raw()
        return [vehicle_from_dict(row) for row in data["vehicles"]]

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        with self._lock:
            rows = self._load_raw()["vehicles"]
        return vehicle_from_dict(rows[self._index_of(rows, vehicle_id, "vehicle")])

    def get_vehicle_detail(self, vehicle_id: int) -> VehicleDetail:
        """Vehicle with its alerts and latest maintenance record."""
        with self._lock:
            vehicle = self.get_vehicle(vehicle_id)
            alerts = self.get_alerts_by_vehicle(vehicle_id)
            records = self.get_maintenance_records_by_vehicle(vehicle_id)
        dated = [r for r in records if r.completed_at is not None]
        last = max(dated, key=lambda r: r.completed_at) if dated else None
        return VehicleDetail(vehicle=vehicle, alerts=alerts, last_maintenance=last)

    @staticmethod
    def _check_unique_plate(
        rows: List[Dict[str, Any]], plate: str, exclude_id: Optional[int] = None
    ) -> None:
        for row in rows:
            if row["plate"] == plate and row["id"] != exclude_id:
                raise ValidationInputError(f"Plate '{plate}' is already registered")

    def create_vehicle(self, vehicle: Vehicle) -> Vehicle:
        with self._lock:
            data = self._load_raw()
            self._check_unique_plate(data["vehicles"], vehicle.plate)
            vehicle.id = _next_id(data["vehicles"])
            if vehicle.created_at is None:
                vehicle.created_at = self.clock()
            data["vehicles"].append(vehicle_to_dict(vehicle))
            self._write_raw(data)
        logger.info("Created vehicle %s (%s)", vehicle.id, vehicle.plate)
        return vehicle

    def update_vehicle(self, vehicle_id: int, **changes: Any) -> Vehicle:
        """
        Update selected vehicle fields (snake_case attribute names).

        Only the given fields change; other keys are left untouched.
        """
        with self.vehicle_lock(vehicle_id), self._lock:
            data = self._load_raw()
            rows = data["vehicles"]
            index = self._index_of(rows, vehicle_id, "vehicle")
            vehicle = vehicle_from_dict(rows[index])
            _apply_changes(vehicle, changes, VEHICLE_FIELDS)
            if "plate" in changes:
                self._check_unique_plate(rows, vehicle.plate, exclude_id=vehicle_id)
            rows[index] = vehicle_to_dict(vehicle)
            self._write_raw(data)
        return vehicle

    def delete_vehicle(self, vehicle_id: int) -> None:
        """Remove a vehicle together with its records, part usages and alerts."""
        with self.vehicle_lock(vehicle_id), self._lock:
            data = self._load_raw()
            index = self._index_of(data["vehicles"], vehicle_id, "vehicle")
            del data["vehicles"][index]

            record_ids = {
                r["id"] for r in data["maintenanceRecords"] if r["vehicleId"] == vehicle_id
            }
            data["maintenanceRecords"] = [
                r for r in data["maintenanceRecords"] if r["id"] not in record_ids
            ]
            data["partUsage"] = [
                u for u in data["partUsage"] if u["maintenanceId"] not in record_ids
            ]
            data["alerts"] = [a for a in data["alerts"] if a["vehicleId"] != vehicle_id]
            self._write_raw(data)
        logger.info("Deleted vehicle %s", vehicle_id)

    # =========================================================================
    # Parts
    # =========================================================================

    def get_parts(self) -> List[Part]:
        with self._lock:
            data = self._load_raw()
        return [part_from_dict(row) for row in data["parts"]]

    def get_parts_with_status(self) -> List[Dict[str, Any]]:
        """Parts in dict form, each with its freshly derived stock status."""
        return [part_to_dict(part, with_status=True) for part in self.get_parts()]

    def get_part(self, part_id: int) -> Part:
        with self._lock:
            rows = self._load_raw()["parts"]
        return part_from_dict(rows[self._index_of(rows, part_id, "part")])

    @staticmethod
    def _check_unique_reference(
        rows: List[Dict[str, Any]], reference: str, exclude_id: Optional[int] = None
    ) -> None:
        for row in rows:
            if row["reference"] == reference and row["id"] != exclude_id:
                raise ValidationInputError(f"Reference '{reference}' already exists")

    def create_part(self, part: Part) -> Part:
        with self._lock:
            data = self._load_raw()
            self._check_unique_reference(data["parts"], part.reference)
            part.id = _next_id(data["parts"])
            if part.created_at is None:
                part.created_at = self.clock()
            data["parts"].append(part_to_dict(part))
            self._write_raw(data)
        return part

    def update_part(self, part_id: int, **changes: Any) -> Part:
        with self._lock:
            data = self._load_raw()
            rows = data["parts"]
            index = self._index_of(rows, part_id, "part")
            part = part_from_dict(rows[index])
            _apply_changes(part, changes, PART_FIELDS)
            if "reference" in changes:
                self._check_unique_reference(rows, part.reference, exclude_id=part_id)
            rows[index] = part_to_dict(part)
            self._write_raw(data)
        return part

    def delete_part(self, part_id: int) -> None:
        """Remove a part. Parts consumed by a maintenance record are kept."""
        with self._lock:
            data = self._load_raw()
            index = self._index_of(data["parts"], part_id, "part")
            if any(u["partId"] == part_id for u in data["partUsage"]):
                raise ValidationInputError(
                    f"Part {part_id} is used by maintenance records"
                )
            del data["parts"][index]
            self._write_raw(data)

    # =========================================================================
    # Maintenance records
    # =========================================================================

    def get_maintenance_records(self) -> List[MaintenanceRecord]:
        with self._lock:
            data = self._load_raw()
        return [maintenance_record_from_dict(row) for row in data["maintenanceRecords"]]

    def get_maintenance_record(self, record_id: int) -> MaintenanceRecord:
        with self._lock:
            rows = self._load_raw()["maintenanceRecords"]
        return maintenance_record_from_dict(
            rows[self._index_of(rows, record_id, "maintenance record")]
        )

    def get_maintenance_records_by_vehicle(
        self, vehicle_id: int
    ) -> List[MaintenanceRecord]:
        return [
            r for r in self.get_maintenance_records() if r.vehicle_id == vehicle_id
        ]

    def get_maintenance_records_with_parts(self) -> List[MaintenanceDetail]:
        """Every record joined to its vehicle and the parts it consumed."""
        with self._lock:
            data = self._load_raw()
        vehicles = {row["id"]: vehicle_from_dict(row) for row in data["vehicles"]}
        parts = {row["id"]: part_from_dict(row) for row in data["parts"]}
        usages = [part_usage_from_dict(row) for row in data["partUsage"]]

        details = []
        for row in data["maintenanceRecords"]:
            record = maintenance_record_from_dict(row)
            used = [
                (u, self._joined(parts, u.part_id, "part", "part usage", u.id))
                for u in usages
                if u.maintenance_id == record.id
            ]
            vehicle = self._joined(
                vehicles, record.vehicle_id, "vehicle", "maintenance record", record.id
            )
            details.append(
                MaintenanceDetail(record=record, vehicle=vehicle, parts_used=used)
            )
        return details

    def create_maintenance_record(
        self,
        record: MaintenanceRecord,
        parts_used: Optional[Sequence[Tuple[int, int]]] = None,
    ) -> MaintenanceRecord:
        """
        Add a maintenance record, plus one PartUsage per (part_id, quantity).

        The completion time defaults to now when not given.
        """
        with self.vehicle_lock(record.vehicle_id), self._lock:
            data = self._load_raw()
            self._index_of(data["vehicles"], record.vehicle_id, "vehicle")
            for part_id, _ in parts_used or []:
                self._index_of(data["parts"], part_id, "part")

            record.id = _next_id(data["maintenanceRecords"])
            if record.completed_at is None:
                record.completed_at = self.clock()
            data["maintenanceRecords"].append(maintenance_record_to_dict(record))

            for part_id, quantity in parts_used or []:
                usage = PartUsage(
                    record.id, part_id, quantity, _next_id(data["partUsage"])
                )
                data["partUsage"].append(part_usage_to_dict(usage))
            self._write_raw(data)
        logger.info(
            "Logged %s for vehicle %s (record %s)",
            record.type.value,
            record.vehicle_id,
            record.id,
        )
        return record

    def update_maintenance_record(self, record_id: int, **changes: Any) -> MaintenanceRecord:
        """Update record fields; moving it to another vehicle locks both vehicles."""
        moved_to = () if changes.get("vehicle_id") is None else (changes["vehicle_id"],)
        with self._owner_lock(
            "maintenanceRecords", record_id, "maintenance record", *moved_to
        ), self._lock:
            data = self._load_raw()
            rows = data["maintenanceRecords"]
            index = self._index_of(rows, record_id, "maintenance record")
            record = maintenance_record_from_dict(rows[index])
            _apply_changes(record, changes, MAINTENANCE_FIELDS)
            if "vehicle_id" in changes:
                self._index_of(data["vehicles"], record.vehicle_id, "vehicle")
            rows[index] = maintenance_record_to_dict(record)
            self._write_raw(data)
        return record

    def delete_maintenance_record(self, record_id: int) -> None:
        with self._owner_lock(
            "maintenanceRecords", record_id, "maintenance record"
        ), self._lock:
            data = self._load_raw()
            index = self._index_of(
                data["maintenanceRecords"], record_id, "maintenance record"
            )
            del data["maintenanceRecords"][index]
            data["partUsage"] = [
                u for u in data["partUsage"] if u["maintenanceId"] != record_id
            ]
            self._write_raw(data)

    # =========================================================================
    # Part usage
    # =========================================================================

    def get_part_usage(self, maintenance_id: int) -> List[Tuple[PartUsage, Part]]:
        """Usages of one maintenance record, each joined to its part."""
        with self._lock:
            data = self._load_raw()
        parts = {row["id"]: part_from_dict(row) for row in data["parts"]}
        return [
            (usage, self._joined(parts, usage.part_id, "part", "part usage", usage.id))
            for usage in map(part_usage_from_dict, data["partUsage"])
            if usage.maintenance_id == maintenance_id
        ]

    def create_part_usage(self, usage: PartUsage) -> PartUsage:
        with self._owner_lock(
            "maintenanceRecords", usage.maintenance_id, "maintenance record"
        ), self._lock:
            data = self._load_raw()
            self._index_of(
                data["maintenanceRecords"], usage.maintenance_id, "maintenance record"
            )
            self._index_of(data["parts"], usage.part_id, "part")
            usage.id = _next_id(data["partUsage"])
            data["partUsage"].append(part_usage_to_dict(usage))
            self._write_raw(data)
        return usage

    # =========================================================================
    # Alerts
    # =========================================================================

    def get_alerts(self) -> List[Alert]:
        with self._lock:
            data = self._load_raw()
        return [alert_from_dict(row) for row in data["alerts"]]

    def get_alerts_by_vehicle(self, vehicle_id: int) -> List[Alert]:
        return [a for a in self.get_alerts() if a.vehicle_id == vehicle_id]

    def create_alert(self, alert: Alert) -> Alert:
        with self.vehicle_lock(alert.vehicle_id), self._lock:
            data = self._load_raw()
            self._index_of(data["vehicles"], alert.vehicle_id, "vehicle")
            alert.id = _next_id(data["alerts"])
            if alert.created_at is None:
                alert.created_at = self.clock()
            data["alerts"].append(alert_to_dict(alert))
            self._write_raw(data)
        return alert

    def mark_alert_as_read(self, alert_id: int) -> Alert:
        with self._owner_lock("alerts", alert_id, "alert"), self._lock:
            data = self._load_raw()
            rows = data["alerts"]
            index = self._index_of(rows, alert_id, "alert")
            rows[index]["isRead"] = True
            self._write_raw(data)
        return alert_from_dict(rows[index])

    def delete_alert(self, alert_id: int) -> None:
        with self._owner_lock("alerts", alert_id, "alert"), self._lock:
            data = self._load_raw()
            index = self._index_of(data["alerts"], alert_id, "alert")
            del data["alerts"][index]
            self._write_raw(data)
