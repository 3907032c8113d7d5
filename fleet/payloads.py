"""Validation of create/update payloads against the fleet schema.

Payloads use the camelCase keys of the data file. They are checked with
jsonschema before being turned into entities or snake_case change sets for
the store.
"""

import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import yaml
from jsonschema import Draft202012Validator

from .alert import Alert
from .errors import ValidationInputError
from .loader import parse_timestamp
from .maintenance_record import MaintenanceRecord, MaintenanceType
from .part import Part, PartCategory
from .status import Priority, VehicleStatus
from .vehicle import Vehicle, VehicleType

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"

# Store-assigned keys never accepted from callers.
SERVER_FIELDS = ("id", "createdAt")

# Keys a create payload must carry; everything else has a default.
CREATE_REQUIRED = {
    "vehicle": ["plate", "make", "model", "year", "type"],
    "part": ["name", "reference", "category", "unitPrice"],
    "maintenanceRecord": ["vehicleId", "type", "description"],
    "alert": ["vehicleId", "type", "message"],
}

PARTS_USED_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "additionalProperties": False,
        "required": ["partId"],
        "properties": {
            "partId": {"type": "integer", "minimum": 1},
            "quantity": {"type": "integer", "minimum": 1},
        },
    },
}


def _identity(value: Any) -> Any:
    return value


# camelCase payload key -> (snake_case attribute, converter)
FIELDS: Dict[str, Dict[str, Tuple[str, Callable[[Any], Any]]]] = {
    "vehicle": {
        "plate": ("plate", _identity),
        "make": ("make", _identity),
        "model": ("model", _identity),
        "year": ("year", _identity),
        "type": ("type", VehicleType),
        "mileage": ("mileage", _identity),
        "status": ("status", VehicleStatus),
    },
    "part": {
        "name": ("name", _identity),
        "reference": ("reference", _identity),
        "category": ("category", PartCategory),
        "stock": ("stock", _identity),
        "minStock": ("min_stock", _identity),
        "unitPrice": ("unit_price", _identity),
    },
    "maintenanceRecord": {
        "vehicleId": ("vehicle_id", _identity),
        "type": ("type", MaintenanceType),
        "description": ("description", _identity),
        "cost": ("cost", _identity),
        "duration": ("duration", _identity),
        "technician": ("technician", _identity),
        "completedAt": ("completed_at", parse_timestamp),
        "nextDue": ("next_due", parse_timestamp),
    },
    "alert": {
        "vehicleId": ("vehicle_id", _identity),
        "type": ("type", _identity),
        "message": ("message", _identity),
        "priority": ("priority", Priority),
        "isRead": ("is_read", _identity),
    },
}


@lru_cache(maxsize=None)
def load_schema() -> Dict[str, Any]:
    """Load the fleet JSON schema from schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def payload_schema(kind: str, partial: bool = False) -> Dict[str, Any]:
    """
    Schema for a create (or, with partial=True, update) payload.

    Derived from the stored-entity definition: server-assigned keys are
    dropped and only the caller-supplied keys are required.
    """
    root = load_schema()
    schema = copy.deepcopy(root["$defs"][kind])
    for key in SERVER_FIELDS:
        schema["properties"].pop(key, None)
    if partial:
        schema.pop("required", None)
        schema["minProperties"] = 1
    else:
        schema["required"] = list(CREATE_REQUIRED[kind])
    if kind == "maintenanceRecord" and not partial:
        schema["properties"]["partsUsed"] = PARTS_USED_SCHEMA
    schema["$defs"] = root["$defs"]
    return schema


def _format_error(error) -> str:
    if error.path:
        return f"{'.'.join(str(p) for p in error.path)}: {error.message}"
    return error.message


def check_payload(kind: str, payload: Any, partial: bool = False) -> None:
    """Raise ValidationInputError listing every schema violation."""
    if not isinstance(payload, dict):
        raise ValidationInputError("Payload must be a JSON object")
    validator = Draft202012Validator(payload_schema(kind, partial))
    errors = sorted(
        validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path]
    )
    if errors:
        raise ValidationInputError([_format_error(e) for e in errors])


def to_changes(kind: str, payload: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate a payload and convert it to snake_case attribute values."""
    check_payload(kind, payload, partial)
    changes = {}
    for key, value in payload.items():
        if key not in FIELDS[kind]:
            continue
        attr, convert = FIELDS[kind][key]
        try:
            changes[attr] = convert(value) if value is not None else None
        except ValueError as e:
            raise ValidationInputError(f"{key}: {e}") from e
    return changes


def parse_vehicle(payload: Dict[str, Any]) -> Vehicle:
    return Vehicle(**to_changes("vehicle", payload))


def parse_part(payload: Dict[str, Any]) -> Part:
    return Part(**to_changes("part", payload))


def parse_maintenance_record(
    payload: Dict[str, Any],
) -> Tuple[MaintenanceRecord, List[Tuple[int, int]]]:
    """A new record plus the (part_id, quantity) pairs it consumed."""
    changes = to_changes("maintenanceRecord", payload)
    parts_used = [
        (item["partId"], item.get("quantity", 1))
        for item in payload.get("partsUsed") or []
    ]
    return MaintenanceRecord(**changes), parts_used


def parse_alert(payload: Dict[str, Any]) -> Alert:
    return Alert(**to_changes("alert", payload))

