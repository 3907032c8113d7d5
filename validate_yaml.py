#!/usr/bin/env python3
"""Validate fleet YAML data files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from fleet.config import load_settings
from fleet.payloads import load_schema


def find_duplicate_ids(data: dict) -> list[str]:
    """Report ids used twice within one collection."""
    errors = []
    for collection, rows in (data or {}).items():
        seen = set()
        for row in rows or []:
            row_id = row.get("id") if isinstance(row, dict) else None
            if row_id in seen:
                errors.append(f"Duplicate id {row_id} in {collection}")
            seen.add(row_id)
    return errors


# (foreign key, collection holding it, target collection)
REFERENCES = [
    ("vehicleId", "maintenanceRecords", "vehicles"),
    ("vehicleId", "alerts", "vehicles"),
    ("maintenanceId", "partUsage", "maintenanceRecords"),
    ("partId", "partUsage", "parts"),
]


def find_dangling_references(data: dict) -> list[str]:
    """Report foreign keys pointing at ids that do not exist."""
    data = data or {}
    errors = []
    for key, collection, target in REFERENCES:
        known = {row["id"] for row in data.get(target) or []}
        for row in data.get(collection) or []:
            if row[key] not in known:
                errors.append(
                    f"{collection} id {row['id']}: {key} {row[key]} not found in {target}"
                )
    return errors


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
        errors.extend(find_duplicate_ids(data))
        errors.extend(find_dangling_references(data))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given data files, or FLEET_DATA_FILE by default."""
    args = sys.argv[1:] if argv is None else argv
    paths = [Path(a) for a in args] or [load_settings().data_file]
    schema = load_schema()

    all_valid = True
    for filepath in paths:
        if not filepath.exists():
            print(f"FAIL: {filepath}")
            print("  file not found")
            all_valid = False
            continue
        errors = validate_fleet_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
