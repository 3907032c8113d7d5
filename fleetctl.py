#!/usr/bin/env python3
"""
Unified CLI for fleet tracking.

Commands:
  status          - Show every vehicle grouped by operational status
  validate        - Recompute vehicle status from maintenance and alerts
  history         - View maintenance history
  log             - Add a maintenance record
  update-mileage  - Update a vehicle's mileage
  parts           - List spare parts with stock status
  alerts          - List alerts
  mark-read       - Mark an alert as read
  stats           - Show dashboard counts
  chat            - Ask the fleet assistant
  seed            - Fill an empty data file with sample data
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from fleet import (
    FleetError,
    FleetStore,
    MaintenanceType,
    ValidationResult,
    VehicleStatus,
    VehicleStatusValidator,
    get_dashboard_stats,
    validate_all,
)
from fleet.chat import ACTIONS, respond
from fleet.config import configure_logging, load_settings
from fleet.details import MaintenanceDetail
from fleet.loader import parse_timestamp
from fleet.payloads import check_payload, parse_maintenance_record
from fleet.sample_data import seed_sample_data
from fleet.vehicle import Vehicle

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[int]) -> str:
    """Format mileage for display."""
    return f"{km:,} km" if km is not None else "-"


def format_cost(cents: Optional[int]) -> str:
    """Format a minor-unit amount for display."""
    return f"€{cents / 100:,.2f}" if cents is not None else "-"


def format_when(when) -> str:
    """Format a timestamp as a date."""
    return when.date().isoformat() if when is not None else "-"


def format_duration(minutes: int) -> str:
    """Format minutes as e.g. '2h 45m'."""
    hours, rest = divmod(minutes, 60)
    if hours:
        return f"{hours}h {rest:02d}m"
    return f"{rest}m"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_part_spec(spec: str):
    """Parse 'PART_ID[:QTY]' into (part_id, quantity)."""
    part_id, _, quantity = spec.partition(":")
    try:
        return int(part_id), int(quantity or 1)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid part '{spec}', expected PART_ID or PART_ID:QTY"
        ) from None


# =============================================================================
# Status command
# =============================================================================


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    """Convert vehicles to table rows."""
    return [
        [
            str(v.id),
            v.plate,
            f"{v.make} {v.model}",
            str(v.year),
            v.type.value,
            format_km(v.mileage),
        ]
        for v in vehicles
    ]


def cmd_status(store: FleetStore, args) -> int:
    """Show every vehicle grouped by operational status."""
    vehicles = store.get_vehicles()
    print(f"Vehicles: {len(vehicles)}")
    print()

    headers = ["ID", "Plate", "Vehicle", "Year", "Type", "Mileage"]
    for status, title in [
        (VehicleStatus.IN_REPAIR, "IN REPAIR"),
        (VehicleStatus.MAINTENANCE_DUE, "MAINTENANCE DUE"),
        (VehicleStatus.OPERATIONAL, "OPERATIONAL"),
    ]:
        group = sorted(
            (v for v in vehicles if v.status == status), key=lambda v: v.plate
        )
        if group:
            print(f"{title}:")
            print(tabulate(make_vehicle_table(group), headers=headers, tablefmt="simple"))
            print()
    return 0


# =============================================================================
# Validate command
# =============================================================================


def print_validation(
    label: str, result: ValidationResult, previous: Optional[VehicleStatus] = None
) -> None:
    changed = "" if previous in (None, result.status) else f" (was {previous.value})"
    print(f"{label}: {result.status.value}{changed}")
    for reason in result.reasons:
        print(f"  - {reason}")
    for issue in result.urgent_issues:
        print(f"  ! {issue}")
    if result.last_inspection:
        print(f"  Last maintenance: {format_when(result.last_inspection)}")
    if result.next_maintenance_due:
        print(f"  Next maintenance due: {format_when(result.next_maintenance_due)}")


def cmd_validate(store: FleetStore, args) -> int:
    """Recompute vehicle status from maintenance history and alerts."""
    if args.all == (args.vehicle_id is not None):
        print("Error: give a vehicle id or --all (not both)")
        return 1

    validator = VehicleStatusValidator(store)

    if args.vehicle_id is not None:
        vehicle = store.get_vehicle(args.vehicle_id)
        if args.dry_run:
            result = validator.preview(vehicle.id)
        else:
            result = validator.validate(vehicle.id)
        print_validation(vehicle.plate, result, vehicle.status)
        if args.dry_run:
            print("\n(dry run - no changes made)")
        return 0

    vehicles = {v.id: v for v in store.get_vehicles()}
    if args.dry_run:
        for vehicle in vehicles.values():
            print_validation(
                vehicle.plate, validator.preview(vehicle.id), vehicle.status
            )
        print("\n(dry run - no changes made)")
        return 0

    report = validate_all(validator, max_workers=args.workers)
    for vehicle_id, result in report.results.items():
        vehicle = vehicles.get(vehicle_id)
        if vehicle is None:
            # Added after the listing above
            print_validation(f"Vehicle {vehicle_id}", result)
        else:
            print_validation(vehicle.plate, result, vehicle.status)
    print()
    print(f"Validated: {report.validated}")
    if report.failures:
        print(f"Failed: {len(report.failures)}")
        for failure in report.failures:
            print(f"  {failure.plate}: {failure.error}")
        return 1
    return 0


# =============================================================================
# History command
# =============================================================================


def make_history_table(details: List[MaintenanceDetail]) -> List[List[str]]:
    """Convert maintenance records to table rows."""
    rows = []
    for detail in details:
        record = detail.record
        rows.append(
            [
                format_when(record.completed_at),
                detail.vehicle.plate,
                record.type.value,
                record.technician,
                format_duration(record.duration),
                format_cost(record.cost),
                truncate(record.description),
            ]
        )
    return rows


def cmd_history(store: FleetStore, args) -> int:
    """View maintenance history."""
    details = store.get_maintenance_records_with_parts()

    if args.vehicle is not None:
        details = [d for d in details if d.record.vehicle_id == args.vehicle]
    if args.type:
        details = [d for d in details if d.record.type.value == args.type]
    if args.since:
        details = [
            d
            for d in details
            if d.record.completed_at and d.record.completed_at >= args.since
        ]

    def date_key(d):
        return d.record.completed_at or EPOCH

    sort_keys = {
        "date": date_key,
        "cost": lambda d: d.record.cost,
        "vehicle": lambda d: (d.vehicle.plate, date_key(d)),
    }
    details.sort(key=sort_keys[args.sort], reverse=not args.asc)

    total_cost = sum(d.record.cost for d in details)
    print(f"Records: {len(details)}")
    if total_cost > 0:
        print(f"Total cost: {format_cost(total_cost)}")
    print()

    if not details:
        print("No maintenance records found.")
        return 0

    headers = ["Date", "Plate", "Type", "Technician", "Duration", "Cost", "Description"]
    print(tabulate(make_history_table(details), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Log command
# =============================================================================


def cmd_log(store: FleetStore, args) -> int:
    """Add a maintenance record."""
    payload = {
        "vehicleId": args.vehicle_id,
        "type": args.type,
        "description": args.description,
        "cost": args.cost,
        "duration": args.duration,
        "partsUsed": [
            {"partId": part_id, "quantity": quantity} for part_id, quantity in args.part
        ],
    }
    if args.date:
        payload["completedAt"] = args.date.isoformat()
    if args.by:
        payload["technician"] = args.by
    record, parts_used = parse_maintenance_record(payload)

    vehicle = store.get_vehicle(record.vehicle_id)
    for part_id, _ in parts_used:
        store.get_part(part_id)

    print(f"Adding maintenance record for {vehicle.plate}:")
    print(f"  Type:        {record.type.value}")
    print(f"  Description: {record.description}")
    print(f"  Date:        {format_when(record.completed_at) if record.completed_at else 'now'}")
    print(f"  Technician:  {record.technician}")
    print(f"  Duration:    {format_duration(record.duration)}")
    print(f"  Cost:        {format_cost(record.cost)}")
    for part_id, quantity in parts_used:
        print(f"  Part:        {part_id} x{quantity}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    record = store.create_maintenance_record(record, parts_used)
    print(f"Record {record.id} saved.")
    return 0


# =============================================================================
# Update mileage command
# =============================================================================


def cmd_update_mileage(store: FleetStore, args) -> int:
    """Update a vehicle's mileage."""
    check_payload("vehicle", {"mileage": args.mileage}, partial=True)
    vehicle = store.get_vehicle(args.vehicle_id)

    print(f"Vehicle: {vehicle.name}")
    print(f"Current mileage: {format_km(vehicle.mileage)}")
    print(f"New mileage:     {format_km(args.mileage)}")
    print()

    if args.mileage < vehicle.mileage:
        print("Warning: new mileage is lower than the recorded one")

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.update_vehicle(vehicle.id, mileage=args.mileage)
    print("Mileage updated.")
    return 0


# =============================================================================
# Parts, alerts and stats commands
# =============================================================================


def cmd_parts(store: FleetStore, args) -> int:
    """List spare parts with stock status."""
    parts = sorted(store.get_parts(), key=lambda p: (p.category.value, p.name))
    if args.low:
        parts = [p for p in parts if p.status.value != "in_stock"]

    rows = [
        [
            str(p.id),
            p.reference,
            p.name,
            p.category.value,
            str(p.stock),
            str(p.min_stock),
            format_cost(p.unit_price),
            p.status.value,
        ]
        for p in parts
    ]
    headers = ["ID", "Reference", "Name", "Category", "Stock", "Min", "Unit price", "Status"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_alerts(store: FleetStore, args) -> int:
    """List alerts, newest first."""
    alerts = store.get_alerts()
    if args.unread:
        alerts = [a for a in alerts if not a.is_read]
    if args.vehicle is not None:
        alerts = [a for a in alerts if a.vehicle_id == args.vehicle]
    alerts.sort(key=lambda a: a.id, reverse=True)

    if not alerts:
        print("No alerts found.")
        return 0

    rows = [
        [
            str(a.id),
            str(a.vehicle_id),
            a.priority.value,
            a.type,
            "" if a.is_read else "*",
            truncate(a.message, 60),
        ]
        for a in alerts
    ]
    headers = ["ID", "Vehicle", "Priority", "Type", "New", "Message"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_mark_read(store: FleetStore, args) -> int:
    alert = store.mark_alert_as_read(args.alert_id)
    print(f"Alert {alert.id} marked as read.")
    return 0


def cmd_stats(store: FleetStore, args) -> int:
    """Show dashboard counts."""
    stats = get_dashboard_stats(store)
    rows = [
        ["Vehicles", stats.total_vehicles],
        ["  operational", stats.operational],
        ["  maintenance due", stats.maintenance_due],
        ["  in repair", stats.in_repair],
        ["Parts", stats.total_parts],
        ["  in stock", stats.parts_in_stock],
        ["  low stock", stats.parts_low_stock],
        ["  out of stock", stats.parts_out_of_stock],
        ["Unread alerts", stats.unread_alerts],
    ]
    print(tabulate(rows, tablefmt="plain"))
    return 0


def cmd_chat(store: FleetStore, args) -> int:
    print(respond(store, message=args.message, action=args.action))
    return 0


def cmd_seed(store: FleetStore, args) -> int:
    if seed_sample_data(store):
        print(f"Sample data written to {store.path}")
    else:
        print(f"{store.path} already has data; nothing seeded")
    return 0


COMMANDS = {
    "status": cmd_status,
    "validate": cmd_validate,
    "history": cmd_history,
    "log": cmd_log,
    "update-mileage": cmd_update_mileage,
    "parts": cmd_parts,
    "alerts": cmd_alerts,
    "mark-read": cmd_mark_read,
    "stats": cmd_stats,
    "chat": cmd_chat,
    "seed": cmd_seed,
}


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(
        description="Vehicle fleet tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fleet.yaml seed
  %(prog)s fleet.yaml status
  %(prog)s fleet.yaml validate 2
  %(prog)s fleet.yaml validate --all --workers 4
  %(prog)s fleet.yaml history --vehicle 1 --since 2024-01-01
  %(prog)s fleet.yaml log 1 oil-change "Engine oil and filter" \\
      --cost 6500 --by "J. Dubois" --part 1:1
  %(prog)s fleet.yaml update-mileage 1 130000
  %(prog)s fleet.yaml chat --action parts-inventory
""",
    )
    parser.add_argument(
        "data_file",
        type=Path,
        nargs="?",
        default=settings.data_file,
        help=f"Path to fleet YAML file (default: {settings.data_file})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show every vehicle grouped by status")

    validate_parser = subparsers.add_parser(
        "validate", help="Recompute vehicle status from maintenance and alerts"
    )
    validate_parser.add_argument("vehicle_id", type=int, nargs="?", help="Vehicle id")
    validate_parser.add_argument(
        "--all", action="store_true", help="Validate every vehicle"
    )
    validate_parser.add_argument(
        "--workers",
        type=int,
        default=settings.validation_workers,
        help="Threads used with --all (default: %(default)s)",
    )
    validate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the verdict without saving status or alerts",
    )

    history_parser = subparsers.add_parser("history", help="View maintenance history")
    history_parser.add_argument("--vehicle", type=int, help="Only this vehicle id")
    history_parser.add_argument(
        "--type", choices=[t.value for t in MaintenanceType], help="Only this type"
    )
    history_parser.add_argument(
        "--since",
        type=parse_timestamp,
        help="Show only records since date (YYYY-MM-DD)",
    )
    history_parser.add_argument(
        "--sort",
        choices=["date", "cost", "vehicle"],
        default="date",
        help="Sort order (default: date)",
    )
    history_parser.add_argument(
        "--asc", action="store_true", help="Sort ascending instead of descending"
    )

    log_parser = subparsers.add_parser("log", help="Add a maintenance record")
    log_parser.add_argument("vehicle_id", type=int, help="Vehicle id")
    log_parser.add_argument(
        "type", choices=[t.value for t in MaintenanceType], help="Maintenance type"
    )
    log_parser.add_argument("description", type=str, help="What was done")
    log_parser.add_argument(
        "--date",
        type=parse_timestamp,
        help="Completion date/time, ISO-8601 (default: now)",
    )
    log_parser.add_argument("--cost", type=int, default=0, help="Cost in cents")
    log_parser.add_argument(
        "--duration", type=int, default=60, help="Duration in minutes (default: 60)"
    )
    log_parser.add_argument("--by", type=str, help="Technician")
    log_parser.add_argument(
        "--part",
        type=parse_part_spec,
        action="append",
        default=[],
        help="Part used, as PART_ID or PART_ID:QTY (repeatable)",
    )
    log_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    mileage_parser = subparsers.add_parser(
        "update-mileage", help="Update a vehicle's mileage"
    )
    mileage_parser.add_argument("vehicle_id", type=int, help="Vehicle id")
    mileage_parser.add_argument("mileage", type=int, help="Current mileage in km")
    mileage_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would change without saving"
    )

    parts_parser = subparsers.add_parser("parts", help="List spare parts")
    parts_parser.add_argument(
        "--low", action="store_true", help="Only low or out-of-stock parts"
    )

    alerts_parser = subparsers.add_parser("alerts", help="List alerts")
    alerts_parser.add_argument("--unread", action="store_true", help="Only unread")
    alerts_parser.add_argument("--vehicle", type=int, help="Only this vehicle id")

    read_parser = subparsers.add_parser("mark-read", help="Mark an alert as read")
    read_parser.add_argument("alert_id", type=int, help="Alert id")

    subparsers.add_parser("stats", help="Show dashboard counts")

    chat_parser = subparsers.add_parser("chat", help="Ask the fleet assistant")
    chat_parser.add_argument("message", nargs="?", help="Question")
    chat_parser.add_argument(
        "--action",
        choices=list(ACTIONS),
        help="Quick action",
    )

    subparsers.add_parser("seed", help="Fill an empty data file with sample data")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(load_settings().log_level)

    if args.command != "seed" and not args.data_file.exists():
        print(f"Error: File not found: {args.data_file}")
        return 1

    store = FleetStore(args.data_file)
    try:
        return COMMANDS[args.command](store, args)
    except FleetError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
