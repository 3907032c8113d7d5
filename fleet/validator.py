"""Vehicle status validation: rules over maintenance history and alerts.

`evaluate_vehicle` is the pure decision function. `VehicleStatusValidator`
wraps it with the store reads and the status/alert write-back.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from .alert import Alert
from .calculations import calc_next_due, days_since, is_within, utc_now
from .maintenance_record import MaintenanceRecord, MaintenanceType
from .status import Priority, VehicleStatus, max_severity
from .validation_result import ValidationResult
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

RECENT_REPAIR_WINDOW = timedelta(hours=24)
OIL_CHANGE_INTERVAL_DAYS = 180
INSPECTION_INTERVAL_DAYS = 365
GENERAL_SERVICE_INTERVAL_DAYS = 365
HIGH_MILEAGE_KM = 200000
MODERATE_MILEAGE_KM = 100000

REPAIR_ALERT_TYPE = "repair-needed"
MAINTENANCE_ALERT_TYPE = "maintenance-due"
STATUS_ALERT_TYPES = (REPAIR_ALERT_TYPE, MAINTENANCE_ALERT_TYPE)
STATUS_ALERT_PREFIX = "Vehicle status for "


@dataclass
class Finding:
    """What one rule contributes: a proposed status plus diagnostics."""

    status: VehicleStatus = VehicleStatus.OPERATIONAL
    reasons: List[str] = field(default_factory=list)
    urgent_issues: List[str] = field(default_factory=list)
    last_inspection: Optional[datetime] = None
    next_maintenance_due: Optional[datetime] = None


def _latest(records: Sequence[MaintenanceRecord]) -> Optional[MaintenanceRecord]:
    # Undated records only win when nothing is dated.
    if not records:
        return None
    dated = [r for r in records if r.completed_at is not None]
    if dated:
        return max(dated, key=lambda r: r.completed_at)
    return records[-1]


# =============================================================================
# Rules
# =============================================================================


def is_status_alert(alert: Alert) -> bool:
    """
    True for alerts raised by the validator's own write-back.

    Alerts carry no origin field, so these are recognised by their type and
    message prefix. A manual alert using the same type and wording would be
    taken for a status alert too.
    """
    return alert.type in STATUS_ALERT_TYPES and alert.message.startswith(
        STATUS_ALERT_PREFIX
    )


def check_alerts(alerts: Sequence[Alert]) -> Finding:
    """
    Unread high/urgent alerts become urgent issues.

    Status alerts only restate earlier verdicts and are skipped, otherwise
    a second run would see its own alert as a new issue.
    """
    return Finding(
        urgent_issues=[
            a.message for a in alerts if a.is_urgent_issue and not is_status_alert(a)
        ]
    )


def check_recent_repair(
    records: Sequence[MaintenanceRecord], now: datetime
) -> Finding:
    """A repair finished less than 24 hours ago means the vehicle is in repair."""
    dated = [r for r in records if r.completed_at is not None]
    if not dated:
        return Finding()

    latest = max(dated, key=lambda r: r.completed_at)
    finding = Finding(last_inspection=latest.completed_at)
    if latest.type == MaintenanceType.REPAIR and is_within(
        latest.completed_at, now, RECENT_REPAIR_WINDOW
    ):
        finding.status = VehicleStatus.IN_REPAIR
        finding.reasons.append("recent repair in progress")
    return finding


def check_major_maintenance(
    records: Sequence[MaintenanceRecord], now: datetime
) -> Finding:
    """
    Check the age of the latest major service (oil change, service, inspection).

    Only the most recent major record is considered, so an old inspection
    followed by a fresh oil change does not flag the inspection.
    """
    major = _latest([r for r in records if r.type.is_major])
    if major is None:
        return Finding(
            status=VehicleStatus.MAINTENANCE_DUE,
            reasons=["no maintenance history"],
            urgent_issues=["vehicle has no maintenance history"],
        )

    elapsed = days_since(major.completed_at, now)
    finding = Finding()
    if major.type == MaintenanceType.OIL_CHANGE and elapsed > OIL_CHANGE_INTERVAL_DAYS:
        finding.status = VehicleStatus.MAINTENANCE_DUE
        finding.reasons.append("oil change due (over 6 months)")
        finding.next_maintenance_due = calc_next_due(
            major.completed_at, OIL_CHANGE_INTERVAL_DAYS
        )
    elif major.type == MaintenanceType.INSPECTION and elapsed > INSPECTION_INTERVAL_DAYS:
        finding.status = VehicleStatus.MAINTENANCE_DUE
        finding.reasons.append("technical inspection expired")
        finding.urgent_issues.append("mandatory technical inspection expired")
    elif (
        major.type == MaintenanceType.GENERAL_SERVICE
        and elapsed > GENERAL_SERVICE_INTERVAL_DAYS
    ):
        finding.status = VehicleStatus.MAINTENANCE_DUE
        finding.reasons.append("annual service due")
    return finding


def check_mileage(mileage: int) -> Finding:
    if mileage > HIGH_MILEAGE_KM:
        return Finding(
            status=VehicleStatus.MAINTENANCE_DUE,
            reasons=["high mileage (over 200k km)"],
        )
    if mileage > MODERATE_MILEAGE_KM:
        return Finding(reasons=["moderate mileage (over 100k km)"])
    return Finding()


def evaluate_vehicle(
    vehicle: Vehicle,
    records: Sequence[MaintenanceRecord],
    alerts: Sequence[Alert],
    now: datetime,
) -> ValidationResult:
    """
    Compute a vehicle's status from its maintenance history and alerts.

    Rules run in a fixed order so reasons and urgent issues keep a stable
    order; the final status is the most severe status any rule proposed.
    `vehicle.status` is never read; of the vehicle only its mileage matters.
    """
    findings = [
        check_alerts(alerts),
        check_recent_repair(records, now),
        check_major_maintenance(records, now),
        check_mileage(vehicle.mileage),
    ]

    reasons = [r for f in findings for r in f.reasons]
    urgent_issues = [u for f in findings for u in f.urgent_issues]
    proposals = [f.status for f in findings]
    if urgent_issues:
        proposals.append(VehicleStatus.MAINTENANCE_DUE)

    status = max_severity(*proposals)
    if status == VehicleStatus.OPERATIONAL and not reasons:
        reasons.append("all checks passed")

    return ValidationResult(
        status=status,
        reasons=reasons,
        urgent_issues=urgent_issues,
        last_inspection=next(
            (f.last_inspection for f in findings if f.last_inspection), None
        ),
        next_maintenance_due=next(
            (f.next_maintenance_due for f in findings if f.next_maintenance_due),
            None,
        ),
    )


# =============================================================================
# Store-backed validator
# =============================================================================


def build_status_alert(vehicle: Vehicle, result: ValidationResult) -> Alert:
    """Alert announcing a degraded status for a vehicle."""
    alert_type = (
        REPAIR_ALERT_TYPE
        if result.status == VehicleStatus.IN_REPAIR
        else MAINTENANCE_ALERT_TYPE
    )
    priority = Priority.URGENT if result.urgent_issues else Priority.MEDIUM
    return Alert(
        vehicle_id=vehicle.id,
        type=alert_type,
        message=f"{STATUS_ALERT_PREFIX}{vehicle.plate}: {', '.join(result.reasons)}",
        priority=priority,
        is_read=False,
    )


class VehicleStatusValidator:
    """Validates vehicles against the store and persists status changes."""

    def __init__(self, store, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def _evaluate(self, vehicle: Vehicle) -> ValidationResult:
        alerts = self.store.get_alerts_by_vehicle(vehicle.id)
        records = self.store.get_maintenance_records_by_vehicle(vehicle.id)
        return evaluate_vehicle(vehicle, records, alerts, now=self.clock())

    def preview(self, vehicle_id: int) -> ValidationResult:
        """Compute the verdict without writing anything back."""
        with self.store.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            return self._evaluate(vehicle)

    def validate(self, vehicle_id: int) -> ValidationResult:
        """
        Recompute a vehicle's status and persist it when it changed.

        Raises NotFoundError if the vehicle does not exist. Store errors
        propagate unchanged.
        """
        with self.store.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            result = self._evaluate(vehicle)
            self.write_back(vehicle, result)
        return result

    def write_back(self, vehicle: Vehicle, result: ValidationResult) -> Optional[Alert]:
        """
        Persist a changed status and, for a degraded one, emit an alert.

        Returns the created alert, or None.
        """
        if result.status == vehicle.status:
            return None

        self.store.update_vehicle(vehicle.id, status=result.status)
        logger.info(
            "Vehicle %s (%s) status %s -> %s",
            vehicle.id,
            vehicle.plate,
            vehicle.status.value,
            result.status.value,
        )
        if result.status == VehicleStatus.OPERATIONAL:
            return None

        alert = self.store.create_alert(build_status_alert(vehicle, result))
        logger.info(
            "Raised %s alert %s for vehicle %s", alert.priority.value, alert.id, vehicle.id
        )
        return alert
