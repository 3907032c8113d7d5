"""Fleet-wide validation sweep."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import FleetError
from .validation_result import ValidationResult
from .validator import VehicleStatusValidator
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


@dataclass
class VehicleFailure:
    """A vehicle whose validation failed during a sweep."""

    vehicle_id: int
    plate: str
    error: str


@dataclass
class FleetValidationReport:
    """Outcome of validating every vehicle."""

    results: Dict[int, ValidationResult] = field(default_factory=dict)
    failures: List[VehicleFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def validated(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validated": self.validated,
            "results": {
                str(vehicle_id): result.to_dict()
                for vehicle_id, result in self.results.items()
            },
            "failures": [
                {"vehicleId": f.vehicle_id, "plate": f.plate, "error": f.error}
                for f in self.failures
            ],
        }


def validate_all(
    validator: VehicleStatusValidator, max_workers: int = 1
) -> FleetValidationReport:
    """
    Validate every vehicle in the store.

    Each vehicle is validated and written back on its own; there is no
    transaction across vehicles. A vehicle failing with a FleetError (deleted
    mid-sweep, store unavailable) is recorded in the report and the sweep
    continues. Other exceptions propagate.
    """
    vehicles = validator.store.get_vehicles()
    report = FleetValidationReport()

    def run(vehicle: Vehicle) -> None:
        try:
            report.results[vehicle.id] = validator.validate(vehicle.id)
        except FleetError as e:
            logger.warning(
                "Validation failed for vehicle %s (%s): %s", vehicle.id, vehicle.plate, e
            )
            report.failures.append(VehicleFailure(vehicle.id, vehicle.plate, str(e)))

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            # list() re-raises anything that is not a FleetError
            list(pool.map(run, vehicles))
    else:
        for vehicle in vehicles:
            run(vehicle)

    logger.info(
        "Validated %d vehicles (%d failed)", report.validated, len(report.failures)
    )
    return report
