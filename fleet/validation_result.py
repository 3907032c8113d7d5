"""ValidationResult dataclass for a computed vehicle status verdict."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .status import VehicleStatus


@dataclass
class ValidationResult:
    """Status verdict for one vehicle with its supporting diagnostics."""

    status: VehicleStatus
    reasons: List[str] = field(default_factory=list)
    urgent_issues: List[str] = field(default_factory=list)
    last_inspection: Optional[datetime] = None
    next_maintenance_due: Optional[datetime] = None

    @property
    def needs_attention(self) -> bool:
        return self.status != VehicleStatus.OPERATIONAL

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape; optional timestamps are omitted when unknown."""
        d: Dict[str, Any] = {
            "status": self.status.value,
            "reasons": list(self.reasons),
        }
        if self.last_inspection is not None:
            d["lastInspection"] = self.last_inspection.isoformat()
        if self.next_maintenance_due is not None:
            d["nextMaintenanceDue"] = self.next_maintenance_due.isoformat()
        d["urgentIssues"] = list(self.urgent_issues)
        return d
