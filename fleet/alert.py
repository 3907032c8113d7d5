"""Alert class for vehicle notifications."""

from datetime import datetime
from typing import Optional

from .status import Priority


class Alert:
    """A prioritized notification tied to one vehicle."""

    def __init__(
        self,
        vehicle_id: int,
        type: str,
        message: str,
        priority: Priority = Priority.MEDIUM,
        is_read: bool = False,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.type = type
        self.message = message
        self.priority = priority
        self.is_read = is_read
        self.created_at = created_at

    @property
    def is_urgent_issue(self) -> bool:
        return not self.is_read and self.priority.is_pressing
