import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, Integer, String, DateTime, Float, Boolean, ForeignKey, JSON

from trashapp.core.database import Base
from trashapp.core.errors import AppError

PICKUP_STATUSES = ("pending", "assigned", "in_progress", "completed", "cancelled")
TERMINAL_STATUSES = frozenset({"completed", "cancelled"})

# Allowed forward moves; cancelled is reachable from every non-terminal status.
STATUS_TRANSITIONS = {
    "pending": {"assigned", "cancelled"},
    "assigned": {"in_progress", "cancelled"},
    "in_progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

# Base rate per unit of weight
BASE_COSTS = {
    "general": 1000,
    "recyclable": 800,
    "hazardous": 2000,
}
URGENT_MULTIPLIER = 1.5

COST_FIELDS = ("waste_type", "estimated_weight", "urgent_pickup")


def calculate_estimated_cost(waste_type: str, estimated_weight: Optional[float] = None, urgent_pickup: bool = False) -> int:
    base = BASE_COSTS.get(waste_type, BASE_COSTS["general"])
    weight = 1 if estimated_weight is None else estimated_weight
    cost = base * weight
    if urgent_pickup:
        cost *= URGENT_MULTIPLIER
    # half-up, not banker's rounding
    return int(math.floor(cost + 0.5))


class Pickup(Base):
    __tablename__ = "pickups"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    address = Column(String, nullable=False)
    coordinates = Column(JSON, nullable=True)  # [longitude, latitude]
    notes = Column(String, nullable=True)

    status = Column(String, default="pending", nullable=False, index=True)
    waste_type = Column(String, nullable=False, index=True)
    pickup_date = Column(DateTime, nullable=False, index=True)
    pickup_time = Column(String, default="morning", nullable=False)
    estimated_weight = Column(Float, nullable=True)
    actual_weight = Column(Float, nullable=True)
    urgent_pickup = Column(Boolean, default=False, nullable=False)
    recurring_pickup = Column(Boolean, default=False, nullable=False)
    recurring_frequency = Column(String, nullable=True)
    photos = Column(JSON, nullable=False, default=list)
    special_instructions = Column(String, nullable=True)

    assigned_driver_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    estimated_cost = Column(Float, nullable=True)
    actual_cost = Column(Float, nullable=True)
    completion_notes = Column(String, nullable=True)
    rating = Column(Integer, nullable=True)
    feedback = Column(String, nullable=True)
    recurring_schedule_id = Column(Integer, ForeignKey("recurring_pickup_schedules.id"), nullable=True)

    # [{status, message, timestamp, location, photos}]
    status_updates = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def calculate_estimated_cost(self) -> int:
        return calculate_estimated_cost(self.waste_type, self.estimated_weight, bool(self.urgent_pickup))

    def refresh_estimated_cost(self) -> None:
        self.estimated_cost = self.calculate_estimated_cost()

    def add_status_update(
        self,
        status: str,
        message: Optional[str] = None,
        location: Optional[Dict[str, Any]] = None,
        photos: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Append to the history and move ``status`` in one step."""
        if status not in PICKUP_STATUSES:
            raise AppError(f"Unknown status '{status}'", "INVALID_STATUS")
        current = self.status or "pending"
        if status not in STATUS_TRANSITIONS[current]:
            raise AppError(f"Cannot change status from {current} to {status}", "INVALID_STATUS")
        entry = self._history_entry(status, message, location, photos, now)
        # reassign so the JSON column is flagged dirty
        self.status_updates = [*(self.status_updates or []), entry]
        self.status = status
        return entry

    def start_history(self, message: str = "Pickup request created", now: Optional[datetime] = None) -> None:
        self.status = "pending"
        self.status_updates = [self._history_entry("pending", message, None, None, now)]

    def add_photos(self, urls: List[str]) -> None:
        self.photos = [*(self.photos or []), *urls]

    def current_location(self) -> Optional[Dict[str, Any]]:
        if not self.status_updates:
            return None
        return self.status_updates[-1].get("location") or None

    @staticmethod
    def _history_entry(status, message, location, photos, now) -> Dict[str, Any]:
        return {
            "status": status,
            "message": message,
            "timestamp": (now or datetime.utcnow()).isoformat(),
            "location": location,
            "photos": list(photos or []),
        }
