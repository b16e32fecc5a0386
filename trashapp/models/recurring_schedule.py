import calendar
from datetime import date, datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, ForeignKey, JSON

from trashapp.core.database import Base

WEEKLY_FREQUENCIES = ("weekly", "biweekly")


def js_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday, the numbering clients send."""
    return (day.weekday() + 1) % 7


def add_months(day: date, months: int, day_of_month: Optional[int] = None) -> date:
    """Shift by whole months, clamping to the last day of the target month."""
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    wanted = day_of_month or day.day
    return date(year, month, min(wanted, calendar.monthrange(year, month)[1]))


def validate_schedule_days(frequency: str, day_of_week: Optional[int], day_of_month: Optional[int]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if frequency in WEEKLY_FREQUENCIES:
        if day_of_week is None:
            errors["day_of_week"] = "Day of week is required for weekly and biweekly schedules"
        elif not 0 <= day_of_week <= 6:
            errors["day_of_week"] = "Day of week must be between 0-6"
    elif frequency == "monthly":
        if day_of_month is None:
            errors["day_of_month"] = "Day of month is required for monthly schedules"
        elif not 1 <= day_of_month <= 31:
            errors["day_of_month"] = "Day of month must be between 1-31"
    else:
        errors["frequency"] = "Frequency must be one of weekly, biweekly, monthly"
    return errors


def initial_next_pickup_date(
    frequency: str,
    day_of_week: Optional[int] = None,
    day_of_month: Optional[int] = None,
    today: Optional[date] = None,
) -> date:
    today = today or datetime.utcnow().date()
    if frequency in WEEKLY_FREQUENCIES:
        # on or after today
        return today + timedelta(days=(day_of_week - js_weekday(today)) % 7)
    candidate = add_months(today, 0, day_of_month)
    if candidate <= today:
        candidate = add_months(today, 1, day_of_month)
    return candidate


def advance_date(current: date, frequency: str, day_of_month: Optional[int] = None) -> date:
    if frequency == "weekly":
        return current + timedelta(weeks=1)
    if frequency == "biweekly":
        return current + timedelta(weeks=2)
    if frequency == "monthly":
        return add_months(current, 1, day_of_month)
    raise ValueError(f"unknown frequency: {frequency}")


class RecurringPickupSchedule(Base):
    __tablename__ = "recurring_pickup_schedules"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    frequency = Column(String, nullable=False)  # weekly, biweekly, monthly
    day_of_week = Column(Integer, nullable=True)  # 0 = Sunday
    day_of_month = Column(Integer, nullable=True)
    time_slot = Column(String, nullable=False)
    waste_type = Column(String, nullable=False)
    address = Column(String, nullable=False)
    coordinates = Column(JSON, nullable=True)  # [longitude, latitude]
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    next_pickup_date = Column(Date, nullable=False, index=True)
    notes = Column(String, nullable=True)
    special_instructions = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def calculate_next_pickup_date(self) -> date:
        current = self.next_pickup_date or datetime.utcnow().date()
        return advance_date(current, self.frequency, self.day_of_month)

    def catch_up(self, today: Optional[date] = None) -> date:
        """Skip occurrences that already passed, e.g. after the schedule sat idle."""
        today = today or datetime.utcnow().date()
        while self.next_pickup_date < today:
            self.advance()
        return self.next_pickup_date

    def advance(self) -> date:
        self.next_pickup_date = self.calculate_next_pickup_date()
        return self.next_pickup_date

    def toggle_active(self) -> bool:
        self.is_active = not self.is_active
        return self.is_active
