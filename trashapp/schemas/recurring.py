from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from trashapp.schemas.pickup import Coordinates, Frequency, TimeSlot, WasteType


class RecurringScheduleCreate(BaseModel):
    frequency: Frequency
    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None
    time_slot: TimeSlot
    waste_type: WasteType
    address: str = Field(..., min_length=1)
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None
    special_instructions: Optional[str] = None

    @field_validator("address")
    @classmethod
    def strip_address(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Address is required")
        return cleaned


class RecurringScheduleResponse(BaseModel):
    id: int
    user_id: int
    frequency: Frequency
    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None
    time_slot: TimeSlot
    waste_type: WasteType
    address: str
    coordinates: Optional[Coordinates] = None
    is_active: bool
    next_pickup_date: date
    notes: Optional[str] = None
    special_instructions: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
