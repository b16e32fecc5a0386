from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

WasteType = Literal["general", "recyclable", "hazardous"]
TimeSlot = Literal["morning", "afternoon", "evening"]
Frequency = Literal["weekly", "biweekly", "monthly"]
PickupStatus = Literal["pending", "assigned", "in_progress", "completed", "cancelled"]


def check_coordinates(value: List[float]) -> List[float]:
    """[longitude, latitude]"""
    if len(value) != 2:
        raise ValueError("Coordinates must be [longitude, latitude]")
    lng, lat = value
    if not -180 <= lng <= 180 or not -90 <= lat <= 90:
        raise ValueError("Coordinates out of range")
    return [float(lng), float(lat)]


Coordinates = Annotated[List[float], AfterValidator(check_coordinates)]


def parse_pickup_date(value: Any) -> Any:
    # accept plain dates ("2025-01-31") as midnight
    if isinstance(value, str) and len(value) == 10:
        return f"{value}T00:00:00"
    return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class PickupCreate(BaseModel):
    address: str = Field(..., min_length=1)
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None
    waste_type: WasteType
    pickup_date: datetime
    pickup_time: TimeSlot = "morning"
    estimated_weight: Optional[float] = Field(None, ge=0)
    urgent_pickup: bool = False
    recurring_pickup: bool = False
    recurring_frequency: Optional[Frequency] = None
    special_instructions: Optional[str] = None

    @field_validator("address")
    @classmethod
    def strip_address(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Address is required")
        return cleaned

    @field_validator("pickup_date", mode="before")
    @classmethod
    def date_only(cls, value: Any) -> Any:
        return parse_pickup_date(value)

    @field_validator("pickup_date")
    @classmethod
    def naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class PickupUpdate(BaseModel):
    address: Optional[str] = Field(None, min_length=1)
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None
    waste_type: Optional[WasteType] = None
    pickup_date: Optional[datetime] = None
    pickup_time: Optional[TimeSlot] = None
    estimated_weight: Optional[float] = Field(None, ge=0)
    urgent_pickup: Optional[bool] = None
    recurring_pickup: Optional[bool] = None
    recurring_frequency: Optional[Frequency] = None
    special_instructions: Optional[str] = None

    @field_validator("pickup_date", mode="before")
    @classmethod
    def date_only(cls, value: Any) -> Any:
        return parse_pickup_date(value)

    @field_validator("pickup_date")
    @classmethod
    def naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class RateRequest(BaseModel):
    rating: int = Field(..., strict=True)
    feedback: Optional[str] = None


class ContactDriverRequest(BaseModel):
    message: Optional[str] = None


class LocationIn(BaseModel):
    coordinates: Coordinates
    address: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: PickupStatus
    message: Optional[str] = None
    location: Optional[LocationIn] = None
    photos: List[str] = Field(default_factory=list)
    actual_weight: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    completion_notes: Optional[str] = None


class AssignDriverRequest(BaseModel):
    pickup_id: int
    driver_id: int
    message: Optional[str] = None


class StatusUpdateEntry(BaseModel):
    status: PickupStatus
    message: Optional[str] = None
    timestamp: datetime
    location: Optional[Dict[str, Any]] = None
    photos: List[str] = Field(default_factory=list)


class PickupResponse(BaseModel):
    id: int
    user_id: int
    address: str
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None
    status: PickupStatus
    waste_type: WasteType
    pickup_date: datetime
    pickup_time: TimeSlot
    estimated_weight: Optional[float] = None
    actual_weight: Optional[float] = None
    urgent_pickup: bool
    recurring_pickup: bool
    recurring_frequency: Optional[Frequency] = None
    photos: List[str] = Field(default_factory=list)
    special_instructions: Optional[str] = None
    assigned_driver_id: Optional[int] = None
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    completion_notes: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    recurring_schedule_id: Optional[int] = None
    status_updates: List[StatusUpdateEntry] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
