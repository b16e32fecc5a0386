import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core.errors import AppError, NotFoundError
from trashapp.core.pagination import PaginationParams, search_filter
from trashapp.models.pickup import COST_FIELDS, PICKUP_STATUSES, Pickup
from trashapp.models.user import User
from trashapp.schemas.pickup import PickupCreate, PickupUpdate
from trashapp.services.notifications import Notifier, notifier as default_notifier
from trashapp.services.storage import PhotoStorage, photo_storage

logger = logging.getLogger(__name__)

PICKUP_SEARCH_FIELDS = (Pickup.address, Pickup.notes, Pickup.special_instructions)
DATE_RANGES = {"today": 1, "week": 7, "month": 30}


def start_of_day(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def check_pickup_date(pickup_date: datetime, now: Optional[datetime] = None) -> None:
    if pickup_date < start_of_day(now):
        raise AppError("Pickup date cannot be in the past", "INVALID_DATE")


def check_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise AppError("Rating must be between 1 and 5", "INVALID_RATING")
    return rating


@dataclass
class PickupFilters:
    status: Optional[str] = None
    waste_type: Optional[str] = None
    date_range: Optional[str] = None
    urgent_only: bool = False
    recurring_only: bool = False


def filter_conditions(filters: PickupFilters, now: Optional[datetime] = None) -> List[Any]:
    conditions: List[Any] = []
    if filters.status:
        conditions.append(Pickup.status == filters.status)
    if filters.waste_type:
        conditions.append(Pickup.waste_type == filters.waste_type)
    if filters.urgent_only:
        conditions.append(Pickup.urgent_pickup == True)  # noqa: E712
    if filters.recurring_only:
        conditions.append(Pickup.recurring_pickup == True)  # noqa: E712
    if filters.date_range:
        today = start_of_day(now)
        if filters.date_range == "past":
            conditions.append(Pickup.pickup_date < today)
        elif filters.date_range in DATE_RANGES:
            conditions.append(Pickup.pickup_date >= today)
            conditions.append(Pickup.pickup_date < today + timedelta(days=DATE_RANGES[filters.date_range]))
        else:
            raise AppError(
                "date_range must be one of today, week, month, past",
                "INVALID_DATE_RANGE",
            )
    return conditions


class PickupService:
    def __init__(
        self,
        db: AsyncSession,
        storage: Optional[PhotoStorage] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.db = db
        self.storage = storage or photo_storage
        self.notifier = notifier or default_notifier

    async def _get(self, pickup_id: int) -> Pickup:
        result = await self.db.execute(select(Pickup).where(Pickup.id == pickup_id))
        pickup = result.scalar_one_or_none()
        if not pickup:
            raise NotFoundError("Pickup")
        return pickup

    async def get_owned(self, pickup_id: int, owner_id: int) -> Pickup:
        result = await self.db.execute(
            select(Pickup).where(Pickup.id == pickup_id, Pickup.user_id == owner_id)
        )
        pickup = result.scalar_one_or_none()
        if not pickup:
            raise NotFoundError("Pickup")
        return pickup

    async def create(
        self,
        owner_id: int,
        data: PickupCreate,
        recurring_schedule_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Pickup:
        check_pickup_date(data.pickup_date, now)
        pickup = Pickup(user_id=owner_id, recurring_schedule_id=recurring_schedule_id, photos=[], **data.model_dump())
        pickup.start_history(now=now)
        pickup.refresh_estimated_cost()
        self.db.add(pickup)
        await self.db.commit()
        await self.db.refresh(pickup)
        logger.info("Pickup %s requested by user %s", pickup.id, owner_id)
        return pickup

    async def update(self, pickup_id: int, owner_id: int, patch: PickupUpdate, now: Optional[datetime] = None) -> Pickup:
        pickup = await self.get_owned(pickup_id, owner_id)
        if pickup.is_terminal:
            raise AppError(f"Cannot update a {pickup.status} pickup", "INVALID_STATUS")

        changes = patch.model_dump(exclude_unset=True)
        # explicit nulls are ignored for required columns
        for required in ("address", "waste_type", "pickup_date", "pickup_time", "urgent_pickup", "recurring_pickup"):
            if changes.get(required, ...) is None:
                changes.pop(required)
        if "pickup_date" in changes:
            check_pickup_date(changes["pickup_date"], now)

        for field, value in changes.items():
            setattr(pickup, field, value)
        if any(field in changes for field in COST_FIELDS):
            pickup.refresh_estimated_cost()

        await self.db.commit()
        await self.db.refresh(pickup)
        return pickup

    async def cancel(self, pickup_id: int, owner_id: int, reason: Optional[str] = None) -> Pickup:
        pickup = await self.get_owned(pickup_id, owner_id)
        if pickup.is_terminal:
            raise AppError(f"Cannot cancel a {pickup.status} pickup", "INVALID_STATUS")
        pickup.add_status_update("cancelled", reason or "Pickup cancelled by customer")
        await self.db.commit()
        await self.db.refresh(pickup)
        return pickup

    async def rate(self, pickup_id: int, owner_id: int, rating: Any, feedback: Optional[str] = None) -> Pickup:
        rating = check_rating(rating)
        pickup = await self.get_owned(pickup_id, owner_id)
        if pickup.status != "completed":
            raise AppError("Only completed pickups can be rated", "INVALID_STATUS")
        pickup.rating = rating
        pickup.feedback = feedback
        await self.db.commit()
        await self.db.refresh(pickup)
        return pickup

    async def upload_photos(self, pickup_id: int, owner_id: int, files: Sequence[UploadFile]) -> Pickup:
        if not files:
            raise AppError("No photos uploaded", "NO_PHOTOS")
        pickup = await self.get_owned(pickup_id, owner_id)
        urls = await self.storage.save_many(files)
        pickup.add_photos(urls)
        await self.db.commit()
        await self.db.refresh(pickup)
        return pickup

    async def list_for_owner(
        self,
        owner_id: int,
        pagination: PaginationParams,
        filters: Optional[PickupFilters] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Pickup], int]:
        conditions = [Pickup.user_id == owner_id]
        return await self._list(conditions, pagination, filters, now)

    async def list_all(
        self,
        pagination: PaginationParams,
        filters: Optional[PickupFilters] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Pickup], int]:
        return await self._list([], pagination, filters, now)

    async def _list(self, conditions, pagination, filters, now) -> Tuple[List[Pickup], int]:
        conditions = [*conditions, *filter_conditions(filters or PickupFilters(), now)]
        search = search_filter(pagination.search, PICKUP_SEARCH_FIELDS)
        if search is not None:
            conditions.append(search)
        total = await self.db.scalar(select(func.count()).select_from(Pickup).where(*conditions))
        result = await self.db.execute(
            select(Pickup)
            .where(*conditions)
            .order_by(Pickup.created_at.desc(), Pickup.id.desc())
            .offset(pagination.skip)
            .limit(pagination.limit)
        )
        return list(result.scalars()), total or 0

    async def stats(self, owner_id: int) -> Dict[str, Any]:
        summary: Dict[str, Any] = {"total": 0, **{status: 0 for status in PICKUP_STATUSES}}
        counts = await self.db.execute(
            select(Pickup.status, func.count()).where(Pickup.user_id == owner_id).group_by(Pickup.status)
        )
        for status, count in counts.all():
            summary[status] = count
            summary["total"] += count

        totals = await self.db.execute(
            select(
                func.coalesce(func.sum(Pickup.actual_weight), 0),
                func.coalesce(func.sum(Pickup.actual_cost), 0),
                func.avg(Pickup.rating),
            ).where(Pickup.user_id == owner_id)
        )
        total_weight, total_cost, average_rating = totals.one()
        summary["total_weight"] = float(total_weight or 0)
        summary["total_cost"] = float(total_cost or 0)
        summary["average_rating"] = round(float(average_rating), 2) if average_rating is not None else 0
        return summary

    async def tracking(self, pickup_id: int, owner_id: int) -> Dict[str, Any]:
        pickup = await self.get_owned(pickup_id, owner_id)
        driver = None
        if pickup.assigned_driver_id:
            driver = await self.db.get(User, pickup.assigned_driver_id)
        return {
            "pickup_id": pickup.id,
            "status": pickup.status,
            "pickup_date": pickup.pickup_date,
            "pickup_time": pickup.pickup_time,
            "status_updates": pickup.status_updates or [],
            "current_location": pickup.current_location(),
            "assigned_driver": (
                {"id": driver.id, "name": driver.name, "phone": driver.phone} if driver else None
            ),
        }

    async def contact_driver(self, pickup_id: int, owner: User, message: Optional[str]) -> Dict[str, Any]:
        text = (message or "").strip()
        if not text:
            raise AppError("Message is required", "MISSING_MESSAGE")
        pickup = await self.get_owned(pickup_id, owner.id)
        if not pickup.assigned_driver_id:
            raise AppError("No driver assigned to this pickup yet", "NO_DRIVER")
        driver = await self.db.get(User, pickup.assigned_driver_id)
        if driver is None:
            raise AppError("No driver assigned to this pickup yet", "NO_DRIVER")
        await self.notifier.relay_to_driver(driver, pickup, owner, text)
        return {"pickup_id": pickup.id, "driver_name": driver.name, "driver_phone": driver.phone}

    # -- admin / driver side ---------------------------------------------------

    async def assign_driver(self, pickup_id: int, driver_id: int, message: Optional[str] = None) -> Pickup:
        pickup = await self._get(pickup_id)
        driver = await self.db.get(User, driver_id)
        if driver is None or driver.role != "driver" or not driver.is_active:
            raise AppError("Driver not found", "NO_DRIVER")
        pickup.add_status_update("assigned", message or f"Driver {driver.name} assigned")
        pickup.assigned_driver_id = driver.id
        await self.db.commit()
        await self.db.refresh(pickup)
        return pickup

    async def advance_status(
        self,
        pickup_id: int,
        status: str,
        message: Optional[str] = None,
        location: Optional[Dict[str, Any]] = None,
        photos: Optional[List[str]] = None,
        actual_weight: Optional[float] = None,
        actual_cost: Optional[float] = None,
        completion_notes: Optional[str] = None,
    ) -> Pickup:
        pickup = await self._get(pickup_id)
        if status == "assigned" and not pickup.assigned_driver_id:
            raise AppError("Assign a driver first", "NO_DRIVER")
        pickup.add_status_update(status, message, location, photos)
        if actual_weight is not None:
            pickup.actual_weight = actual_weight
        if actual_cost is not None:
            pickup.actual_cost = actual_cost
        if completion_notes is not None:
            pickup.completion_notes = completion_notes
        await self.db.commit()
        await self.db.refresh(pickup)
        return pickup
