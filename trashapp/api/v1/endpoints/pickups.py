from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core import responses
from trashapp.core.database import get_db
from trashapp.core.dependencies import require_auth
from trashapp.core.pagination import PaginationParams, get_pagination, pagination_metadata
from trashapp.models.user import User
from trashapp.schemas.pickup import (
    CancelRequest,
    ContactDriverRequest,
    PickupCreate,
    PickupResponse,
    PickupStatus,
    PickupUpdate,
    RateRequest,
    WasteType,
)
from trashapp.services.pickup import PickupFilters, PickupService

router = APIRouter()


def serialize_pickup(pickup) -> dict:
    return PickupResponse.model_validate(pickup).model_dump(mode="json")


@router.post("/request")
async def create_pickup(
    payload: PickupCreate,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Новая заявка на вывоз, стоимость считается автоматически."""
    pickup = await PickupService(db).create(current_user.id, payload)
    return responses.created(serialize_pickup(pickup), "Pickup request created successfully")


@router.get("/my")
async def get_my_pickups(
    status: Optional[PickupStatus] = Query(None),
    waste_type: Optional[WasteType] = Query(None),
    date_range: Optional[Literal["today", "week", "month", "past"]] = Query(None),
    urgent_only: bool = Query(False),
    recurring_only: bool = Query(False),
    pagination: PaginationParams = Depends(get_pagination),
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    filters = PickupFilters(
        status=status,
        waste_type=waste_type,
        date_range=date_range,
        urgent_only=urgent_only,
        recurring_only=recurring_only,
    )
    pickups, total = await PickupService(db).list_for_owner(current_user.id, pagination, filters)
    return responses.success(
        [serialize_pickup(p) for p in pickups],
        "Pickups retrieved successfully",
        pagination_metadata(total, pagination.page, pagination.page_size),
    )


@router.get("/stats")
async def get_pickup_stats(
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    stats = await PickupService(db).stats(current_user.id)
    return responses.success(stats, "Pickup statistics retrieved successfully")


@router.get("/{pickup_id}")
async def get_pickup(
    pickup_id: int,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    pickup = await PickupService(db).get_owned(pickup_id, current_user.id)
    return responses.success(serialize_pickup(pickup), "Pickup details retrieved successfully")


@router.put("/{pickup_id}")
async def update_pickup(
    pickup_id: int,
    payload: PickupUpdate,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    pickup = await PickupService(db).update(pickup_id, current_user.id, payload)
    return responses.success(serialize_pickup(pickup), "Pickup updated successfully")


@router.patch("/{pickup_id}/cancel")
async def cancel_pickup(
    pickup_id: int,
    payload: Optional[CancelRequest] = None,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    reason = payload.reason if payload else None
    pickup = await PickupService(db).cancel(pickup_id, current_user.id, reason)
    return responses.success(serialize_pickup(pickup), "Pickup cancelled successfully")


@router.post("/{pickup_id}/photos")
async def upload_pickup_photos(
    pickup_id: int,
    photos: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    pickup = await PickupService(db).upload_photos(pickup_id, current_user.id, photos or [])
    return responses.success(
        {"id": pickup.id, "photos": pickup.photos},
        "Photos uploaded successfully",
    )


@router.get("/{pickup_id}/tracking")
async def get_pickup_tracking(
    pickup_id: int,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    tracking = await PickupService(db).tracking(pickup_id, current_user.id)
    return responses.success(tracking, "Pickup tracking retrieved successfully")


@router.post("/{pickup_id}/rate")
async def rate_pickup(
    pickup_id: int,
    payload: RateRequest,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    pickup = await PickupService(db).rate(pickup_id, current_user.id, payload.rating, payload.feedback)
    return responses.success(serialize_pickup(pickup), "Pickup rated successfully")


@router.post("/{pickup_id}/contact-driver")
async def contact_driver(
    pickup_id: int,
    payload: ContactDriverRequest,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    result = await PickupService(db).contact_driver(pickup_id, current_user, payload.message)
    return responses.success(result, "Message sent to driver")
