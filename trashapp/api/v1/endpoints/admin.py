from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core import responses
from trashapp.core.database import get_db
from trashapp.core.dependencies import require_admin
from trashapp.core.pagination import PaginationParams, get_pagination, pagination_metadata
from trashapp.api.v1.endpoints.pickups import serialize_pickup
from trashapp.api.v1.endpoints.recurring import serialize_schedule
from trashapp.schemas.pickup import AssignDriverRequest, PickupStatus, StatusUpdateRequest, WasteType
from trashapp.schemas.user import DriverSummary, UserProfile
from trashapp.services.admin import AdminService
from trashapp.services.pickup import PickupFilters, PickupService
from trashapp.services.recurring import RecurringScheduleService
from trashapp.services.user import UserService

# every route here is admin-only
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/dashboard/stats")
async def get_admin_dashboard(db: AsyncSession = Depends(get_db)):
    stats = await AdminService(db).dashboard_stats()
    return responses.success(stats, "Admin dashboard stats retrieved successfully")


@router.get("/pickups")
async def get_admin_pickups(
    status: Optional[PickupStatus] = Query(None),
    waste_type: Optional[WasteType] = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    db: AsyncSession = Depends(get_db),
):
    filters = PickupFilters(status=status, waste_type=waste_type)
    pickups, total = await PickupService(db).list_all(pagination, filters)
    return responses.success(
        [serialize_pickup(p) for p in pickups],
        "Admin pickups list retrieved successfully",
        pagination_metadata(total, pagination.page, pagination.page_size),
    )


@router.post("/pickups/assign")
async def assign_pickup_driver(payload: AssignDriverRequest, db: AsyncSession = Depends(get_db)):
    pickup = await PickupService(db).assign_driver(payload.pickup_id, payload.driver_id, payload.message)
    return responses.success(serialize_pickup(pickup), "Driver assigned successfully")


@router.patch("/pickups/{pickup_id}/status")
async def update_pickup_status(
    pickup_id: int,
    payload: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    pickup = await PickupService(db).advance_status(
        pickup_id,
        payload.status,
        message=payload.message,
        location=payload.location.model_dump() if payload.location else None,
        photos=payload.photos,
        actual_weight=payload.actual_weight,
        actual_cost=payload.actual_cost,
        completion_notes=payload.completion_notes,
    )
    return responses.success(serialize_pickup(pickup), "Pickup status updated successfully")


@router.get("/drivers")
async def get_admin_drivers(
    pagination: PaginationParams = Depends(get_pagination),
    db: AsyncSession = Depends(get_db),
):
    drivers, total = await UserService(db).list_users(pagination, roles=["driver"])
    return responses.success(
        [DriverSummary.model_validate(d).model_dump(mode="json") for d in drivers],
        "Admin drivers list retrieved successfully",
        pagination_metadata(total, pagination.page, pagination.page_size),
    )


@router.get("/users")
async def get_admin_users(
    pagination: PaginationParams = Depends(get_pagination),
    db: AsyncSession = Depends(get_db),
):
    users, total = await UserService(db).list_users(pagination, exclude_roles=["admin"])
    return responses.success(
        [UserProfile.model_validate(u).model_dump(mode="json") for u in users],
        "Admin users list retrieved successfully",
        pagination_metadata(total, pagination.page, pagination.page_size),
    )


@router.post("/recurring/{schedule_id}/generate")
async def generate_scheduled_pickup(schedule_id: int, db: AsyncSession = Depends(get_db)):
    """Создает заявку по расписанию и сдвигает next_pickup_date."""
    pickup, schedule = await RecurringScheduleService(db).generate_pickup(schedule_id)
    return responses.created(
        {"pickup": serialize_pickup(pickup), "schedule": serialize_schedule(schedule)},
        "Scheduled pickup generated successfully",
    )
