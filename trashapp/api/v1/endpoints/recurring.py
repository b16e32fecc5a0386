from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core import responses
from trashapp.core.database import get_db
from trashapp.core.dependencies import require_auth
from trashapp.models.user import User
from trashapp.schemas.recurring import RecurringScheduleCreate, RecurringScheduleResponse
from trashapp.services.recurring import RecurringScheduleService

router = APIRouter()


def serialize_schedule(schedule) -> dict:
    return RecurringScheduleResponse.model_validate(schedule).model_dump(mode="json")


@router.get("")
async def get_recurring_schedules(
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    schedules = await RecurringScheduleService(db).list_for_owner(current_user.id)
    return responses.success(
        [serialize_schedule(s) for s in schedules],
        "Recurring schedules retrieved successfully",
    )


@router.post("/create")
async def create_recurring_schedule(
    payload: RecurringScheduleCreate,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    schedule = await RecurringScheduleService(db).create(current_user.id, payload)
    return responses.created(serialize_schedule(schedule), "Recurring schedule created successfully")


@router.get("/{schedule_id}")
async def get_recurring_schedule(
    schedule_id: int,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    schedule = await RecurringScheduleService(db).get_owned(schedule_id, current_user.id)
    return responses.success(serialize_schedule(schedule), "Recurring schedule retrieved successfully")


@router.patch("/{schedule_id}/toggle")
async def toggle_recurring_schedule(
    schedule_id: int,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    schedule = await RecurringScheduleService(db).toggle_active(schedule_id, current_user.id)
    state = "activated" if schedule.is_active else "paused"
    return responses.success(serialize_schedule(schedule), f"Recurring schedule {state}")
