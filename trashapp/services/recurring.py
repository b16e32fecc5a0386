import logging
from datetime import date, datetime, time
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core.errors import AppError, NotFoundError, ValidationFailed
from trashapp.models.pickup import Pickup
from trashapp.models.recurring_schedule import (
    WEEKLY_FREQUENCIES,
    RecurringPickupSchedule,
    initial_next_pickup_date,
    validate_schedule_days,
)
from trashapp.schemas.recurring import RecurringScheduleCreate

logger = logging.getLogger(__name__)


class RecurringScheduleService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_owned(self, schedule_id: int, owner_id: int) -> RecurringPickupSchedule:
        result = await self.db.execute(
            select(RecurringPickupSchedule).where(
                RecurringPickupSchedule.id == schedule_id,
                RecurringPickupSchedule.user_id == owner_id,
            )
        )
        schedule = result.scalar_one_or_none()
        if not schedule:
            raise NotFoundError("Recurring schedule")
        return schedule

    async def get(self, schedule_id: int) -> RecurringPickupSchedule:
        schedule = await self.db.get(RecurringPickupSchedule, schedule_id)
        if not schedule:
            raise NotFoundError("Recurring schedule")
        return schedule

    async def create(self, owner_id: int, data: RecurringScheduleCreate, today: Optional[date] = None) -> RecurringPickupSchedule:
        errors = validate_schedule_days(data.frequency, data.day_of_week, data.day_of_month)
        if errors:
            raise ValidationFailed(errors)

        fields = data.model_dump()
        # only the day field matching the frequency is kept
        if data.frequency in WEEKLY_FREQUENCIES:
            fields["day_of_month"] = None
        else:
            fields["day_of_week"] = None

        schedule = RecurringPickupSchedule(
            user_id=owner_id,
            is_active=True,
            next_pickup_date=initial_next_pickup_date(
                data.frequency, fields["day_of_week"], fields["day_of_month"], today
            ),
            **fields,
        )
        self.db.add(schedule)
        await self.db.commit()
        await self.db.refresh(schedule)
        logger.info("Recurring schedule %s created, first pickup %s", schedule.id, schedule.next_pickup_date)
        return schedule

    async def list_for_owner(self, owner_id: int) -> List[RecurringPickupSchedule]:
        result = await self.db.execute(
            select(RecurringPickupSchedule)
            .where(RecurringPickupSchedule.user_id == owner_id)
            .order_by(RecurringPickupSchedule.created_at.desc(), RecurringPickupSchedule.id.desc())
        )
        return list(result.scalars())

    async def toggle_active(self, schedule_id: int, owner_id: int) -> RecurringPickupSchedule:
        schedule = await self.get_owned(schedule_id, owner_id)
        schedule.toggle_active()
        await self.db.commit()
        await self.db.refresh(schedule)
        return schedule

    async def advance(self, schedule: RecurringPickupSchedule) -> date:
        next_date = schedule.advance()
        await self.db.commit()
        return next_date

    async def generate_pickup(
        self, schedule_id: int, today: Optional[date] = None
    ) -> Tuple[Pickup, RecurringPickupSchedule]:
        """Materialize the next occurrence as a pickup, then move the schedule forward."""
        schedule = await self.get(schedule_id)
        if not schedule.is_active:
            raise AppError("Schedule is inactive", "SCHEDULE_INACTIVE")
        # never generate a pickup dated in the past
        schedule.catch_up(today)

        pickup = Pickup(
            user_id=schedule.user_id,
            address=schedule.address,
            coordinates=schedule.coordinates,
            notes=schedule.notes,
            waste_type=schedule.waste_type,
            pickup_date=datetime.combine(schedule.next_pickup_date, time.min),
            pickup_time=schedule.time_slot,
            urgent_pickup=False,
            recurring_pickup=True,
            recurring_frequency=schedule.frequency,
            photos=[],
            special_instructions=schedule.special_instructions,
            recurring_schedule_id=schedule.id,
        )
        pickup.start_history("Pickup generated from recurring schedule")
        pickup.refresh_estimated_cost()
        self.db.add(pickup)
        schedule.advance()
        await self.db.commit()
        await self.db.refresh(pickup)
        await self.db.refresh(schedule)
        logger.info("Schedule %s generated pickup %s, next on %s", schedule.id, pickup.id, schedule.next_pickup_date)
        return pickup, schedule
