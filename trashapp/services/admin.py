from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.models.pickup import Pickup
from trashapp.models.user import User

ACTIVE_STATUSES = ("pending", "assigned", "in_progress")


class AdminService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def dashboard_stats(self) -> Dict[str, Any]:
        """Headline numbers for the admin dashboard."""
        total_pickups = await self.db.scalar(select(func.count()).select_from(Pickup))
        active_pickups = await self.db.scalar(
            select(func.count()).select_from(Pickup).where(Pickup.status.in_(ACTIVE_STATUSES))
        )
        completed_pickups = await self.db.scalar(
            select(func.count()).select_from(Pickup).where(Pickup.status == "completed")
        )
        total_drivers = await self.db.scalar(
            select(func.count()).select_from(User).where(User.role == "driver")
        )
        total_users = await self.db.scalar(
            select(func.count()).select_from(User).where(User.role != "admin")
        )
        revenue = await self.db.scalar(
            select(func.coalesce(func.sum(Pickup.actual_cost), 0)).where(Pickup.status == "completed")
        )
        return {
            "totalPickups": total_pickups or 0,
            "activePickups": active_pickups or 0,
            "completedPickups": completed_pickups or 0,
            "totalDrivers": total_drivers or 0,
            "totalUsers": total_users or 0,
            "revenue": float(revenue or 0),
        }
