from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core.pagination import PaginationParams, search_filter
from trashapp.core.security import get_password_hash
from trashapp.models.user import User

USER_SEARCH_FIELDS = (User.name, User.email, User.phone)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_google_id(self, google_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.google_id == google_id))
        return result.scalar_one_or_none()

    async def create(self, name: str, email: str, password: str, role: str = "customer") -> User:
        user = User(
            name=name,
            email=email.lower(),
            hashed_password=get_password_hash(password),
            role=role,
            is_active=True,
            is_email_verified=False,
            is_google_linked=False,
            login_attempts=0,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def list_users(
        self,
        pagination: PaginationParams,
        roles: Optional[Sequence[str]] = None,
        exclude_roles: Optional[Sequence[str]] = None,
    ) -> Tuple[List[User], int]:
        """Paginated listing, newest first."""
        conditions = []
        if roles:
            conditions.append(User.role.in_(list(roles)))
        if exclude_roles:
            conditions.append(User.role.not_in(list(exclude_roles)))
        search = search_filter(pagination.search, USER_SEARCH_FIELDS)
        if search is not None:
            conditions.append(search)

        total = await self.db.scalar(select(func.count()).select_from(User).where(*conditions))
        result = await self.db.execute(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(pagination.skip)
            .limit(pagination.limit)
        )
        return list(result.scalars()), total or 0
