from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from trashapp.core.database import get_db
from trashapp.core.errors import ForbiddenError, UnauthorizedError
from trashapp.core.security import decode_access_token
from trashapp.models.user import User
from trashapp.services.user import UserService

# Схема безопасности
security = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Текущий пользователь из JWT токена.
    None, если токен не передан или невалиден (для опциональной авторизации).
    """
    if not credentials:
        return None

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        return None

    user = await UserService(db).get_by_id(user_id)
    if user is None or not user.is_active:
        return None

    return user

async def require_auth(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """Для эндпоинтов, которые обязательно требуют авторизации."""
    if current_user is None:
        raise UnauthorizedError("Not authorized, token missing or invalid")
    return current_user

async def require_admin(
    current_user: User = Depends(require_auth)
) -> User:
    if current_user.role != "admin":
        raise ForbiddenError("Admin access required")
    return current_user
