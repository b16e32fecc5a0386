from datetime import datetime
from pydantic import BaseModel
from typing import Optional

# Публичное представление пользователя: без пароля и одноразовых токенов
class UserBrief(BaseModel):
    id: int
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class UserProfile(UserBrief):
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    is_email_verified: bool = False
    is_google_linked: bool = False
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DriverSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
