from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime, Boolean

from trashapp.core.config import settings
from trashapp.core.database import Base
from trashapp.core.security import generate_opaque_token


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=True)  # пусто только у Google-аккаунтов
    role = Column(String, default="customer", nullable=False)  # customer, driver, admin
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)

    # Google
    google_id = Column(String, unique=True, index=True, nullable=True)
    google_email = Column(String, nullable=True)
    is_google_linked = Column(Boolean, default=False, nullable=False)

    # Одноразовые токены
    email_verification_token = Column(String, index=True, nullable=True)
    email_verification_expires = Column(DateTime, nullable=True)
    password_reset_token = Column(String, index=True, nullable=True)
    password_reset_expires = Column(DateTime, nullable=True)

    # Блокировка после неудачных попыток входа
    login_attempts = Column(Integer, default=0, nullable=False)
    lock_until = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return self.lock_until is not None and self.lock_until > now

    def has_usable_password(self) -> bool:
        return bool(self.hashed_password)

    def register_failed_login(self, now: Optional[datetime] = None) -> None:
        """Count a bad password; lock the account once the limit is hit."""
        now = now or datetime.utcnow()
        if self.lock_until is not None and self.lock_until <= now:
            # previous lock expired, start counting again
            self.login_attempts = 1
            self.lock_until = None
            return
        self.login_attempts = (self.login_attempts or 0) + 1
        if self.login_attempts >= settings.MAX_LOGIN_ATTEMPTS and not self.is_locked(now):
            self.lock_until = now + timedelta(minutes=settings.LOCK_TIME_MINUTES)

    def register_successful_login(self, now: Optional[datetime] = None) -> None:
        self.login_attempts = 0
        self.lock_until = None
        self.last_login = now or datetime.utcnow()

    def generate_email_verification_token(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.utcnow()
        token = generate_opaque_token()
        self.email_verification_token = token
        self.email_verification_expires = now + timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
        return token

    def generate_password_reset_token(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.utcnow()
        token = generate_opaque_token()
        self.password_reset_token = token
        self.password_reset_expires = now + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        return token

    def clear_email_verification(self) -> None:
        self.email_verification_token = None
        self.email_verification_expires = None

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None
