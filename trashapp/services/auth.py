import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core.errors import (
    AccountLockedError,
    AppError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from trashapp.core.security import create_access_token, get_password_hash, verify_password
from trashapp.models.refresh_token import RefreshToken
from trashapp.models.user import User
from trashapp.schemas.user import UserBrief
from trashapp.services.google_oauth import GoogleProfile, resolve_google_user
from trashapp.services.notifications import Notifier, notifier as default_notifier
from trashapp.services.user import UserService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession, notifier: Optional[Notifier] = None):
        self.db = db
        self.users = UserService(db)
        self.notifier = notifier or default_notifier

    # -- tokens --------------------------------------------------------------

    def create_token(self, user_id: int, now: Optional[datetime] = None) -> str:
        """JWT access token for the user."""
        return create_access_token(user_id, now=now)

    async def issue_tokens(
        self,
        user: User,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        refresh = RefreshToken.issue(user.id, user_agent=user_agent, ip=ip, now=now)
        self.db.add(refresh)
        await self.db.flush()
        return {
            "access_token": self.create_token(user.id, now=now),
            "refresh_token": refresh.token,
            "token_type": "bearer",
            "user": UserBrief.model_validate(user).model_dump(),
        }

    async def find_valid_refresh_token(self, token: str, now: Optional[datetime] = None) -> RefreshToken | None:
        now = now or datetime.utcnow()
        result = await self.db.execute(
            select(RefreshToken).where(
                RefreshToken.token == token,
                RefreshToken.is_revoked == False,  # noqa: E712
                RefreshToken.expires_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def purge_expired_tokens(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        result = await self.db.execute(delete(RefreshToken).where(RefreshToken.expires_at <= now))
        await self.db.commit()
        return result.rowcount or 0

    # -- password auth -------------------------------------------------------

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> dict:
        if await self.users.get_by_email(email):
            raise ConflictError("email", "User already exists")
        user = await self.users.create(name=name, email=email, password=password)
        tokens = await self.issue_tokens(user, user_agent, ip)
        await self.db.commit()
        logger.info("Registered user %s", user.id)
        return tokens

    async def login(
        self,
        email: str,
        password: str,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        now = now or datetime.utcnow()
        user = await self.users.get_by_email(email)
        if not user:
            raise UnauthorizedError("Invalid credentials")

        # lock is checked before the password is even looked at
        if user.is_locked(now):
            raise AccountLockedError()

        if not verify_password(password, user.hashed_password):
            user.register_failed_login(now)
            await self.db.commit()
            if user.is_locked(now):
                logger.warning("User %s locked after %d failed logins", user.id, user.login_attempts)
            raise UnauthorizedError("Invalid credentials")

        if not user.is_active:
            raise UnauthorizedError("Account is disabled")

        user.register_successful_login(now)
        tokens = await self.issue_tokens(user, user_agent, ip, now=now)
        await self.db.commit()
        return tokens

    async def logout(self, refresh_token: Optional[str]) -> None:
        if not refresh_token:
            return
        result = await self.db.execute(select(RefreshToken).where(RefreshToken.token == refresh_token))
        token = result.scalar_one_or_none()
        if token is not None:
            token.revoke()
            await self.db.commit()
            logger.info("Revoked refresh token for user %s", token.user_id)

    async def refresh_access_token(self, refresh_token: Optional[str], now: Optional[datetime] = None) -> str:
        if not refresh_token:
            raise AppError("Refresh token is required", "MISSING_REFRESH_TOKEN")
        token = await self.find_valid_refresh_token(refresh_token, now)
        if token is None:
            raise UnauthorizedError("Invalid or expired refresh token")
        user = await self.users.get_by_id(token.user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("Invalid or expired refresh token")
        return self.create_token(user.id, now=now)

    # -- password & email flows ----------------------------------------------

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            raise AppError("Current password is incorrect", "INVALID_PASSWORD")
        user.hashed_password = get_password_hash(new_password)
        await self.db.commit()

    async def request_password_reset(self, email: str, now: Optional[datetime] = None) -> None:
        user = await self.users.get_by_email(email)
        if not user:
            raise NotFoundError("User")
        token = user.generate_password_reset_token(now)
        await self.db.commit()
        await self.notifier.send_password_reset(user, token)

    async def confirm_password_reset(self, token: str, password: str, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        result = await self.db.execute(
            select(User).where(User.password_reset_token == token, User.password_reset_expires > now)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise AppError("Invalid or expired reset token", "INVALID_TOKEN")
        user.hashed_password = get_password_hash(password)
        user.clear_password_reset()
        # a fresh password lifts any lock
        user.login_attempts = 0
        user.lock_until = None
        await self.db.commit()

    async def verify_email(self, token: str, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        result = await self.db.execute(
            select(User).where(User.email_verification_token == token, User.email_verification_expires > now)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise AppError("Invalid or expired verification token", "INVALID_TOKEN")
        user.is_email_verified = True
        user.clear_email_verification()
        await self.db.commit()

    async def resend_email_verification(self, user: User, now: Optional[datetime] = None) -> None:
        if user.is_email_verified:
            raise AppError("Email is already verified", "ALREADY_VERIFIED")
        token = user.generate_email_verification_token(now)
        await self.db.commit()
        await self.notifier.send_email_verification(user, token)

    # -- Google ----------------------------------------------------------------

    async def google_login(
        self,
        profile: GoogleProfile,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> dict:
        by_google_id = await self.users.get_by_google_id(profile.google_id)
        by_email = None if by_google_id else await self.users.get_by_email(profile.email)
        user, action = resolve_google_user(by_google_id, by_email, profile)
        if action == "created":
            self.db.add(user)
            await self.db.flush()
        if not user.is_active:
            raise UnauthorizedError("Account is disabled")
        user.register_successful_login()
        tokens = await self.issue_tokens(user, user_agent, ip)
        await self.db.commit()
        logger.info("Google login for user %s (%s)", user.id, action)
        return tokens

    async def link_google(self, user: User, profile: GoogleProfile) -> User:
        result = await self.db.execute(
            select(User).where(User.google_id == profile.google_id, User.id != user.id)
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError("google_id", "Google account is already linked to another user")
        user.google_id = profile.google_id
        user.google_email = profile.email
        user.is_google_linked = True
        await self.db.commit()
        return user

    async def unlink_google(self, user: User) -> User:
        if not user.has_usable_password():
            raise AppError("Set a password before unlinking Google", "PASSWORD_REQUIRED")
        user.google_id = None
        user.google_email = None
        user.is_google_linked = False
        await self.db.commit()
        return user
