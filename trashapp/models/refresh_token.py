from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey

from trashapp.core.config import settings
from trashapp.core.database import Base
from trashapp.core.security import generate_opaque_token


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    is_revoked = Column(Boolean, default=False, nullable=False)
    user_agent = Column(String, nullable=True)
    ip = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    @classmethod
    def issue(
        cls,
        user_id: int,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "RefreshToken":
        now = now or datetime.utcnow()
        return cls(
            token=generate_opaque_token(),
            user_id=user_id,
            expires_at=now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            is_revoked=False,
            user_agent=user_agent,
            ip=ip,
            created_at=now,
        )

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return not self.is_revoked and self.expires_at > now

    def revoke(self) -> None:
        self.is_revoked = True
