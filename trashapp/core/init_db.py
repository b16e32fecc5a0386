import logging

from trashapp.core.config import settings
from trashapp.core.database import Base, AsyncSessionLocal, engine

# Импортируем модели чтобы они попали в metadata перед созданием таблиц
from trashapp.models import user  # noqa: F401
from trashapp.models import refresh_token  # noqa: F401
from trashapp.models import recurring_schedule  # noqa: F401
from trashapp.models import pickup  # noqa: F401
from trashapp.services.auth import AuthService

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Создание таблиц и очистка просроченных refresh-токенов."""
    # Гарантируем наличие директорий для базы и загрузок
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # refresh-токены не удаляются сами: чистим просроченные при старте
    async with AsyncSessionLocal() as session:
        purged = await AuthService(session).purge_expired_tokens()
    logger.info("Database ready, purged %d expired refresh token(s)", purged)
