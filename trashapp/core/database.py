from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from trashapp.core.config import settings

# Базовый класс для моделей
Base = declarative_base()

# Движок SQLAlchemy для асинхронной работы
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

# Фабрика сессий
AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Сессия БД на один запрос
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
