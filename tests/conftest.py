from datetime import datetime, timedelta

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from trashapp.core.database import Base, get_db
from trashapp.main import app
from trashapp.models import pickup, recurring_schedule, refresh_token, user  # noqa: F401
from trashapp.schemas.pickup import PickupCreate
from trashapp.services.user import UserService

PASSWORD = "secret123"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def customer(db):
    user = await UserService(db).create("Ann Customer", "ann@example.com", PASSWORD)
    await db.commit()
    return user


@pytest.fixture
async def driver(db):
    user = await UserService(db).create("Dan Driver", "dan@example.com", PASSWORD, role="driver")
    user.phone = "+15550100"
    await db.commit()
    return user


def tomorrow() -> datetime:
    return datetime.utcnow().replace(microsecond=0) + timedelta(days=1)


def pickup_payload(**overrides) -> PickupCreate:
    data = {
        "address": "12 Green St",
        "waste_type": "general",
        "pickup_date": tomorrow(),
    }
    data.update(overrides)
    return PickupCreate(**data)
