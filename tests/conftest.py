import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from carelink.models import Base
from carelink.db import crud


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def patient(db):
    return await crud.create_user(
        db, account_type="patient", full_name="Jane Patient",
        phone="555-0100", email="jane@example.com",
    )


@pytest_asyncio.fixture
async def partner(db):
    return await crud.create_user(
        db, account_type="partner", full_name="Ravi Kumar", business_name="Ravi Biomed",
        phone="555-0199", email="ravi@example.com", profession="biomedical engineer",
        profile_picture_url="https://cdn.example.com/ravi.png", is_verified=True,
    )
