import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator

TEST_DB_PATH = Path(tempfile.gettempdir()) / f"workout_tracker_test_{os.getpid()}.db"
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DB_PATH}")
os.environ.setdefault("APP_TIMEZONE", "UTC")

import pytest
from alembic import command
from alembic.config import Config
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from workout_tracker.config import settings
from workout_tracker.database import Base, get_db
from workout_tracker.main import app
from workout_tracker.models import Exercise, User, WorkoutPlan
from workout_tracker.services.clock import get_clock

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Tuesday morning; "today" for every test unless a test moves the clock.
FIXED_NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture(scope="session", autouse=True)
def migrated_test_database():
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, "head")
    yield
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        str(settings.SQLALCHEMY_DATABASE_URI),
        poolclass=NullPool,
    )
    yield engine
    await engine.dispose()

@pytest.fixture(scope="function")
async def db_session(db_engine, migrated_test_database) -> AsyncGenerator[AsyncSession, None]:
    async def _reset_tables(session: AsyncSession) -> None:
        await session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            await session.execute(delete(table))
        await session.commit()

    async_session = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )
    async with async_session() as session:
        await _reset_tables(session)
        yield session
        await _reset_tables(session)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FIXED_NOW)


@pytest.fixture(scope="function")
async def client(db_session, clock) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def user(db_session) -> User:
    member = User(email="member@example.com", full_name="Test Member", is_active=True)
    db_session.add(member)
    await db_session.commit()
    return member


@pytest.fixture
async def other_user(db_session) -> User:
    member = User(email="other@example.com", full_name="Other Member", is_active=True)
    db_session.add(member)
    await db_session.commit()
    return member


@pytest.fixture
async def exercise(db_session) -> Exercise:
    bench = Exercise(name="Bench Press", category="Chest")
    db_session.add(bench)
    await db_session.commit()
    return bench


@pytest.fixture
async def second_exercise(db_session) -> Exercise:
    squat = Exercise(name="Back Squat", category="Legs")
    db_session.add(squat)
    await db_session.commit()
    return squat


@pytest.fixture
async def plan(db_session, user) -> WorkoutPlan:
    push_day = WorkoutPlan(name="Push Day", owner_id=user.id)
    db_session.add(push_day)
    await db_session.commit()
    return push_day
