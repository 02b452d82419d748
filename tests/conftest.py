"""
Shared test fixtures for all test modules.

Provides:
- stores: EntityStores over a fresh SQLite file database per test
- fake_redis: in-memory Redis swapped in for the real client
- seed: direct row inserts with explicit timestamps
- Metrics reset between tests
"""

import os

# Keep test runs from writing logs/careeros.log
os.environ.setdefault("LOG_TO_FILE", "0")

from datetime import datetime, timedelta

import pytest
from fakeredis import FakeAsyncRedis, FakeServer
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from careeros.database import init_db
from careeros.models import Enrollment, UserAchievement, UserProject, UserSoftSkill
from careeros.services import redis_client
from careeros.services.dashboard_session import SessionRegistry
from careeros.services.entity_store import EntityStores
from careeros.services.overview_service import OverviewService
from careeros.services.progress_service import ProgressService
from careeros.utils import metrics

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def engine(tmp_path):
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'careeros_test.db'}")
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def stores(session_factory) -> EntityStores:
    return EntityStores.from_session_factory(session_factory, timeout_seconds=5.0)


class Seeder:
    """Insert rows directly, bypassing the stores, so dates can be pinned."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def _add(self, row):
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row

    async def enrollment(self, user_id, course_id, progress=0, completed=False, minutes=0):
        return await self._add(Enrollment(
            user_id=user_id, course_id=course_id, progress=progress, is_completed=completed,
            enrolled_at=BASE_TIME + timedelta(minutes=minutes),
        ))

    async def project(self, user_id, project_id, progress=0, completed=False, minutes=0):
        return await self._add(UserProject(
            user_id=user_id, project_id=project_id, progress=progress, is_completed=completed,
            started_at=BASE_TIME + timedelta(minutes=minutes),
        ))

    async def skill(self, user_id, soft_skill_id, progress=0, completed=False, minutes=0):
        return await self._add(UserSoftSkill(
            user_id=user_id, soft_skill_id=soft_skill_id, progress=progress, is_completed=completed,
            started_at=BASE_TIME + timedelta(minutes=minutes),
        ))

    async def achievement(self, user_id, achievement_id, minutes=0):
        return await self._add(UserAchievement(
            user_id=user_id, achievement_id=achievement_id,
            awarded_at=BASE_TIME + timedelta(minutes=minutes),
        ))


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


# =============================================================================
# Redis / Services
# =============================================================================

@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    monkeypatch.setattr(redis_client, "_redis_client", client)
    return client


@pytest.fixture
def sessions() -> SessionRegistry:
    return SessionRegistry(notification_capacity=50)


@pytest.fixture
def overview_service(stores) -> OverviewService:
    return OverviewService(stores, cache_ttl=300)


@pytest.fixture
def progress_service(stores, overview_service, sessions) -> ProgressService:
    return ProgressService(stores, overview_service, sessions)


# =============================================================================
# State Cleanup
# =============================================================================

@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
