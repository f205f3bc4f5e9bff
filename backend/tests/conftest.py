"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from sqlalchemy import event
from sqlalchemy.pool import Pool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.actor import Actor
from backend.app.core.redis_client import get_redis
from backend.app.core.security import get_password_hash
from backend.app.domain.cycles.cycle_service import CycleService
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.services.blob_store import LocalBlobStore, PhotoUpload, get_blob_store
from backend.app.store.entity_store import EntityStore
import backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session")
def blob_store(tmp_path_factory):
    """Photos written during the session land in a throwaway directory."""
    return LocalBlobStore(root=str(tmp_path_factory.mktemp("blobs")), base_url="/media")


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session, blob_store):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """

    # Patch the global redis client used by token revocation
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def store(db_session):
    return EntityStore(db_session)


@pytest.fixture
def cycle_service(store, blob_store):
    return CycleService(store, blob_store)


@pytest.fixture
def photo():
    """Factory for small in-memory uploads."""
    def make(name: str = "photo.jpg", content: bytes = b"\xff\xd8\xff-jpeg-bytes") -> PhotoUpload:
        return PhotoUpload(filename=name, content=content, content_type="image/jpeg")
    return make


async def _add_user(db_session, email, name, role, admin_id=None):
    user = User(
        email=email,
        name=name,
        hashed_password=get_password_hash("password123"),
        role=role,
        admin_id=admin_id,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def admin_user(db_session):
    return await _add_user(db_session, "admin@fleet.com", "Ana Admin", UserRole.ADMIN)


@pytest.fixture
async def other_admin_user(db_session):
    return await _add_user(db_session, "other@fleet.com", "Otto Other", UserRole.ADMIN)


@pytest.fixture
async def driver_user(db_session, admin_user):
    return await _add_user(db_session, "driver@fleet.com", "Davi Driver", UserRole.DRIVER, admin_user.id)


@pytest.fixture
async def second_driver_user(db_session, admin_user):
    return await _add_user(db_session, "driver2@fleet.com", "Dora Driver", UserRole.DRIVER, admin_user.id)


@pytest.fixture
async def vehicle(db_session, admin_user):
    car = Vehicle(admin_id=admin_user.id, plate="ABC1D23", brand="Scania", model="R450", year=2020)
    db_session.add(car)
    await db_session.commit()
    await db_session.refresh(car)
    return car


def actor_for(user: User) -> Actor:
    return Actor(id=user.id, role=user.role, admin_id=user.admin_id, name=user.name)


@pytest.fixture
def admin(admin_user):
    return actor_for(admin_user)


@pytest.fixture
def other_admin(other_admin_user):
    return actor_for(other_admin_user)


@pytest.fixture
def driver(driver_user):
    return actor_for(driver_user)


@pytest.fixture
def second_driver(second_driver_user):
    return actor_for(second_driver_user)


@pytest.fixture
def cycle_payload(driver_user, vehicle):
    return {
        "description": "Soy harvest, Sorriso to Santos",
        "driver_id": driver_user.id,
        "car_id": vehicle.id,
        "departure_at": "2024-03-01T08:00:00+00:00",
        "departure_odometer": 120500,
    }


@pytest.fixture
async def open_cycle(cycle_service, admin, cycle_payload, photo):
    return await cycle_service.create_cycle(admin, cycle_payload, photo("odometer.jpg"))
