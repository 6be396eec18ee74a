"""
Test fixtures for storefront delivery tests.

Provides:
- In-memory SQLite database for isolated testing
- Async test client with database and cache dependencies overridden
- Zone factories and a seeded zone registry
"""
# IMPORTANT: Set environment variables BEFORE any other imports
import os

os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "test")
os.environ.setdefault("ADMIN_SECRET", "test_admin_secret")
# Development mode for tests (disables ALLOWED_ORIGINS requirement)
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("PINCODE_RATE_LIMIT", "1000/minute")

import pytest
from decimal import Decimal
from typing import AsyncGenerator, List

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from storefront.app.core.base import Base
import storefront.app.models.store_settings  # noqa: F401 - register StoreSettingsRecord with Base.metadata
from storefront.app.main import app
from storefront.app.api.deps import get_session, get_cache
from storefront.app.schemas import DeliveryZone
from storefront.app.services.cache import CacheService
from storefront.app.services.delivery_location import DeliveryLocationService
from storefront.app.services.delivery_selection import DeliverySelectionCache
from storefront.app.services.delivery_zones import ZoneResolver
from storefront.app.services.store_settings import StoreSettingsService
from storefront.app.services.zone_registry import ZoneRegistry


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# StaticPool keeps the single in-memory database alive across sessions
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class InMemoryRedis:
    """The few redis.asyncio calls CacheService makes, kept in dicts of strings."""

    def __init__(self):
        self.values = {}
        self.expiry = {}

    async def get(self, key: str):
        return self.values.get(key)

    async def set(self, key: str, value: str, ex: int = None):
        self.values[key] = value
        self.expiry[key] = ex

    async def delete(self, key: str):
        self.values.pop(key, None)
        self.expiry.pop(key, None)


class MockCacheService(CacheService):
    """CacheService over InMemoryRedis, so values go through the real JSON encoding."""

    def __init__(self):
        super().__init__(InMemoryRedis())

    @property
    def _cache(self):
        return self.redis.values

    @property
    def ttls(self):
        return self.redis.expiry


class FakeZoneRegistry:
    """In-memory registry; set `fail` to simulate an unreachable store."""

    def __init__(self, zones: List[DeliveryZone] = None):
        self.zones = list(zones or [])
        self.fail = False
        self.loads = 0

    async def load_zones(self) -> List[DeliveryZone]:
        from storefront.app.core.exceptions import LookupFailedError
        self.loads += 1
        if self.fail:
            raise LookupFailedError("settings store")
        return list(self.zones)

    async def load_active_zones(self) -> List[DeliveryZone]:
        return [z for z in await self.load_zones() if z.is_active]

    async def get_zone(self, zone_id: str) -> DeliveryZone:
        from storefront.app.services.zone_registry import ZoneNotFoundError
        for zone in await self.load_zones():
            if zone.id == zone_id:
                return zone
        raise ZoneNotFoundError(zone_id)


def make_zone(
    zone_id: str = "zone_central",
    name: str = "Central",
    postal_codes=("560001",),
    base_delivery_fee="40",
    minimum_order_amount="500",
    estimated_delivery_window: str = "30-45 minutes",
    is_active: bool = True,
) -> DeliveryZone:
    return DeliveryZone(
        id=zone_id,
        name=name,
        postal_codes=list(postal_codes),
        base_delivery_fee=Decimal(base_delivery_fee),
        minimum_order_amount=Decimal(minimum_order_amount),
        estimated_delivery_window=estimated_delivery_window,
        is_active=is_active,
    )


@pytest.fixture(scope="function")
async def test_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fresh database session for each test.
    Creates all tables before and drops after each test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def mock_cache() -> MockCacheService:
    """Provide mock cache service for testing."""
    return MockCacheService()


@pytest.fixture
def settings_service(test_session: AsyncSession) -> StoreSettingsService:
    return StoreSettingsService(test_session)


@pytest.fixture
def registry(settings_service: StoreSettingsService) -> ZoneRegistry:
    return ZoneRegistry(settings_service)


@pytest.fixture
def central_zone() -> DeliveryZone:
    return make_zone()


@pytest.fixture
def fake_registry(central_zone: DeliveryZone) -> FakeZoneRegistry:
    """Central (560001), two overlapping zones (560002) and an inactive-only code (560099)."""
    return FakeZoneRegistry([
        central_zone,
        make_zone("zone_north", "North", ["560002", "560003"], "30", "300"),
        make_zone("zone_express", "Express", ["560002"], "80", "0", "15 minutes"),
        make_zone("zone_closed", "Closed", ["560099"], is_active=False),
    ])


@pytest.fixture
def location_service(fake_registry: FakeZoneRegistry, mock_cache: MockCacheService) -> DeliveryLocationService:
    return DeliveryLocationService(
        resolver=ZoneResolver(fake_registry),
        selections=DeliverySelectionCache(mock_cache, ttl=3600),
    )


@pytest.fixture
async def seeded_registry(registry: ZoneRegistry, fake_registry: FakeZoneRegistry) -> ZoneRegistry:
    """Database-backed registry holding the same zones as fake_registry."""
    await registry.replace_zone_set(fake_registry.zones)
    return registry


@pytest.fixture
async def client(
    test_session: AsyncSession,
    mock_cache: MockCacheService,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for testing API endpoints.
    Overrides database and cache dependencies.

    Each API request gets its own session so it does not share a
    transaction with the test_session used by fixtures.
    """
    async def override_get_session():
        async with TestSessionLocal() as session:
            yield session

    async def override_get_cache():
        yield mock_cache

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_cache] = override_get_cache

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def admin_headers() -> dict:
    return {"X-Admin-Token": os.environ["ADMIN_SECRET"]}


def session_headers(session_id: str = "session-1") -> dict:
    return {"X-Session-Id": session_id}
