from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.app.core.database import async_session
from storefront.app.core.settings import get_settings
from storefront.app.services.cache import CacheService
from storefront.app.services.delivery_location import DeliveryLocationService
from storefront.app.services.delivery_selection import DeliverySelectionCache
from storefront.app.services.delivery_zones import ZoneResolver
from storefront.app.services.store_settings import StoreSettingsService
from storefront.app.services.zone_registry import ZoneRegistry


# One database session per request
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


# One cache service per request over the shared Redis connection
async def get_cache() -> AsyncGenerator[CacheService, None]:
    redis = await CacheService.get_redis()
    yield CacheService(redis)


def get_settings_service(session: AsyncSession = Depends(get_session)) -> StoreSettingsService:
    return StoreSettingsService(session, store_key=get_settings().STORE_KEY)


def get_zone_registry(
    settings_service: StoreSettingsService = Depends(get_settings_service),
) -> ZoneRegistry:
    return ZoneRegistry(settings_service)


def get_location_service(
    registry: ZoneRegistry = Depends(get_zone_registry),
    cache: CacheService = Depends(get_cache),
) -> DeliveryLocationService:
    settings = get_settings()
    return DeliveryLocationService(
        resolver=ZoneResolver(registry),
        selections=DeliverySelectionCache(cache, ttl=settings.SELECTION_TTL_SECONDS),
        rounding_unit=settings.FEE_ROUNDING_UNIT,
    )
