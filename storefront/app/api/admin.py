"""
Back-office API: store settings and delivery zones.
Every route requires the X-Admin-Token header (see require_admin_token).
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Header

from storefront.app.api.deps import get_settings_service, get_zone_registry
from storefront.app.core.exceptions import ServiceError
from storefront.app.core.logging import get_logger
from storefront.app.core.settings import get_settings
from storefront.app.schemas import DeliveryZone, StoreSettings, ZoneCreate, ZoneIn, ZoneUpdate
from storefront.app.services.store_settings import StoreSettingsService
from storefront.app.services.zone_registry import ZoneRegistry

router = APIRouter()
logger = get_logger(__name__)


async def require_admin_token(x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token")):
    """Require admin token. If ADMIN_SECRET is not configured, reject all requests (fail-closed)."""
    admin_secret = get_settings().ADMIN_SECRET
    if not admin_secret:
        logger.warning("ADMIN_SECRET not configured, admin endpoints are blocked")
        raise HTTPException(status_code=503, detail="Admin panel not configured (ADMIN_SECRET missing)")
    if not x_admin_token or x_admin_token != admin_secret:
        raise HTTPException(status_code=401, detail="Invalid or missing admin token")


def _handle_service_error(e: ServiceError):
    """Convert service exceptions to HTTP exceptions."""
    raise HTTPException(status_code=e.status_code, detail=e.message)


# ============================================
# STORE SETTINGS
# ============================================

@router.get("/settings", response_model=StoreSettings)
async def get_store_settings(service: StoreSettingsService = Depends(get_settings_service)):
    try:
        return await service.get_settings()
    except ServiceError as e:
        _handle_service_error(e)


@router.put("/settings", response_model=StoreSettings)
async def update_store_settings(
    data: StoreSettings,
    service: StoreSettingsService = Depends(get_settings_service),
):
    """Replace the whole settings document, zones included."""
    try:
        return await service.update_settings(data)
    except ServiceError as e:
        _handle_service_error(e)


# ============================================
# DELIVERY ZONES
# ============================================

@router.get("/delivery-zones", response_model=List[DeliveryZone])
async def list_delivery_zones(registry: ZoneRegistry = Depends(get_zone_registry)):
    """All zones, inactive ones included, in stored order."""
    try:
        return await registry.load_zones()
    except ServiceError as e:
        _handle_service_error(e)


@router.put("/delivery-zones", response_model=List[DeliveryZone])
async def replace_delivery_zones(
    data: List[ZoneIn],
    registry: ZoneRegistry = Depends(get_zone_registry),
):
    """Overwrite the zone list. Zones sent without an id are created."""
    try:
        return await registry.replace_zone_set(data)
    except ServiceError as e:
        _handle_service_error(e)


@router.post("/delivery-zones", response_model=DeliveryZone, status_code=201)
async def create_delivery_zone(
    data: ZoneCreate,
    registry: ZoneRegistry = Depends(get_zone_registry),
):
    try:
        return await registry.add_zone(data)
    except ServiceError as e:
        _handle_service_error(e)


@router.patch("/delivery-zones/{zone_id}", response_model=DeliveryZone)
async def update_delivery_zone(
    zone_id: str,
    data: ZoneUpdate,
    registry: ZoneRegistry = Depends(get_zone_registry),
):
    try:
        return await registry.update_zone(zone_id, data)
    except ServiceError as e:
        _handle_service_error(e)


@router.delete("/delivery-zones/{zone_id}")
async def delete_delivery_zone(
    zone_id: str,
    registry: ZoneRegistry = Depends(get_zone_registry),
):
    try:
        await registry.remove_zone(zone_id)
    except ServiceError as e:
        _handle_service_error(e)
    return {"status": "ok"}
