"""
Public delivery API for the storefront
- No authentication; the client identifies its session with X-Session-Id
- Pincode check, zone resolution, fee preview
- Remembered delivery location and checkout quote
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from storefront.app.api.deps import get_location_service
from storefront.app.core.exceptions import ServiceError
from storefront.app.core.limiter import limiter
from storefront.app.core.logging import bind_session_context, get_logger
from storefront.app.core.settings import get_settings
from storefront.app.schemas import (
    DeliveryQuote,
    DeliverySelection,
    FeeRequest,
    FeeResponse,
    PincodeCheckResponse,
    QuoteRequest,
    ResolveRequest,
    ResolveResponse,
    SelectionRequest,
    ZoneUnavailable,
)
from storefront.app.services.delivery_location import DeliveryLocationService
from storefront.app.services.delivery_zones import availability_message
from storefront.app.services.pincodes import validate_format

router = APIRouter()
logger = get_logger(__name__)


def _handle_service_error(e: ServiceError):
    """Convert service exceptions to HTTP exceptions."""
    raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/pincodes/{postal_code}/valid", response_model=PincodeCheckResponse)
async def check_pincode_format(postal_code: str):
    """Format-only check, no zone lookup."""
    return PincodeCheckResponse(postal_code=postal_code, valid=validate_format(postal_code))


@router.post("/resolve", response_model=ResolveResponse)
@limiter.limit(get_settings().PINCODE_RATE_LIMIT)
async def resolve_pincode(
    request: Request,
    data: ResolveRequest,
    service: DeliveryLocationService = Depends(get_location_service),
):
    """
    Which active zones deliver to this pincode.

    status is "unavailable", "single" (may be auto-confirmed by the client)
    or "multiple" (the shopper has to choose). 503 means the zones could not
    be checked, which is not the same as "we don't deliver here".
    """
    try:
        result = await service.check(data.postal_code)
    except ServiceError as e:
        _handle_service_error(e)

    zones = [] if isinstance(result, ZoneUnavailable) else result.zones
    return ResolveResponse(
        postal_code=result.postal_code,
        status=result.status,
        available=bool(zones),
        message=availability_message(result),
        zones=zones,
    )


@router.post("/fee", response_model=FeeResponse)
async def preview_fee(
    data: FeeRequest,
    service: DeliveryLocationService = Depends(get_location_service),
):
    try:
        fee = await service.fee_for_zone(data.zone_id, data.subtotal)
    except ServiceError as e:
        _handle_service_error(e)
    return FeeResponse(zone_id=data.zone_id, subtotal=data.subtotal, delivery_fee=fee)


@router.get("/selection", response_model=Optional[DeliverySelection])
async def get_selection(
    session_id: str = Header(..., alias="X-Session-Id", min_length=1, max_length=128),
    service: DeliveryLocationService = Depends(get_location_service),
):
    """Remembered delivery location, or null."""
    bind_session_context(session_id)
    try:
        return await service.current(session_id)
    except ServiceError as e:
        _handle_service_error(e)


@router.put("/selection", response_model=DeliverySelection)
async def choose_selection(
    data: SelectionRequest,
    session_id: str = Header(..., alias="X-Session-Id", min_length=1, max_length=128),
    service: DeliveryLocationService = Depends(get_location_service),
):
    """Confirm a zone for a pincode and remember it for this session."""
    bind_session_context(session_id)
    try:
        selection = await service.choose(session_id, data.postal_code, data.zone_id)
    except ServiceError as e:
        _handle_service_error(e)
    logger.info("Delivery location chosen", postal_code=data.postal_code, zone_id=data.zone_id)
    return selection


@router.delete("/selection")
async def clear_selection(
    session_id: str = Header(..., alias="X-Session-Id", min_length=1, max_length=128),
    service: DeliveryLocationService = Depends(get_location_service),
):
    bind_session_context(session_id)
    try:
        await service.clear(session_id)
    except ServiceError as e:
        _handle_service_error(e)
    return {"status": "ok"}


@router.post("/quote", response_model=DeliveryQuote)
async def quote_delivery(
    data: QuoteRequest,
    session_id: str = Header(..., alias="X-Session-Id", min_length=1, max_length=128),
    service: DeliveryLocationService = Depends(get_location_service),
):
    """Subtotal + delivery fee for the remembered location, checked against live zones."""
    bind_session_context(session_id)
    try:
        return await service.quote(session_id, data.subtotal)
    except ServiceError as e:
        _handle_service_error(e)
