# storefront/app/services/store_settings.py
"""
Store settings service - reads and writes the single store settings document.

The document is stored whole in one row (see StoreSettingsRecord), so every
write replaces it in a single transaction. Older documents used several names
for the delivery zone fields; they are mapped to the canonical names here, at
the loading boundary, and nowhere else.
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.app.core.exceptions import LookupFailedError, ServiceError
from storefront.app.core.logging import get_logger
from storefront.app.models.store_settings import StoreSettingsRecord
from storefront.app.schemas import StoreSettings

logger = get_logger(__name__)

SETTINGS_SOURCE = "settings store"


class InvalidZoneError(ServiceError):
    def __init__(self, message: str):
        super().__init__(message, 422)


# canonical name -> accepted names, first match wins
LEGACY_ZONE_FIELDS: Dict[str, tuple] = {
    "postal_codes": ("postal_codes", "postalCodes", "coveragePostalCodes", "coverage_postal_codes", "pincodes"),
    "base_delivery_fee": ("base_delivery_fee", "baseDeliveryFee", "deliveryFee", "delivery_fee"),
    "minimum_order_amount": ("minimum_order_amount", "minimumOrderAmount", "minimum_order", "minAmount", "min_amount"),
    "estimated_delivery_window": ("estimated_delivery_window", "estimatedDeliveryWindow", "estimated_time", "estimatedTime"),
    "is_active": ("is_active", "isActive", "active"),
}


def normalize_zone_document(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map a stored zone in any historical shape onto the canonical field names."""
    zone: Dict[str, Any] = {"id": raw.get("id"), "name": raw.get("name")}
    for field, aliases in LEGACY_ZONE_FIELDS.items():
        for alias in aliases:
            if alias in raw and raw[alias] is not None:
                zone[field] = raw[alias]
                break

    if "postal_codes" not in zone and raw.get("pincode"):
        # oldest shape: one pincode per zone
        zone["postal_codes"] = [raw["pincode"]]
    if "postal_codes" in zone:
        codes = zone["postal_codes"]
        if isinstance(codes, (str, int)):
            codes = [codes]
        zone["postal_codes"] = [str(code) for code in codes]
    if zone["id"] is not None:
        zone["id"] = str(zone["id"])
    return zone


def parse_settings_document(data: Optional[Dict[str, Any]]) -> StoreSettings:
    """Build StoreSettings from a stored document. Raises pydantic ValidationError."""
    data = dict(data or {})
    shipping = dict(data.get("shipping") or {})
    zones: List[Any] = shipping.get("delivery_zones") or []
    if not isinstance(zones, list):
        raise TypeError("shipping.delivery_zones must be a list")
    shipping["delivery_zones"] = [
        normalize_zone_document(z) if isinstance(z, dict) else z for z in zones
    ]
    data["shipping"] = shipping
    return StoreSettings.model_validate(data)


class StoreSettingsService:
    """Service class for the store settings document."""

    def __init__(self, session: AsyncSession, store_key: str = "store"):
        self.session = session
        self.store_key = store_key

    async def get_settings(self) -> StoreSettings:
        """
        Load the settings document.

        Returns defaults when the store has never been configured.
        Raises LookupFailedError when the store is unreachable or the
        stored document cannot be parsed.
        """
        try:
            record = await self.session.get(StoreSettingsRecord, self.store_key)
        except SQLAlchemyError as e:
            logger.error("Failed to load store settings", store_key=self.store_key, error=str(e))
            raise LookupFailedError(SETTINGS_SOURCE) from e

        if record is None:
            return StoreSettings()

        try:
            return parse_settings_document(record.data)
        except (ValidationError, TypeError) as e:
            logger.error("Stored settings document is malformed", store_key=self.store_key, error=str(e))
            raise LookupFailedError(SETTINGS_SOURCE, "malformed settings document") from e

    async def update_settings(self, settings: StoreSettings) -> StoreSettings:
        """Replace the whole settings document. Zone ids must be unique."""
        ids = [zone.id for zone in settings.shipping.delivery_zones]
        if len(ids) != len(set(ids)):
            raise InvalidZoneError("Delivery zone ids must be unique")

        document = settings.model_dump(mode="json")
        try:
            record = await self.session.get(StoreSettingsRecord, self.store_key)
            if record is None:
                record = StoreSettingsRecord(key=self.store_key, data=document)
                self.session.add(record)
            else:
                # new object so the JSON column is marked dirty
                record.data = document
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to save store settings", store_key=self.store_key, error=str(e))
            raise LookupFailedError(SETTINGS_SOURCE) from e

        logger.info(
            "Store settings saved",
            store_key=self.store_key,
            zone_count=len(settings.shipping.delivery_zones),
        )
        return settings
