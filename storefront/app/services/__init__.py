# storefront/app/services/__init__.py
"""
Services layer for business logic.
Keeps API endpoints thin and business logic testable and reusable.
"""

from storefront.app.services.pincodes import (
    InvalidPincodeError,
    validate_format,
    require_valid_pincode,
)
from storefront.app.services.store_settings import (
    StoreSettingsService,
    normalize_zone_document,
)
from storefront.app.services.zone_registry import (
    ZoneRegistry,
    ZoneNotFoundError,
    InvalidZoneError,
)
from storefront.app.services.delivery_zones import ZoneResolver, availability_message
from storefront.app.services.delivery_fees import compute_fee, InvalidSubtotalError
from storefront.app.services.delivery_selection import (
    DeliverySelectionCache,
    encode_selection,
    decode_selection,
)
from storefront.app.services.delivery_location import (
    DeliveryLocationService,
    ZoneNotOfferedError,
    StaleSelectionError,
    SelectionNotFoundError,
)
from storefront.app.services.cache import CacheService

__all__ = [
    # Pincode validation
    "InvalidPincodeError",
    "validate_format",
    "require_valid_pincode",
    # Settings document
    "StoreSettingsService",
    "normalize_zone_document",
    # Zone registry
    "ZoneRegistry",
    "ZoneNotFoundError",
    "InvalidZoneError",
    # Resolution and fees
    "ZoneResolver",
    "availability_message",
    "compute_fee",
    "InvalidSubtotalError",
    # Session selection
    "DeliverySelectionCache",
    "encode_selection",
    "decode_selection",
    "DeliveryLocationService",
    "ZoneNotOfferedError",
    "StaleSelectionError",
    "SelectionNotFoundError",
    # Cache service
    "CacheService",
]
