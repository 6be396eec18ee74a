"""
Shared constants for the storefront delivery service.
"""
from decimal import Decimal

# ---------------------------------------------------------------------------
# Decimal helpers
# ---------------------------------------------------------------------------
ZERO = Decimal("0")

# Share of the shortfall below a zone's minimum order charged on top of the base fee
SHORTFALL_SURCHARGE_RATE = Decimal("0.10")

# ---------------------------------------------------------------------------
# Delivery location
# ---------------------------------------------------------------------------
PINCODE_LENGTH = 6
SELECTION_CACHE_KEY = "deliveryLocation:{session_id}"
SELECTION_FORMAT_VERSION = 1

MSG_DELIVERY_UNAVAILABLE = "Sorry, delivery is not available for this pincode yet."
MSG_DELIVERY_AVAILABLE = "Delivery is available in your area with {count} service zone(s)."
MSG_INVALID_PINCODE = "Please enter a valid 6-digit pincode"
