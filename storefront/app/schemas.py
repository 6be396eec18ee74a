from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal, Union
from decimal import Decimal

from storefront.app.core.constants import ZERO


# --- Delivery zones ---
class DeliveryZone(BaseModel):
    """Canonical delivery zone. Legacy field names are mapped in store_settings."""
    id: str = Field(min_length=1)
    name: str
    postal_codes: List[str] = Field(default_factory=list)
    base_delivery_fee: Decimal = Field(default=ZERO, ge=0)
    minimum_order_amount: Decimal = Field(default=ZERO, ge=0)
    estimated_delivery_window: str = ""
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Zone name is required")
        return v

    @field_validator("postal_codes")
    @classmethod
    def dedupe_postal_codes(cls, v: List[str]) -> List[str]:
        # coverage is a set; keep first occurrence order for display
        return list(dict.fromkeys(v))

    def covers(self, postal_code: str) -> bool:
        return postal_code in self.postal_codes


class ZoneCreate(BaseModel):
    name: str
    postal_codes: List[str] = []
    base_delivery_fee: Decimal = ZERO
    minimum_order_amount: Decimal = ZERO
    estimated_delivery_window: str = ""
    is_active: bool = True


class ZoneIn(ZoneCreate):
    # Zones without an id are new and get one assigned
    id: Optional[str] = None


class ZoneUpdate(BaseModel):
    name: Optional[str] = None
    postal_codes: Optional[List[str]] = None
    base_delivery_fee: Optional[Decimal] = None
    minimum_order_amount: Optional[Decimal] = None
    estimated_delivery_window: Optional[str] = None
    is_active: Optional[bool] = None


# --- Resolution results ---
class ZoneUnavailable(BaseModel):
    status: Literal["unavailable"] = "unavailable"
    postal_code: str
    reason: str


class ZoneSingleMatch(BaseModel):
    status: Literal["single"] = "single"
    postal_code: str
    zone: DeliveryZone

    @property
    def zones(self) -> List[DeliveryZone]:
        return [self.zone]


class ZoneMultipleMatches(BaseModel):
    """More than one active zone covers the code; the shopper has to pick one."""
    status: Literal["multiple"] = "multiple"
    postal_code: str
    zones: List[DeliveryZone]


ResolutionResult = Union[ZoneUnavailable, ZoneSingleMatch, ZoneMultipleMatches]


class ResolveRequest(BaseModel):
    postal_code: str


class ResolveResponse(BaseModel):
    postal_code: str
    status: Literal["unavailable", "single", "multiple"]
    available: bool
    message: str
    zones: List[DeliveryZone] = []


class PincodeCheckResponse(BaseModel):
    postal_code: str
    valid: bool


# --- Fees, selection, quote ---
class FeeRequest(BaseModel):
    zone_id: str
    subtotal: Decimal


class FeeResponse(BaseModel):
    zone_id: str
    subtotal: Decimal
    delivery_fee: Decimal


class DeliverySelection(BaseModel):
    postal_code: str
    zone: DeliveryZone


class SelectionRequest(BaseModel):
    postal_code: str
    zone_id: str


class QuoteRequest(BaseModel):
    subtotal: Decimal


class DeliveryQuote(BaseModel):
    postal_code: str
    zone: DeliveryZone
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal


# --- Store settings document ---
class StoreInfo(BaseModel):
    name: str = "My Store"
    description: str = ""
    contact_email: str = ""
    currency: str = "INR"


class ShippingSettings(BaseModel):
    default_rate: Decimal = ZERO
    free_shipping_threshold: Decimal = ZERO
    enable_international: bool = False
    delivery_zones: List[DeliveryZone] = []


class PaymentSettings(BaseModel):
    gateway: str = "razorpay"
    test_mode: bool = True


class NotificationSettings(BaseModel):
    order_confirmation: bool = True
    shipping_updates: bool = True
    marketing_emails: bool = False


class StoreSettings(BaseModel):
    store: StoreInfo = Field(default_factory=StoreInfo)
    shipping: ShippingSettings = Field(default_factory=ShippingSettings)
    payment: PaymentSettings = Field(default_factory=PaymentSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
