# storefront/app/services/delivery_location.py
"""
Delivery location service - the shopper-facing flow.

check pincode -> resolve zones -> choose a zone -> remember it ->
quote the delivery fee at checkout against the live registry.
"""
from decimal import Decimal
from typing import Optional

from storefront.app.core.exceptions import ServiceError
from storefront.app.core.logging import get_logger
from storefront.app.core.metrics import delivery_quotes_total
from storefront.app.schemas import DeliveryQuote, DeliverySelection, DeliveryZone, ResolutionResult
from storefront.app.services.delivery_fees import InvalidSubtotalError, Money, compute_fee, to_money
from storefront.app.services.delivery_selection import DeliverySelectionCache
from storefront.app.services.delivery_zones import ZoneResolver
from storefront.app.services.pincodes import require_valid_pincode

logger = get_logger(__name__)


class ZoneNotOfferedError(ServiceError):
    def __init__(self, zone_id: str, postal_code: Optional[str] = None):
        self.zone_id = zone_id
        if postal_code:
            message = f"Delivery zone {zone_id} does not deliver to {postal_code}"
        else:
            message = f"Delivery zone {zone_id} is not active"
        super().__init__(message, 409)


class StaleSelectionError(ServiceError):
    def __init__(self, postal_code: str, zone_id: str):
        self.postal_code = postal_code
        self.zone_id = zone_id
        super().__init__(
            f"Saved delivery zone {zone_id} no longer delivers to {postal_code}. Please choose your location again.",
            409,
        )


class SelectionNotFoundError(ServiceError):
    def __init__(self):
        super().__init__("No delivery location selected", 404)


class DeliveryLocationService:
    """Service class combining resolution, fee calculation and the session selection."""

    def __init__(
        self,
        resolver: ZoneResolver,
        selections: DeliverySelectionCache,
        rounding_unit: Decimal = Decimal("1"),
    ):
        self.resolver = resolver
        self.selections = selections
        self.rounding_unit = rounding_unit

    async def check(self, postal_code: str) -> ResolutionResult:
        """Validate the format, then resolve. Raises InvalidPincodeError / LookupFailedError."""
        require_valid_pincode(postal_code)
        return await self.resolver.resolve(postal_code)

    async def fee_for_zone(self, zone_id: str, subtotal: Money) -> Decimal:
        """Fee for `subtotal` using the live data of an active zone."""
        zone = await self.resolver.registry.get_zone(zone_id)
        if not zone.is_active:
            raise ZoneNotOfferedError(zone_id)
        return compute_fee(zone, subtotal, self.rounding_unit)

    async def choose(self, session_id: str, postal_code: str, zone_id: str) -> DeliverySelection:
        """
        Confirm `zone_id` for `postal_code` and remember it for the session.

        The zone must be one of the live matches for the pincode; with
        several matches the shopper's explicit choice is required, nothing
        is picked for them.
        """
        result = await self.check(postal_code)
        zone = self._pick(result, zone_id)
        if zone is None:
            raise ZoneNotOfferedError(zone_id, postal_code)

        selection = DeliverySelection(postal_code=postal_code, zone=zone)
        await self.selections.remember(session_id, selection)
        return selection

    async def current(self, session_id: str) -> Optional[DeliverySelection]:
        return await self.selections.recall(session_id)

    async def clear(self, session_id: str) -> None:
        await self.selections.forget(session_id)

    async def quote(self, session_id: str, subtotal: Money) -> DeliveryQuote:
        """
        Delivery charge for the remembered location.

        The remembered zone is re-resolved first: zones can change between
        visits, and the fee always uses the live zone data.
        """
        amount = to_money(subtotal)
        if not amount.is_finite() or amount < 0:
            raise InvalidSubtotalError(subtotal)
        selection = await self.selections.recall(session_id)
        if selection is None:
            raise SelectionNotFoundError()

        result = await self.resolver.resolve(selection.postal_code)
        zone = self._pick(result, selection.zone.id)
        if zone is None:
            await self.selections.forget(session_id)
            delivery_quotes_total.labels(result="stale").inc()
            logger.info(
                "Saved delivery location is stale",
                postal_code=selection.postal_code,
                zone_id=selection.zone.id,
            )
            raise StaleSelectionError(selection.postal_code, selection.zone.id)

        fee = compute_fee(zone, amount, self.rounding_unit)
        if zone != selection.zone:
            await self.selections.remember(
                session_id, DeliverySelection(postal_code=selection.postal_code, zone=zone)
            )

        delivery_quotes_total.labels(result="ok").inc()
        return DeliveryQuote(
            postal_code=selection.postal_code,
            zone=zone,
            subtotal=amount,
            delivery_fee=fee,
            total=amount + fee,
        )

    @staticmethod
    def _pick(result: ResolutionResult, zone_id: str) -> Optional[DeliveryZone]:
        for zone in getattr(result, "zones", []):
            if zone.id == zone_id:
                return zone
        return None
