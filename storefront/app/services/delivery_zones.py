"""Delivery zone matching service."""
from typing import List

from storefront.app.core.constants import MSG_DELIVERY_UNAVAILABLE, MSG_DELIVERY_AVAILABLE
from storefront.app.core.exceptions import LookupFailedError
from storefront.app.core.logging import get_logger
from storefront.app.core.metrics import delivery_resolutions_total, delivery_lookup_failures_total
from storefront.app.schemas import (
    DeliveryZone,
    ResolutionResult,
    ZoneUnavailable,
    ZoneSingleMatch,
    ZoneMultipleMatches,
)
from storefront.app.services.zone_registry import ZoneRegistry

logger = get_logger(__name__)


def availability_message(result: ResolutionResult) -> str:
    if isinstance(result, ZoneUnavailable):
        return result.reason
    return MSG_DELIVERY_AVAILABLE.format(count=len(result.zones))


class ZoneResolver:
    """
    Maps a postal code to the active zones covering it.

    The caller validates the format first (pincodes.validate_format); the
    resolver is a plain lookup. Zones are scanned linearly in registry order.
    """

    def __init__(self, registry: ZoneRegistry):
        self.registry = registry

    async def matching_zones(self, postal_code: str) -> List[DeliveryZone]:
        try:
            zones = await self.registry.load_active_zones()
        except LookupFailedError as e:
            delivery_lookup_failures_total.labels(source=e.source).inc()
            logger.warning("Zone lookup failed", postal_code=postal_code, error=e.message)
            raise
        return [zone for zone in zones if zone.covers(postal_code)]

    async def resolve(self, postal_code: str) -> ResolutionResult:
        """
        Classify coverage of `postal_code`.

        Returns ZoneUnavailable, ZoneSingleMatch or ZoneMultipleMatches.
        Raises LookupFailedError when the registry cannot be read, which
        callers must not treat as "no delivery here".
        """
        matches = await self.matching_zones(postal_code)

        if not matches:
            result: ResolutionResult = ZoneUnavailable(postal_code=postal_code, reason=MSG_DELIVERY_UNAVAILABLE)
        elif len(matches) == 1:
            result = ZoneSingleMatch(postal_code=postal_code, zone=matches[0])
        else:
            result = ZoneMultipleMatches(postal_code=postal_code, zones=matches)

        delivery_resolutions_total.labels(outcome=result.status).inc()
        logger.info(
            "Pincode resolved",
            postal_code=postal_code,
            outcome=result.status,
            zone_count=len(matches),
        )
        return result
