"""
Remembered delivery location (pincode + zone) per client session.

The entry is a convenience cache: checkout re-resolves it against the live
zone registry before any fee is charged.
"""
from typing import Any, Dict, Optional

from pydantic import ValidationError
from redis.exceptions import RedisError

from storefront.app.core.constants import SELECTION_CACHE_KEY, SELECTION_FORMAT_VERSION
from storefront.app.core.exceptions import LookupFailedError
from storefront.app.core.logging import get_logger
from storefront.app.schemas import DeliverySelection
from storefront.app.services.cache import CacheService

logger = get_logger(__name__)

CACHE_SOURCE = "selection cache"


def encode_selection(selection: DeliverySelection) -> Dict[str, Any]:
    """Tagged JSON-ready payload; money fields are kept as decimal strings."""
    return {
        "version": SELECTION_FORMAT_VERSION,
        "postal_code": selection.postal_code,
        "zone": selection.zone.model_dump(mode="json"),
    }


def decode_selection(payload: Any) -> Optional[DeliverySelection]:
    """Inverse of encode_selection. Unknown versions and broken payloads give None."""
    if not isinstance(payload, dict) or payload.get("version") != SELECTION_FORMAT_VERSION:
        return None
    try:
        return DeliverySelection.model_validate(
            {"postal_code": payload.get("postal_code"), "zone": payload.get("zone")}
        )
    except ValidationError:
        return None


class DeliverySelectionCache:
    """remember / recall / forget for one key per session."""

    def __init__(self, cache: CacheService, ttl: int = CacheService.TTL_DEFAULT):
        self.cache = cache
        self.ttl = ttl

    @staticmethod
    def key_for(session_id: str) -> str:
        return SELECTION_CACHE_KEY.format(session_id=session_id)

    async def remember(self, session_id: str, selection: DeliverySelection) -> None:
        """Store the selection, replacing any earlier one."""
        try:
            await self.cache.set(self.key_for(session_id), encode_selection(selection), self.ttl)
        except RedisError as e:
            logger.error("Failed to remember delivery location", error=str(e))
            raise LookupFailedError(CACHE_SOURCE) from e
        logger.info(
            "Delivery location remembered",
            postal_code=selection.postal_code,
            zone_id=selection.zone.id,
        )

    async def recall(self, session_id: str) -> Optional[DeliverySelection]:
        key = self.key_for(session_id)
        try:
            payload = await self.cache.get(key)
        except RedisError as e:
            logger.error("Failed to read delivery location", error=str(e))
            raise LookupFailedError(CACHE_SOURCE) from e

        if payload is None:
            return None
        selection = decode_selection(payload)
        if selection is None:
            logger.warning("Dropping unreadable delivery location", key=key)
            await self.forget(session_id)
        return selection

    async def forget(self, session_id: str) -> None:
        try:
            await self.cache.delete(self.key_for(session_id))
        except RedisError as e:
            logger.error("Failed to clear delivery location", error=str(e))
            raise LookupFailedError(CACHE_SOURCE) from e
