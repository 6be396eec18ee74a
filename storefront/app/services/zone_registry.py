"""Delivery zone registry: the zone list inside the store settings document."""
import uuid
from typing import Any, Dict, Iterable, List, Union

from pydantic import ValidationError

from storefront.app.core.exceptions import ServiceError
from storefront.app.core.logging import get_logger
from storefront.app.schemas import DeliveryZone, ZoneCreate, ZoneIn, ZoneUpdate
from storefront.app.services.store_settings import InvalidZoneError, StoreSettingsService

logger = get_logger(__name__)


class ZoneNotFoundError(ServiceError):
    def __init__(self, zone_id: str):
        self.zone_id = zone_id
        super().__init__(f"Delivery zone {zone_id} not found", 404)


def new_zone_id() -> str:
    return f"zone_{uuid.uuid4().hex[:12]}"


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return f"{field}: {err.get('msg')}" if field else err.get("msg", "invalid zone")


def build_zone(data: Dict[str, Any]) -> DeliveryZone:
    """Validate zone data for writing (non-empty name, non-negative fee and minimum)."""
    try:
        return DeliveryZone.model_validate(data)
    except ValidationError as e:
        raise InvalidZoneError(f"Invalid delivery zone: {_first_error(e)}") from e


class ZoneRegistry:
    """
    Ordered collection of delivery zones, stored in the store settings record.

    Every mutation loads the document, changes the zone list and writes the
    whole document back, so readers never see a partially written list.
    Concurrent administrator writes are last-writer-wins.
    """

    def __init__(self, settings_service: StoreSettingsService):
        self.settings_service = settings_service

    async def load_zones(self) -> List[DeliveryZone]:
        """All zones, active or not, in insertion order."""
        settings = await self.settings_service.get_settings()
        return list(settings.shipping.delivery_zones)

    async def load_active_zones(self) -> List[DeliveryZone]:
        zones = await self.load_zones()
        return [zone for zone in zones if zone.is_active]

    async def get_zone(self, zone_id: str) -> DeliveryZone:
        for zone in await self.load_zones():
            if zone.id == zone_id:
                return zone
        raise ZoneNotFoundError(zone_id)

    async def replace_zone_set(
        self, zones: Iterable[Union[DeliveryZone, ZoneIn, Dict[str, Any]]]
    ) -> List[DeliveryZone]:
        """Validate every zone, then overwrite the stored list in one write."""
        validated: List[DeliveryZone] = []
        seen_ids = set()
        for item in zones:
            data = item.model_dump() if hasattr(item, "model_dump") else dict(item)
            if not data.get("id"):
                data["id"] = new_zone_id()
            zone = build_zone(data)
            if zone.id in seen_ids:
                raise InvalidZoneError(f"Duplicate delivery zone id {zone.id}")
            seen_ids.add(zone.id)
            validated.append(zone)

        await self._save(validated)
        logger.info("Delivery zones replaced", zone_count=len(validated))
        return validated

    async def add_zone(self, data: ZoneCreate) -> DeliveryZone:
        zone = build_zone({**data.model_dump(), "id": new_zone_id()})
        zones = await self.load_zones()
        zones.append(zone)
        await self._save(zones)
        logger.info("Delivery zone added", zone_id=zone.id, name=zone.name)
        return zone

    async def update_zone(self, zone_id: str, changes: ZoneUpdate) -> DeliveryZone:
        """Change fields in place; the zone keeps its id and position."""
        zones = await self.load_zones()
        for index, zone in enumerate(zones):
            if zone.id == zone_id:
                break
        else:
            raise ZoneNotFoundError(zone_id)

        patch = changes.model_dump(exclude_unset=True, exclude_none=True)
        updated = build_zone({**zone.model_dump(), **patch, "id": zone.id})
        zones[index] = updated
        await self._save(zones)
        logger.info("Delivery zone updated", zone_id=zone_id, fields=sorted(patch))
        return updated

    async def remove_zone(self, zone_id: str) -> None:
        zones = await self.load_zones()
        remaining = [zone for zone in zones if zone.id != zone_id]
        if len(remaining) == len(zones):
            raise ZoneNotFoundError(zone_id)
        await self._save(remaining)
        logger.info("Delivery zone removed", zone_id=zone_id)

    async def _save(self, zones: List[DeliveryZone]) -> None:
        settings = await self.settings_service.get_settings()
        settings.shipping.delivery_zones = zones
        await self.settings_service.update_settings(settings)
