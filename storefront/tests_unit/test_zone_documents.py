"""
Tests for reading stored zone documents (services.store_settings) and the
selection payload format (services.delivery_selection).

Older settings documents used other field names; they must all load into the
same DeliveryZone shape.
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront.app.schemas import DeliverySelection, DeliveryZone, StoreSettings
from storefront.app.services.delivery_selection import decode_selection, encode_selection
from storefront.app.services.store_settings import normalize_zone_document, parse_settings_document


def test_canonical_document_is_unchanged():
    raw = {
        "id": "zone_1",
        "name": "Central",
        "postal_codes": ["560001"],
        "base_delivery_fee": "40",
        "minimum_order_amount": "500",
        "estimated_delivery_window": "30-45 minutes",
        "is_active": True,
    }
    assert normalize_zone_document(raw) == raw


def test_storefront_shape_is_mapped():
    zone = DeliveryZone.model_validate(normalize_zone_document({
        "id": "zone_1",
        "name": "Central",
        "pincode": "560001",
        "postal_codes": ["560001", "560002"],
        "base_delivery_fee": 40,
        "minimum_order": 500,
        "estimated_time": "30-45 minutes",
        "is_active": True,
    }))
    assert zone.postal_codes == ["560001", "560002"]
    assert zone.minimum_order_amount == Decimal("500")
    assert zone.estimated_delivery_window == "30-45 minutes"


def test_admin_form_shape_is_mapped():
    zone = DeliveryZone.model_validate(normalize_zone_document({
        "id": "zone_1700000000000",
        "name": "Suburbs",
        "minAmount": 250.5,
        "deliveryFee": 30,
        "active": False,
    }))
    assert zone.minimum_order_amount == Decimal("250.5")
    assert zone.base_delivery_fee == Decimal("30")
    assert zone.is_active is False
    assert zone.postal_codes == []


def test_single_pincode_becomes_coverage_set():
    zone = normalize_zone_document({"id": "z", "name": "Old", "pincode": "560010"})
    assert zone["postal_codes"] == ["560010"]


def test_numeric_codes_are_read_as_strings():
    zone = normalize_zone_document({"id": 7, "name": "N", "postalCodes": [560001, "560002"]})
    assert zone["id"] == "7"
    assert zone["postal_codes"] == ["560001", "560002"]


def test_canonical_name_wins_over_alias():
    zone = normalize_zone_document({"id": "z", "name": "N", "is_active": False, "active": True})
    assert zone["is_active"] is False


def test_empty_document_gives_defaults():
    settings = parse_settings_document(None)
    assert settings == StoreSettings()
    assert settings.store.currency == "INR"
    assert settings.payment.gateway == "razorpay"
    assert settings.shipping.delivery_zones == []


def test_settings_document_zones_are_normalized():
    settings = parse_settings_document({
        "store": {"name": "Shop"},
        "shipping": {"delivery_zones": [{"id": "z", "name": "A", "minAmount": 100, "deliveryFee": 10}]},
    })
    zone = settings.shipping.delivery_zones[0]
    assert zone.minimum_order_amount == Decimal("100")
    assert settings.store.name == "Shop"


@pytest.mark.parametrize("bad_zone", [
    {"id": "z", "name": "", "deliveryFee": 10},
    {"id": "z", "name": "A", "deliveryFee": -1},
    {"id": "z", "name": "A", "minimum_order": -5},
    {"name": "No id"},
])
def test_malformed_zones_are_rejected(bad_zone):
    with pytest.raises(ValidationError):
        parse_settings_document({"shipping": {"delivery_zones": [bad_zone]}})


def test_duplicate_codes_collapse_in_order():
    zone = DeliveryZone(id="z", name="A", postal_codes=["560002", "560001", "560002"])
    assert zone.postal_codes == ["560002", "560001"]
    assert zone.covers("560001")
    assert not zone.covers("56000")


def test_selection_payload_round_trip():
    selection = DeliverySelection(
        postal_code="560001",
        zone=DeliveryZone(
            id="zone_1",
            name="Central",
            postal_codes=["560001", "560002"],
            base_delivery_fee=Decimal("40.50"),
            minimum_order_amount=Decimal("499.99"),
            estimated_delivery_window="30-45 minutes",
            is_active=True,
        ),
    )
    payload = encode_selection(selection)
    assert payload["version"] == 1
    assert payload["zone"]["base_delivery_fee"] == "40.50"

    decoded = decode_selection(payload)
    assert decoded == selection
    assert str(decoded.zone.base_delivery_fee) == "40.50"
    # decoding again from a re-encoded copy changes nothing
    assert encode_selection(decoded) == payload


@pytest.mark.parametrize("payload", [
    None,
    "560001",
    {"postal_code": "560001"},
    {"version": 2, "postal_code": "560001", "zone": {}},
    {"version": 1, "postal_code": "560001", "zone": {"id": "z"}},
])
def test_unreadable_selection_payloads_decode_to_none(payload):
    assert decode_selection(payload) is None
