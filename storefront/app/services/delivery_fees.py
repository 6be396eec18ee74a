"""Delivery fee calculation."""
from decimal import Decimal, ROUND_CEILING, InvalidOperation
from typing import Union

from storefront.app.core.constants import SHORTFALL_SURCHARGE_RATE, ZERO
from storefront.app.core.exceptions import ServiceError
from storefront.app.schemas import DeliveryZone

Money = Union[Decimal, int, float, str]


class InvalidSubtotalError(ServiceError):
    def __init__(self, subtotal):
        self.subtotal = subtotal
        super().__init__(f"Order subtotal must be a non-negative amount, got {subtotal}", 422)


def to_money(value: Money) -> Decimal:
    """Coerce to Decimal; raises InvalidSubtotalError for non-numbers."""
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so floats keep their printed value
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidSubtotalError(value) from e


def compute_fee(zone: DeliveryZone, subtotal: Money, rounding_unit: Decimal = Decimal("1")) -> Decimal:
    """
    Delivery fee for an order in `zone`.

    Orders at or above the zone minimum pay the base fee. Below it, 10% of
    the shortfall is added, rounded up to a multiple of `rounding_unit`.
    A negative subtotal is a caller error and raises InvalidSubtotalError.
    """
    amount = to_money(subtotal)
    if not amount.is_finite() or amount < ZERO:
        raise InvalidSubtotalError(subtotal)

    if amount >= zone.minimum_order_amount:
        return zone.base_delivery_fee

    shortfall = zone.minimum_order_amount - amount
    units = (shortfall * SHORTFALL_SURCHARGE_RATE / rounding_unit).to_integral_value(rounding=ROUND_CEILING)
    return zone.base_delivery_fee + units * rounding_unit
