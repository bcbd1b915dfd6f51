from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Any, Optional

from tixhub.config import settings

TWO_PLACES = Decimal("0.01")


@dataclass
class OrderPricing:
    """Money breakdown for one order. Values are kept unrounded."""
    subtotal: Decimal
    discount: Decimal
    service_fee: Decimal
    total: Decimal


def to_money(value) -> Decimal:
    """Round to 2 decimals, only for display and gateway payloads"""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def line_total(item: Dict[str, Any]) -> Decimal:
    return Decimal(str(item['price'])) * item['quantity']


def cart_subtotal(items: List[Dict[str, Any]]) -> Decimal:
    return sum((line_total(item) for item in items), Decimal("0"))


def group_items_by_event(items: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Group cart lines by event id.
    Dict insertion order keeps the first-seen event order of the cart.
    """
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for item in items:
        groups.setdefault(str(item['event_id']), []).append(item)
    return groups


def calculate_order_pricing(
    subtotal: Decimal,
    discount: Decimal = Decimal("0"),
    fee_rate: Optional[Decimal] = None
) -> OrderPricing:
    """
    Service fee is charged on the discounted subtotal:
    total = (subtotal - discount) * (1 + fee_rate)
    """
    rate = settings.service_fee_rate if fee_rate is None else Decimal(str(fee_rate))
    subtotal = Decimal(str(subtotal))
    discount = min(Decimal(str(discount)), subtotal)

    discounted = subtotal - discount
    service_fee = discounted * rate

    return OrderPricing(
        subtotal=subtotal,
        discount=discount,
        service_fee=service_fee,
        total=discounted + service_fee
    )
