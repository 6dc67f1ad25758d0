"""
Effective price and display resolution for a product and an optional
selected variation.

This is the one place the pricing rule lives. The product quote endpoint,
cart line totals, cart subtotal and order totals all go through
resolve_price() so they can never disagree:

    effective_price = variation.price       if variation else product.price
    effective_sale  = variation.sale_price  if variation else
                      (product.sale_price if product.is_on_sale else None)
    is_discounted   = effective_sale is not None and effective_sale < effective_price
    display_images  = variation.images if variation and variation.images else product.images
    unit_price      = effective_sale if is_discounted else effective_price

Works on anything exposing those attributes: ORM rows, pydantic snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional

CENT = Decimal("0.01")


def to_money(value: Any) -> Optional[Decimal]:
    """Coerce a stored/posted amount to a 2-place Decimal. Empty means no amount."""
    if value is None or value == "":
        return None
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceResolution:
    effective_price: Decimal
    effective_sale_price: Optional[Decimal]
    is_discounted: bool
    display_images: List[str]

    @property
    def unit_price(self) -> Decimal:
        """Price actually charged per unit."""
        if self.is_discounted:
            return self.effective_sale_price
        return self.effective_price


def resolve_price(product: Any, variation: Any = None) -> PriceResolution:
    """Apply the effective pricing rule. Pure; no persistence."""
    if variation is not None:
        effective_price = to_money(variation.price)
        effective_sale = to_money(variation.sale_price)
    else:
        effective_price = to_money(product.price)
        effective_sale = to_money(product.sale_price) if product.is_on_sale else None

    is_discounted = effective_sale is not None and effective_sale < effective_price

    variation_images = list(variation.images or []) if variation is not None else []
    display_images = variation_images or list(product.images or [])

    return PriceResolution(
        effective_price=effective_price,
        effective_sale_price=effective_sale,
        is_discounted=is_discounted,
        display_images=display_images,
    )


def line_total(product: Any, quantity: int, variation: Any = None) -> Decimal:
    return (resolve_price(product, variation).unit_price * quantity).quantize(CENT)


def order_total(items: Iterable[Any]) -> Decimal:
    """
    Sum of captured unit price x quantity over order item snapshots.

    Items are the snapshots built at cart time (dicts or objects with
    `price` and `quantity`), so the result never depends on live catalog data.
    """
    total = Decimal("0.00")
    for item in items:
        price = item["price"] if isinstance(item, dict) else item.price
        quantity = item["quantity"] if isinstance(item, dict) else item.quantity
        total += to_money(price) * int(quantity)
    return total.quantize(CENT)
