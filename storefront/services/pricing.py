"""
Cart pricing

Derives the four cart totals from the line items alone:

    items_price    = sum(price * qty)
    shipping_price = 0 when items_price > free shipping threshold, else flat rate
    tax_price      = items_price * tax rate
    total_price    = items_price + shipping_price + tax_price

Each value is rounded to the cent before it feeds the next one. An empty
cart still pays the flat shipping rate (0 is not above the threshold).
"""
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Dict, Iterable

from storefront.services.money import round2, format_money, to_decimal


@dataclass(frozen=True)
class PricingPolicy:
    free_shipping_threshold: Decimal = Decimal("100.00")
    flat_shipping_price: Decimal = Decimal("100.00")
    tax_rate: Decimal = Decimal("0.15")

    @classmethod
    def from_settings(cls, settings) -> "PricingPolicy":
        return cls(
            free_shipping_threshold=Decimal(settings.FREE_SHIPPING_THRESHOLD),
            flat_shipping_price=Decimal(settings.FLAT_SHIPPING_PRICE),
            tax_rate=Decimal(settings.TAX_RATE),
        )


DEFAULT_PRICING_POLICY = PricingPolicy()


@dataclass(frozen=True)
class PriceBreakdown:
    """Cart totals as 2-decimal strings, ready for the database or JSON."""
    items_price: str
    shipping_price: str
    tax_price: str
    total_price: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)

    def as_decimals(self) -> Dict[str, Decimal]:
        return {key: Decimal(value) for key, value in asdict(self).items()}


def compute_totals(items: Iterable, policy: PricingPolicy = DEFAULT_PRICING_POLICY) -> PriceBreakdown:
    """
    Compute cart totals.

    Args:
        items: Line items exposing `price` and `qty`
        policy: Shipping and tax constants

    Returns:
        PriceBreakdown with all four totals
    """
    items_price = round2(sum((to_decimal(item.price) * item.qty for item in items), Decimal("0")))

    if items_price > policy.free_shipping_threshold:
        shipping_price = round2(0)
    else:
        shipping_price = round2(policy.flat_shipping_price)

    tax_price = round2(items_price * policy.tax_rate)
    total_price = round2(items_price + shipping_price + tax_price)

    return PriceBreakdown(
        items_price=format_money(items_price),
        shipping_price=format_money(shipping_price),
        tax_price=format_money(tax_price),
        total_price=format_money(total_price),
    )
