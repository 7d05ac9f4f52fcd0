# app/shared/services/pricing.py
"""
Bill arithmetic shared by every path that creates or edits a sale.

No rounding happens here; presentation layers round for display only.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable

TAX_RATE = 0.14


@dataclass(frozen=True)
class PricingBreakdown:
    subtotal: float
    discount_percentage: float
    discount_amount: float
    after_discount: float
    tax_amount: float
    total: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def clamp_discount(discount_percentage: float) -> float:
    return min(100.0, max(0.0, float(discount_percentage or 0)))


def line_subtotal(price: float, quantity: int) -> float:
    return float(price) * int(quantity)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item[name]
    return getattr(item, name)


def calculate_totals(items: Iterable[Any], discount_percentage: float = 0) -> PricingBreakdown:
    """
    Compute subtotal -> discount -> 14% tax -> total.

    ``items`` may be ORM rows, pydantic models or mappings; only ``price`` and
    ``quantity`` are read. An empty list gives an all-zero breakdown.
    """
    discount = clamp_discount(discount_percentage)
    subtotal = sum(line_subtotal(_field(i, "price"), _field(i, "quantity")) for i in items)
    subtotal = float(subtotal)
    discount_amount = subtotal * discount / 100
    after_discount = subtotal - discount_amount
    tax_amount = after_discount * TAX_RATE

    return PricingBreakdown(
        subtotal=subtotal,
        discount_percentage=discount,
        discount_amount=discount_amount,
        after_discount=after_discount,
        tax_amount=tax_amount,
        total=after_discount + tax_amount
    )
