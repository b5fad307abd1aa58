# Overview: The one cart pricing formula, shared by the API and the client.

"""
Cart totals.

    item count = sum of quantities
    subtotal   = sum of price * quantity (price parsed from decimal text)
    shipping   = 0 when subtotal >= 100.00, else a flat 9.99
    tax        = 8% of subtotal, rounded half-up to cents
    total      = subtotal + shipping + tax

Every surface that shows cart money calls compute_cart_totals; nothing
re-implements the formula.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")
FREE_SHIPPING_THRESHOLD = Decimal("100.00")
SHIPPING_FEE = Decimal("9.99")
TAX_RATE = Decimal("0.08")


def parse_price(text) -> Decimal:
    return Decimal(str(text))


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartTotals:
    item_count: int
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    @property
    def free_shipping(self) -> bool:
        return self.shipping == 0

    @property
    def amount_to_free_shipping(self) -> Decimal:
        return max(Decimal("0.00"), _money(FREE_SHIPPING_THRESHOLD - self.subtotal))

    def to_dict(self) -> dict:
        return {
            "itemCount": self.item_count,
            "subtotal": str(self.subtotal),
            "shipping": str(self.shipping),
            "tax": str(self.tax),
            "total": str(self.total),
            "freeShipping": self.free_shipping,
            "amountToFreeShipping": str(self.amount_to_free_shipping),
        }


def compute_cart_totals(lines: Iterable[Mapping]) -> CartTotals:
    """
    Totals for serialized cart lines ({"quantity": n, "product": {"price": "..."}}).
    """
    item_count = 0
    subtotal = Decimal("0")
    for line in lines:
        quantity = int(line["quantity"])
        item_count += quantity
        subtotal += parse_price(line["product"]["price"]) * quantity

    subtotal = _money(subtotal)
    shipping = Decimal("0.00") if subtotal >= FREE_SHIPPING_THRESHOLD else SHIPPING_FEE
    tax = _money(subtotal * TAX_RATE)
    return CartTotals(
        item_count=item_count,
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=_money(subtotal + shipping + tax),
    )
