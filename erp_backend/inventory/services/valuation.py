# inventory/services/valuation.py

"""
VALUATION RATE LOOKUP

Rate used to value stock movements (and therefore COGS):
1) latest posted transaction item for the item with a positive valuation_rate
2) fallback: Item.purchase_price
3) otherwise 0 (callers decide whether zero cost is acceptable)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from inventory.models.stock_transaction import StockTransactionItem

RATE_PLACES = Decimal("0.0001")
TWOPLACES = Decimal("0.01")
ZERO = Decimal("0")


def _rate(value) -> Decimal:
    return Decimal(str(value or "0")).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def money(value) -> Decimal:
    return Decimal(str(value or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def get_valuation_rate(*, item, warehouse=None) -> Decimal:
    qs = StockTransactionItem.objects.filter(item=item, valuation_rate__gt=0)
    if warehouse is not None:
        scoped = qs.filter(warehouse=warehouse).order_by("-created_at").values_list(
            "valuation_rate", flat=True
        ).first()
        if scoped:
            return _rate(scoped)

    latest = qs.order_by("-created_at").values_list("valuation_rate", flat=True).first()
    if latest:
        return _rate(latest)

    if item.purchase_price and item.purchase_price > 0:
        return _rate(item.purchase_price)

    return ZERO
