# inventory/services/normalization.py

"""
======================================================
PATH: inventory/services/normalization.py
======================================================
QUANTITY NORMALIZATION

Converts a user-entered (quantity, packaging) pair into the item's base
stock-keeping unit:

    normalized_qty = input_qty × conversion_factor

Rules:
- conversion_factor comes from the item's packaging table
- base packaging (or no packaging given) => factor 1
- packaging must belong to the item and be active
- input_qty must be > 0; factor must be > 0
- any failure raises NormalizationError; callers abort the whole request

The NormalizedLine is persisted onto every StockTransactionItem so the
original entry can always be reconstructed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError

from inventory.models.item import Item, ItemPackaging
from inventory.services.exceptions import NormalizationError

QTY_PLACES = Decimal("0.0001")
ONE = Decimal("1")


@dataclass(frozen=True)
class NormalizedLine:
    item_id: object
    input_qty: Decimal
    input_packaging_id: object | None
    conversion_factor: Decimal
    normalized_qty: Decimal
    uom: str
    base_package_id: object | None
    item: Item = field(repr=False, compare=False, default=None)


def to_quantity(value, *, field_name: str = "quantity") -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise NormalizationError(f"{field_name} is required")
    try:
        qty = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise NormalizationError(f"{field_name} must be a valid number") from exc
    if not qty.is_finite():
        raise NormalizationError(f"{field_name} must be a valid number")
    return qty.quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def get_base_packaging(item: Item) -> ItemPackaging | None:
    return ItemPackaging.objects.filter(item=item, is_base=True).first()


def _resolve_packaging(item: Item, packaging) -> ItemPackaging | None:
    if packaging is None or packaging == "":
        return None

    if isinstance(packaging, ItemPackaging):
        if packaging.item_id != item.id:
            raise NormalizationError(
                f"Packaging {packaging.name!r} does not belong to item {item.code}"
            )
        if not packaging.is_active:
            raise NormalizationError(
                f"Packaging {packaging.name!r} for item {item.code} is inactive"
            )
        return packaging

    try:
        pkg = ItemPackaging.objects.filter(id=packaging, item=item, is_active=True).first()
    except (ValueError, TypeError, ValidationError) as exc:
        raise NormalizationError(f"Invalid packaging id {packaging!r}") from exc

    if pkg is None:
        raise NormalizationError(
            f"Packaging {packaging} not found for item {item.code} or inactive"
        )
    return pkg


def normalize_line(*, company, item: Item, packaging=None, input_qty) -> NormalizedLine:
    """
    Normalize one line. `packaging` may be an ItemPackaging, its id, or None.
    """
    if item is None:
        raise NormalizationError("item is required")
    if company is not None and item.company_id != getattr(company, "id", company):
        raise NormalizationError(f"Item {item.code} does not belong to this company")
    if item.deleted_at is not None or not item.is_active:
        raise NormalizationError(f"Item {item.code} is inactive")

    qty = to_quantity(input_qty, field_name="quantity")
    if qty <= 0:
        raise NormalizationError(f"Quantity for item {item.code} must be greater than zero")

    base = get_base_packaging(item)
    pkg = _resolve_packaging(item, packaging)

    if pkg is None or pkg.is_base:
        factor = ONE
    else:
        factor = Decimal(str(pkg.qty_per_pack))
        if factor <= 0:
            raise NormalizationError(
                f"Packaging {pkg.name!r} for item {item.code} has an invalid conversion factor {factor}"
            )

    normalized = (qty * factor).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)

    return NormalizedLine(
        item_id=item.id,
        input_qty=qty,
        input_packaging_id=pkg.id if pkg else None,
        conversion_factor=factor,
        normalized_qty=normalized,
        uom=item.uom,
        base_package_id=base.id if base else None,
        item=item,
    )


def normalize_quantity(*, company, item: Item, packaging=None, input_qty) -> Decimal:
    return normalize_line(
        company=company, item=item, packaging=packaging, input_qty=input_qty
    ).normalized_qty
