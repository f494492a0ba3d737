# inventory/services/stock_movements.py

"""
======================================================
PATH: inventory/services/stock_movements.py
======================================================
MANUAL STOCK TRANSACTIONS

Direct stock movements with no originating document, posted immediately:

- in:       receive into warehouse (unit_cost per input packaging, optional)
- out:      issue from warehouse (insufficient stock aborts everything)
- transfer: OUT at warehouse + IN at to_warehouse, one database transaction.
            The destination leg carries the source leg's valuation rate, so
            the moved stock keeps its value.

Every line is normalized to base units first. Both legs of a transfer share
one reference id (reference_type "manual_stock_transaction").
"""

from __future__ import annotations

import logging
import uuid

from django.db import transaction

from inventory.models.item import Item
from inventory.models.stock_transaction import StockTransaction
from inventory.models.warehouse import Warehouse
from inventory.services.exceptions import ValidationFailed
from inventory.services.normalization import normalize_line, to_quantity
from inventory.services.stock_ledger import IN, OUT, StockLine, StockPosting, post_stock_transaction

logger = logging.getLogger(__name__)

REFERENCE_TYPE = "manual_stock_transaction"

T = StockTransaction.TransactionType
MANUAL_TYPES = (T.IN, T.OUT, T.TRANSFER)


def _warehouse(*, company, warehouse_id, label="Warehouse") -> Warehouse:
    wh = Warehouse.objects.alive().filter(company=company, id=warehouse_id, is_active=True).first()
    if wh is None:
        raise ValidationFailed(f"{label} {warehouse_id} not found")
    return wh


def _item(*, company, item_id) -> Item:
    item = Item.objects.alive().filter(company=company, id=item_id).first()
    if item is None:
        raise ValidationFailed(f"Item {item_id} not found")
    if not item.is_stock_item:
        raise ValidationFailed(f"Item {item.code} is not a stock item")
    return item


def _lines(*, company, items: list[dict], direction: str) -> list[StockLine]:
    if not items:
        raise ValidationFailed("Stock transaction must have at least one item")

    lines = []
    for raw in items:
        normalized = normalize_line(
            company=company,
            item=_item(company=company, item_id=raw.get("item_id")),
            packaging=raw.get("packaging_id") or None,
            input_qty=raw.get("quantity"),
        )
        unit_cost = raw.get("unit_cost")
        if direction == IN and unit_cost not in (None, ""):
            unit_cost = to_quantity(unit_cost, field_name="unit_cost")
            if unit_cost < 0:
                raise ValidationFailed("unit_cost cannot be negative")
        else:
            unit_cost = None
        lines.append(
            StockLine(
                normalized=normalized,
                direction=direction,
                unit_cost=unit_cost,
                notes=raw.get("notes", "") or "",
            )
        )
    return lines


def _arrivals(source: StockPosting) -> list[StockLine]:
    """Destination lines for a transfer, valued at the rate the stock left with."""
    lines = []
    for row in source.items:
        normalized = normalize_line(
            company=source.transaction.company_id,
            item=row.item,
            packaging=row.input_packaging_id,
            input_qty=row.input_qty,
        )
        lines.append(
            StockLine(
                normalized=normalized,
                direction=IN,
                unit_cost=row.valuation_rate * row.conversion_factor,
                notes=row.notes,
            )
        )
    return lines


def _summary(posting: StockPosting) -> dict:
    header = posting.transaction
    return {
        "transaction_id": str(header.id),
        "transaction_code": header.code,
        "warehouse_id": str(header.warehouse_id),
        "lines": [
            {
                "item_id": str(row.item_id),
                "direction": row.direction,
                "normalized_qty": str(row.normalized_qty),
                "qty_before": str(row.qty_before),
                "qty_after": str(row.qty_after),
                "valuation_rate": str(row.valuation_rate),
            }
            for row in posting.items
        ],
    }


@transaction.atomic
def create_stock_transaction(
    *,
    company,
    warehouse_id,
    transaction_type: str,
    items: list[dict],
    to_warehouse_id=None,
    transaction_date=None,
    notes: str = "",
    business_unit=None,
    user=None,
) -> dict:
    if transaction_type not in MANUAL_TYPES:
        raise ValidationFailed(
            f"transaction_type must be one of {', '.join(MANUAL_TYPES)} (got {transaction_type!r})"
        )

    warehouse = _warehouse(company=company, warehouse_id=warehouse_id)

    destination = None
    if transaction_type == T.TRANSFER:
        if not to_warehouse_id:
            raise ValidationFailed("to_warehouse_id is required for a transfer")
        destination = _warehouse(company=company, warehouse_id=to_warehouse_id, label="Destination warehouse")
        if destination.id == warehouse.id:
            raise ValidationFailed("Source and destination warehouse must differ")
    elif to_warehouse_id:
        raise ValidationFailed("to_warehouse_id is only allowed for a transfer")

    reference_id = uuid.uuid4()
    common = {
        "company": company,
        "reference_type": REFERENCE_TYPE,
        "reference_id": reference_id,
        "business_unit": business_unit,
        "user": user,
        "transaction_date": transaction_date,
        "notes": notes or "",
    }

    direction = IN if transaction_type == T.IN else OUT
    source = post_stock_transaction(
        warehouse=warehouse,
        transaction_type=transaction_type,
        lines=_lines(company=company, items=items, direction=direction),
        **common,
    )
    postings = [source]

    if destination is not None:
        postings.append(
            post_stock_transaction(
                warehouse=destination,
                transaction_type=T.TRANSFER,
                lines=_arrivals(source),
                reference_code=source.transaction.code,
                **common,
            )
        )

    logger.info(
        "Manual %s %s posted (%s)",
        transaction_type,
        reference_id,
        ", ".join(p.transaction.code for p in postings),
    )

    return {
        "reference_id": str(reference_id),
        "transaction_type": transaction_type,
        "transactions": [_summary(p) for p in postings],
    }
