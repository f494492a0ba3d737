# inventory/services/stock_ledger.py

"""
======================================================
PATH: inventory/services/stock_ledger.py
======================================================
STOCK LEDGER POSTING (AUTHORITATIVE)

This module is the ONLY place allowed to:
- Create StockTransaction / StockTransactionItem
- Mutate ItemWarehouse.current_stock / in_transit

Canonical flow (one database transaction):
1) Validate warehouse + lines (already normalized)
2) Issue transaction code (ST-YYYY-NNNN)
3) For each line:
   - lock the (item, warehouse) balance row (select_for_update)
   - inbound: create the balance row if missing, increment
   - outbound: atomic conditional decrement (current_stock >= qty)
     else InsufficientStockError(available, requested)
   - insert the transaction item with qty_before / qty_after + valuation
4) Return StockPosting

Guarantees:
- qty_after == qty_before ± normalized_qty, qty_after >= 0
- Any failure rolls back header, items and balances together
- Two concurrent outbound postings cannot both pass the sufficiency check
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction
from django.db.models import DecimalField, F, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from common.numbering import next_document_code
from inventory.models.stock_transaction import StockTransaction, StockTransactionItem
from inventory.models.warehouse import ItemWarehouse, Warehouse
from inventory.services.exceptions import (
    InsufficientStockError,
    StockPostingError,
    ValidationFailed,
)
from inventory.services.normalization import NormalizedLine
from inventory.services.valuation import get_valuation_rate, money

logger = logging.getLogger(__name__)

TRANSACTION_CODE_PREFIX = "ST"
RATE_PLACES = Decimal("0.0001")
ZERO = Decimal("0")

IN = StockTransactionItem.Direction.IN
OUT = StockTransactionItem.Direction.OUT


@dataclass(frozen=True)
class StockLine:
    normalized: NormalizedLine
    direction: str
    unit_cost: Decimal | None = None
    notes: str = ""


@dataclass
class StockPosting:
    transaction: StockTransaction
    items: list[StockTransactionItem] = field(default_factory=list)

    @property
    def total_cost(self) -> Decimal:
        return money(sum((it.total_cost for it in self.items), ZERO))


# ------------------------------------------------------------
# Balance primitives
# ------------------------------------------------------------

def _lock_balance(*, item, warehouse) -> ItemWarehouse | None:
    return (
        ItemWarehouse.objects.select_for_update()
        .filter(item=item, warehouse=warehouse)
        .first()
    )


def _lock_or_create_balance(*, item, warehouse) -> ItemWarehouse:
    balance = _lock_balance(item=item, warehouse=warehouse)
    if balance is not None:
        return balance

    try:
        with transaction.atomic():
            ItemWarehouse.objects.create(
                company_id=warehouse.company_id,
                item=item,
                warehouse=warehouse,
            )
    except IntegrityError:
        # Created concurrently; fall through and lock the winner's row.
        pass

    return _lock_balance(item=item, warehouse=warehouse)


def _increment(*, item, warehouse, qty: Decimal) -> tuple[Decimal, Decimal]:
    balance = _lock_or_create_balance(item=item, warehouse=warehouse)

    ItemWarehouse.objects.filter(pk=balance.pk).update(
        current_stock=F("current_stock") + qty,
        updated_at=timezone.now(),
    )
    # snapshot from the row as written, not from the locked read
    balance.refresh_from_db(fields=["current_stock"])
    return balance.current_stock - qty, balance.current_stock


def _decrement(*, item, warehouse, qty: Decimal) -> tuple[Decimal, Decimal]:
    balance = _lock_balance(item=item, warehouse=warehouse)
    if balance is None:
        raise InsufficientStockError(
            item_code=item.code,
            warehouse_code=warehouse.code,
            available=ZERO,
            requested=qty,
        )

    # Conditional update: the storage layer re-checks sufficiency atomically,
    # so correctness does not depend on the lock being honoured (SQLite).
    updated = ItemWarehouse.objects.filter(
        pk=balance.pk,
        current_stock__gte=qty,
    ).update(
        current_stock=F("current_stock") - qty,
        updated_at=timezone.now(),
    )

    balance.refresh_from_db(fields=["current_stock"])
    if updated != 1:
        raise InsufficientStockError(
            item_code=item.code,
            warehouse_code=warehouse.code,
            available=balance.current_stock,
            requested=qty,
        )

    return balance.current_stock + qty, balance.current_stock


def adjust_in_transit(*, item, warehouse, delta: Decimal) -> None:
    """
    Move in_transit by delta; decrements are floored at zero.
    Creates the balance row when goods start travelling to a new location.
    """
    delta = Decimal(str(delta))
    if delta == 0:
        return

    balance = _lock_or_create_balance(item=item, warehouse=warehouse)
    if delta > 0:
        new_value = F("in_transit") + delta
    else:
        new_value = Greatest(
            F("in_transit") + delta,
            Value(ZERO),
            output_field=DecimalField(max_digits=18, decimal_places=4),
        )

    ItemWarehouse.objects.filter(pk=balance.pk).update(
        in_transit=new_value,
        updated_at=timezone.now(),
    )


def get_balance(*, item, warehouse) -> Decimal:
    value = (
        ItemWarehouse.objects.filter(item=item, warehouse=warehouse)
        .values_list("current_stock", flat=True)
        .first()
    )
    return value if value is not None else ZERO


# ------------------------------------------------------------
# Posting
# ------------------------------------------------------------

def _validate_lines(*, company, warehouse: Warehouse, lines: list[StockLine]) -> None:
    if not lines:
        raise ValidationFailed("A stock transaction needs at least one line")

    if warehouse is None:
        raise ValidationFailed("warehouse is required")
    if warehouse.company_id != company.id:
        raise ValidationFailed("Warehouse does not belong to this company")
    if warehouse.deleted_at is not None or not warehouse.is_active:
        raise ValidationFailed(f"Warehouse {warehouse.code} is inactive")

    for line in lines:
        if line.direction not in (IN, OUT):
            raise ValidationFailed(f"Invalid line direction {line.direction!r}")
        item = line.normalized.item
        if item is None or item.company_id != company.id:
            raise ValidationFailed("Stock line item does not belong to this company")
        if line.normalized.normalized_qty <= 0:
            raise ValidationFailed(f"Quantity for item {item.code} must be greater than zero")


@transaction.atomic
def post_stock_transaction(
    *,
    company,
    warehouse: Warehouse,
    transaction_type: str,
    reference_type: str,
    reference_id,
    lines: list[StockLine],
    reference_code: str = "",
    business_unit=None,
    user=None,
    transaction_date=None,
    notes: str = "",
) -> StockPosting:
    if transaction_type not in StockTransaction.TransactionType.values:
        raise ValidationFailed(f"Invalid transaction type {transaction_type!r}")

    _validate_lines(company=company, warehouse=warehouse, lines=lines)

    posting_date = transaction_date or timezone.localdate()
    now = timezone.localtime()

    header = StockTransaction.objects.create(
        company=company,
        business_unit=business_unit,
        code=next_document_code(
            company=company, prefix=TRANSACTION_CODE_PREFIX, on_date=posting_date
        ),
        transaction_type=transaction_type,
        warehouse=warehouse,
        reference_type=reference_type,
        reference_id=str(reference_id),
        reference_code=reference_code or "",
        transaction_date=posting_date,
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )

    posting = StockPosting(transaction=header)

    for line in lines:
        n = line.normalized
        item = n.item
        qty = n.normalized_qty

        rate = get_valuation_rate(item=item, warehouse=warehouse)

        if line.direction == IN:
            qty_before, qty_after = _increment(item=item, warehouse=warehouse, qty=qty)
            if line.unit_cost is not None and Decimal(str(line.unit_cost)) > 0:
                # Costs are entered per input packaging; ledger rates are per base unit.
                rate = (Decimal(str(line.unit_cost)) / n.conversion_factor).quantize(
                    RATE_PLACES, rounding=ROUND_HALF_UP
                )
        else:
            qty_before, qty_after = _decrement(item=item, warehouse=warehouse, qty=qty)

        row = StockTransactionItem.objects.create(
            transaction=header,
            item=item,
            warehouse=warehouse,
            direction=line.direction,
            input_qty=n.input_qty,
            input_packaging_id=n.input_packaging_id,
            conversion_factor=n.conversion_factor,
            normalized_qty=qty,
            base_package_id=n.base_package_id,
            uom=n.uom,
            qty_before=qty_before,
            qty_after=qty_after,
            valuation_rate=rate,
            unit_cost=rate,
            total_cost=money(qty * rate),
            stock_value_before=money(qty_before * rate),
            stock_value_after=money(qty_after * rate),
            posting_date=posting_date,
            posting_time=now.time(),
            notes=line.notes or "",
        )
        posting.items.append(row)

    logger.info(
        "Posted stock transaction %s (%s) for %s:%s with %d line(s)",
        header.code,
        transaction_type,
        reference_type,
        reference_id,
        len(posting.items),
    )
    return posting


__all__ = [
    "IN",
    "OUT",
    "StockLine",
    "StockPosting",
    "StockPostingError",
    "adjust_in_transit",
    "get_balance",
    "post_stock_transaction",
]
