# inventory/services/adjustments.py

"""
======================================================
PATH: inventory/services/adjustments.py
======================================================
STOCK ADJUSTMENT SERVICE

Draft management:
- create / update (items replaced wholesale) / delete (soft) while draft

Posting (atomic):
1) Lock adjustment, validate draft
2) Normalize every line with a non-zero difference (zero lines are skipped)
3) All-zero adjustment => error
4) One stock transaction: positive differences in, negative differences out;
   header type follows the sign of the net difference
5) Mark posted (+ link transaction)

Insufficient stock on any negative line rolls everything back.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from common.numbering import next_document_code
from inventory.models.item import Item, ItemPackaging
from inventory.models.stock_adjustment import StockAdjustment, StockAdjustmentItem
from inventory.models.stock_transaction import StockTransaction
from inventory.models.warehouse import Warehouse
from inventory.services.exceptions import NotFoundError, ValidationFailed
from inventory.services.lifecycle import ADJUSTMENT_WORKFLOW, EDITABLE_STATUSES
from inventory.services.normalization import normalize_line, to_quantity
from inventory.services.stock_ledger import IN, OUT, StockLine, post_stock_transaction

logger = logging.getLogger(__name__)

ADJUSTMENT_CODE_PREFIX = "ADJ"
REFERENCE_TYPE = "stock_adjustment"
ZERO = Decimal("0")


def _get_item(*, company, item_id) -> Item:
    item = Item.objects.alive().filter(company=company, id=item_id).first()
    if item is None:
        raise ValidationFailed(f"Item {item_id} not found")
    return item


def _get_warehouse(*, company, warehouse_id) -> Warehouse:
    wh = Warehouse.objects.alive().filter(company=company, id=warehouse_id, is_active=True).first()
    if wh is None:
        raise ValidationFailed(f"Warehouse {warehouse_id} not found")
    return wh


def _build_items(*, company, adjustment: StockAdjustment, items: list[dict]) -> list[StockAdjustmentItem]:
    if not items:
        raise ValidationFailed("At least one item is required")

    rows = []
    for raw in items:
        item = _get_item(company=company, item_id=raw.get("item_id"))

        current_qty = to_quantity(raw.get("current_qty", 0) or 0, field_name="current_qty")
        adjusted_qty = to_quantity(raw.get("adjusted_qty", 0) or 0, field_name="adjusted_qty")

        if raw.get("difference") not in (None, ""):
            difference = to_quantity(raw["difference"], field_name="difference")
        else:
            difference = adjusted_qty - current_qty

        packaging_id = raw.get("packaging_id") or None
        if packaging_id and not ItemPackaging.objects.filter(
            id=packaging_id, item=item, is_active=True
        ).exists():
            raise ValidationFailed(f"Packaging {packaging_id} not found for item {item.code}")

        unit_cost = raw.get("unit_cost")
        rows.append(
            StockAdjustmentItem(
                adjustment=adjustment,
                item=item,
                packaging_id=packaging_id,
                current_qty=current_qty,
                adjusted_qty=adjusted_qty,
                difference=difference,
                unit_cost=Decimal(str(unit_cost)) if unit_cost not in (None, "") else None,
                notes=raw.get("notes", "") or "",
            )
        )
    return rows


@transaction.atomic
def create_stock_adjustment(
    *,
    company,
    warehouse_id,
    items: list[dict],
    reason: str = StockAdjustment.Reason.PHYSICAL_COUNT,
    adjustment_date=None,
    notes: str = "",
    business_unit=None,
    user=None,
) -> StockAdjustment:
    warehouse = _get_warehouse(company=company, warehouse_id=warehouse_id)

    adjustment = StockAdjustment(
        company=company,
        business_unit=business_unit,
        warehouse=warehouse,
        reason=reason,
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    if adjustment_date:
        adjustment.adjustment_date = adjustment_date
    adjustment.code = next_document_code(
        company=company, prefix=ADJUSTMENT_CODE_PREFIX, on_date=adjustment.adjustment_date
    )
    adjustment.save()

    StockAdjustmentItem.objects.bulk_create(
        _build_items(company=company, adjustment=adjustment, items=items)
    )
    return adjustment


def _lock_adjustment(*, company, adjustment_id) -> StockAdjustment:
    adj = (
        StockAdjustment.objects.select_for_update()
        .alive()
        .filter(company=company, id=adjustment_id)
        .first()
    )
    if adj is None:
        raise NotFoundError("Stock adjustment not found")
    return adj


@transaction.atomic
def update_stock_adjustment(
    *,
    company,
    adjustment_id,
    items: list[dict] | None = None,
    **changes,
) -> StockAdjustment:
    adjustment = _lock_adjustment(company=company, adjustment_id=adjustment_id)
    ADJUSTMENT_WORKFLOW.require_status(adjustment, EDITABLE_STATUSES, action="edited")

    fields = []
    for attr in ("reason", "notes", "adjustment_date"):
        if attr in changes and changes[attr] is not None:
            setattr(adjustment, attr, changes[attr])
            fields.append(attr)

    if "warehouse_id" in changes and changes["warehouse_id"]:
        adjustment.warehouse = _get_warehouse(company=company, warehouse_id=changes["warehouse_id"])
        fields.append("warehouse")

    if fields:
        adjustment.save(update_fields=[*fields, "updated_at"])

    if items is not None:
        adjustment.items.all().delete()
        StockAdjustmentItem.objects.bulk_create(
            _build_items(company=company, adjustment=adjustment, items=items)
        )

    return adjustment


@transaction.atomic
def delete_stock_adjustment(*, company, adjustment_id) -> None:
    adjustment = _lock_adjustment(company=company, adjustment_id=adjustment_id)
    ADJUSTMENT_WORKFLOW.require_status(adjustment, EDITABLE_STATUSES, action="deleted")
    adjustment.soft_delete()


def _transaction_type_for(net: Decimal) -> str:
    if net > 0:
        return StockTransaction.TransactionType.IN
    if net < 0:
        return StockTransaction.TransactionType.OUT
    return StockTransaction.TransactionType.ADJUSTMENT


@transaction.atomic
def post_stock_adjustment(*, company, adjustment_id, user=None) -> dict:
    adjustment = _lock_adjustment(company=company, adjustment_id=adjustment_id)
    ADJUSTMENT_WORKFLOW.validate(adjustment, "post")

    rows = list(adjustment.items.select_related("item", "packaging").all())
    movable = [r for r in rows if r.difference != ZERO]
    skipped = len(rows) - len(movable)

    if not movable:
        raise ValidationFailed("No items with a non-zero difference to post")

    lines = []
    net = ZERO
    for row in movable:
        normalized = normalize_line(
            company=company,
            item=row.item,
            packaging=row.packaging,
            input_qty=abs(row.difference),
        )
        direction = IN if row.difference > 0 else OUT
        net += normalized.normalized_qty if direction == IN else -normalized.normalized_qty
        lines.append(
            StockLine(
                normalized=normalized,
                direction=direction,
                unit_cost=row.unit_cost if direction == IN else None,
                notes=row.notes,
            )
        )

    posting = post_stock_transaction(
        company=company,
        warehouse=adjustment.warehouse,
        transaction_type=_transaction_type_for(net),
        reference_type=REFERENCE_TYPE,
        reference_id=adjustment.id,
        reference_code=adjustment.code,
        lines=lines,
        business_unit=adjustment.business_unit,
        user=user,
        transaction_date=adjustment.adjustment_date,
        notes=f"Stock adjustment {adjustment.code} ({adjustment.reason})",
    )

    ADJUSTMENT_WORKFLOW.apply(
        adjustment,
        "post",
        stock_transaction=posting.transaction,
        posted_by=user if getattr(user, "is_authenticated", False) else None,
    )

    logger.info("Stock adjustment %s posted as %s", adjustment.code, posting.transaction.code)

    return {
        "adjustment_id": str(adjustment.id),
        "code": adjustment.code,
        "status": adjustment.status,
        "transaction_id": str(posting.transaction.id),
        "transaction_code": posting.transaction.code,
        "transaction_type": posting.transaction.transaction_type,
        "lines_posted": len(posting.items),
        "lines_skipped": skipped,
    }
