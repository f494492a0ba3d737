# purchases/services/receiving_service.py

"""
======================================================
PATH: purchases/services/receiving_service.py
======================================================
GOODS RECEIPT (GRN) SERVICE

Draft management:
- create_grn / update_grn_items while draft
- submit_grn: draft -> pending_approval
- reject_grn: pending_approval -> rejected (reason required)

approve_grn(): pending_approval -> approved, atomically:
1) Lock GRN, validate status + items (at least one line)
2) Normalize each line (packaging -> base units)
3) Stock IN (reference_type "grn") at the line's unit cost;
   damaged quantity recorded in the line notes
4) Release in_transit for the received quantity (never below zero)
5) Mark approved (approved_by / approved_at + stock transaction link)

Any failure rolls back the stock transaction, balances and status together.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from common.numbering import next_document_code
from inventory.models.item import Item, ItemPackaging
from inventory.models.stock_transaction import StockTransaction
from inventory.models.warehouse import Warehouse
from inventory.services.normalization import normalize_line, to_quantity
from inventory.services.stock_ledger import IN, StockLine, adjust_in_transit, post_stock_transaction
from purchases.models import GoodsReceiptNote, GoodsReceiptNoteItem, Supplier
from purchases.services.exceptions import NotFoundError, PurchaseReceivingError, ValidationFailed
from purchases.services.lifecycle import EDITABLE_STATUSES, GRN_WORKFLOW

logger = logging.getLogger(__name__)

GRN_CODE_PREFIX = "GRN"
REFERENCE_TYPE = "grn"
ZERO = Decimal("0")


def _build_items(*, company, grn: GoodsReceiptNote, items: list[dict]) -> list[GoodsReceiptNoteItem]:
    if not items:
        raise ValidationFailed("At least one item is required")

    rows = []
    for raw in items:
        item = Item.objects.alive().filter(company=company, id=raw.get("item_id")).first()
        if item is None:
            raise ValidationFailed(f"Item {raw.get('item_id')} not found")

        packaging_id = raw.get("packaging_id") or None
        if packaging_id and not ItemPackaging.objects.filter(
            id=packaging_id, item=item, is_active=True
        ).exists():
            raise ValidationFailed(f"Packaging {packaging_id} not found for item {item.code}")

        received = to_quantity(raw.get("received_qty"), field_name="received_qty")
        damaged = to_quantity(raw.get("damaged_qty", 0) or 0, field_name="damaged_qty")
        if received < 0 or damaged < 0:
            raise ValidationFailed("Quantities cannot be negative")
        if damaged > received:
            raise ValidationFailed(f"damaged_qty cannot exceed received_qty for item {item.code}")

        rows.append(
            GoodsReceiptNoteItem(
                grn=grn,
                item=item,
                packaging_id=packaging_id,
                received_qty=received,
                damaged_qty=damaged,
                unit_cost=Decimal(str(raw.get("unit_cost") or 0)),
                notes=raw.get("notes", "") or "",
            )
        )
    return rows


@transaction.atomic
def create_grn(
    *,
    company,
    supplier_id,
    warehouse_id,
    items: list[dict],
    receipt_date=None,
    supplier_reference: str = "",
    notes: str = "",
    business_unit=None,
    user=None,
) -> GoodsReceiptNote:
    supplier = Supplier.objects.alive().filter(company=company, id=supplier_id, is_active=True).first()
    if supplier is None:
        raise ValidationFailed("Supplier not found")

    warehouse = Warehouse.objects.alive().filter(company=company, id=warehouse_id, is_active=True).first()
    if warehouse is None:
        raise ValidationFailed("Warehouse not found")

    grn = GoodsReceiptNote(
        company=company,
        business_unit=business_unit,
        supplier=supplier,
        warehouse=warehouse,
        supplier_reference=supplier_reference or "",
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    if receipt_date:
        grn.receipt_date = receipt_date
    grn.code = next_document_code(company=company, prefix=GRN_CODE_PREFIX, on_date=grn.receipt_date)
    grn.save()

    GoodsReceiptNoteItem.objects.bulk_create(_build_items(company=company, grn=grn, items=items))
    return grn


def _lock_grn(*, company, grn_id) -> GoodsReceiptNote:
    grn = (
        GoodsReceiptNote.objects.select_for_update()
        .alive()
        .filter(company=company, id=grn_id)
        .first()
    )
    if grn is None:
        raise NotFoundError("GRN not found")
    return grn


@transaction.atomic
def update_grn_items(*, company, grn_id, items: list[dict]) -> GoodsReceiptNote:
    grn = _lock_grn(company=company, grn_id=grn_id)
    GRN_WORKFLOW.require_status(grn, EDITABLE_STATUSES, action="edited")

    grn.items.all().delete()
    GoodsReceiptNoteItem.objects.bulk_create(_build_items(company=company, grn=grn, items=items))
    return grn


@transaction.atomic
def submit_grn(*, company, grn_id) -> GoodsReceiptNote:
    grn = _lock_grn(company=company, grn_id=grn_id)
    GRN_WORKFLOW.validate(grn, "submit")
    if not grn.items.exists():
        raise ValidationFailed("GRN has no items")
    return GRN_WORKFLOW.apply(grn, "submit")


@transaction.atomic
def reject_grn(*, company, grn_id, reason: str) -> GoodsReceiptNote:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed("A rejection reason is required")

    grn = _lock_grn(company=company, grn_id=grn_id)
    GRN_WORKFLOW.apply(grn, "reject", rejection_reason=reason)
    logger.info("GRN %s rejected: %s", grn.code, reason)
    return grn


def _damaged_note(row: GoodsReceiptNoteItem) -> str:
    parts = [row.notes] if row.notes else []
    if row.damaged_qty and row.damaged_qty > 0:
        parts.append(f"Damaged: {row.damaged_qty.normalize()}")
    return "; ".join(parts)


@transaction.atomic
def approve_grn(*, company, grn_id, user=None, notes: str = "") -> dict:
    grn = _lock_grn(company=company, grn_id=grn_id)
    GRN_WORKFLOW.validate(grn, "approve")

    rows = list(grn.items.select_related("item", "packaging").all())
    if not rows:
        raise ValidationFailed("GRN has no items")

    lines = []
    for row in rows:
        if row.received_qty <= 0:
            continue
        normalized = normalize_line(
            company=company,
            item=row.item,
            packaging=row.packaging,
            input_qty=row.received_qty,
        )
        lines.append(
            StockLine(
                normalized=normalized,
                direction=IN,
                unit_cost=row.unit_cost if row.unit_cost else None,
                notes=_damaged_note(row),
            )
        )

    if not lines:
        raise PurchaseReceivingError(f"GRN {grn.code} has no received quantity to stock")

    posting = post_stock_transaction(
        company=company,
        warehouse=grn.warehouse,
        transaction_type=StockTransaction.TransactionType.IN,
        reference_type=REFERENCE_TYPE,
        reference_id=grn.id,
        reference_code=grn.code,
        business_unit=grn.business_unit,
        user=user,
        transaction_date=grn.receipt_date,
        notes=notes or f"Auto-created from GRN {grn.code}",
        lines=lines,
    )

    for line in lines:
        adjust_in_transit(
            item=line.normalized.item,
            warehouse=grn.warehouse,
            delta=-line.normalized.normalized_qty,
        )

    GRN_WORKFLOW.apply(
        grn,
        "approve",
        stock_transaction=posting.transaction,
        approved_by=user if getattr(user, "is_authenticated", False) else None,
    )
    logger.info("GRN %s approved as %s", grn.code, posting.transaction.code)

    return {
        "grn_id": str(grn.id),
        "code": grn.code,
        "status": grn.status,
        "transaction_id": str(posting.transaction.id),
        "transaction_code": posting.transaction.code,
        "lines_posted": len(posting.items),
        "total_cost": str(posting.total_cost),
    }
