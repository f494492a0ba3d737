# fulfillment/services/delivery_notes.py

"""
======================================================
PATH: fulfillment/services/delivery_notes.py
======================================================
DELIVERY NOTE SERVICE

Create (draft):
- each line allocates part of a stock request line
- allocated <= requested - received - allocated on other active notes
  (active = neither voided nor received), else OverAllocationError
- request lines are locked while allocating so two notes cannot
  over-allocate the same line concurrently

Picking:
- confirm -> start_picking -> record_picks (picked <= allocated,
  short = allocated - picked) -> mark_dispatch_ready

dispatch() (atomic):
- dispatched <= picked (defaults to picked)
- stock OUT of the fulfilling warehouse (type transfer)
- in_transit grows at the requesting warehouse

receive() (atomic):
- 0 <= received <= dispatched (defaults to dispatched)
- stock IN to the requesting warehouse (type transfer)
- in_transit released at the requesting warehouse (never below zero)
- stock request line received_qty grows; fully received requests complete

void(): only before dispatch.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Sum

from common.numbering import next_document_code
from fulfillment.models import DeliveryNote, DeliveryNoteItem, StockRequest, StockRequestItem
from fulfillment.services.exceptions import (
    NotFoundError,
    OverAllocationError,
    ValidationFailed,
)
from fulfillment.services.lifecycle import (
    DELIVERY_NOTE_WORKFLOW,
    INACTIVE_NOTE_STATUSES,
    PICKABLE_STATUSES,
)
from fulfillment.services.stock_requests import complete_if_fulfilled
from inventory.models.stock_transaction import StockTransaction
from inventory.services.normalization import normalize_line, to_quantity
from inventory.services.stock_ledger import IN, OUT, StockLine, adjust_in_transit, post_stock_transaction

logger = logging.getLogger(__name__)

DELIVERY_NOTE_CODE_PREFIX = "DN"
REFERENCE_TYPE = "delivery_note"
ZERO = Decimal("0")

# requests in these statuses cannot receive new allocations
NON_ALLOCATABLE_REQUEST_STATUSES = {
    StockRequest.Status.DRAFT,
    StockRequest.Status.CANCELLED,
    StockRequest.Status.COMPLETED,
}


def _fmt(value: Decimal) -> str:
    return str(Decimal(value).normalize())


def _already_allocated(*, request_item_ids, exclude_note_id=None) -> dict:
    qs = DeliveryNoteItem.objects.filter(stock_request_item_id__in=request_item_ids).exclude(
        delivery_note__status__in=INACTIVE_NOTE_STATUSES
    ).filter(delivery_note__deleted_at__isnull=True)
    if exclude_note_id is not None:
        qs = qs.exclude(delivery_note_id=exclude_note_id)
    return {
        row["stock_request_item_id"]: row["total"] or ZERO
        for row in qs.values("stock_request_item_id").annotate(total=Sum("allocated_qty"))
    }


def check_allocation(*, request_item: StockRequestItem, allocated_qty: Decimal, already_allocated: Decimal) -> None:
    max_allocatable = max(
        Decimal(request_item.requested_qty) - Decimal(request_item.received_qty) - already_allocated,
        ZERO,
    )
    if allocated_qty > max_allocatable:
        raise OverAllocationError(
            f"Allocated quantity ({_fmt(allocated_qty)}) exceeds available quantity "
            f"({_fmt(max_allocatable)}) for {request_item.item.code}. "
            f"Requested: {_fmt(request_item.requested_qty)}, received: {_fmt(request_item.received_qty)}, "
            f"already allocated in other active delivery notes: {_fmt(already_allocated)}."
        )


@transaction.atomic
def create_delivery_note(
    *,
    company,
    lines: list[dict],
    driver_name: str = "",
    notes: str = "",
    business_unit=None,
    user=None,
) -> DeliveryNote:
    """
    lines: [{"stock_request_item_id": ..., "allocated_qty": ...}, ...]
    All lines must share the same requesting / fulfilling warehouses.
    """
    if not lines:
        raise ValidationFailed("At least one delivery note line is required")

    ids = [raw.get("stock_request_item_id") for raw in lines]
    request_items = {
        str(it.id): it
        for it in StockRequestItem.objects.select_for_update()
        .select_related("stock_request", "item")
        .filter(
            id__in=ids,
            stock_request__company=company,
            stock_request__deleted_at__isnull=True,
        )
    }

    allocated = _already_allocated(request_item_ids=list(request_items))
    pending = defaultdict(lambda: ZERO)

    requesting = fulfilling = None
    rows = []
    for raw in lines:
        request_item = request_items.get(str(raw.get("stock_request_item_id")))
        if request_item is None:
            raise ValidationFailed(f"Invalid stock request item {raw.get('stock_request_item_id')}")

        request = request_item.stock_request
        if request.status in NON_ALLOCATABLE_REQUEST_STATUSES:
            raise ValidationFailed(
                f"Stock request {request.code} is not eligible for delivery note allocation"
            )

        if requesting is None:
            requesting, fulfilling = request.requesting_warehouse_id, request.fulfilling_warehouse_id
        elif (requesting, fulfilling) != (request.requesting_warehouse_id, request.fulfilling_warehouse_id):
            raise ValidationFailed("All lines must share the same requesting and fulfilling warehouses")

        qty = to_quantity(raw.get("allocated_qty"), field_name="allocated_qty")
        if qty <= 0:
            raise ValidationFailed("Allocated quantity must be greater than zero")

        check_allocation(
            request_item=request_item,
            allocated_qty=qty,
            already_allocated=allocated.get(request_item.id, ZERO) + pending[request_item.id],
        )
        pending[request_item.id] += qty

        rows.append(
            DeliveryNoteItem(
                stock_request=request,
                stock_request_item=request_item,
                item=request_item.item,
                packaging_id=request_item.packaging_id,
                allocated_qty=qty,
                short_qty=qty,
            )
        )

    note = DeliveryNote(
        company=company,
        business_unit=business_unit,
        requesting_warehouse_id=requesting,
        fulfilling_warehouse_id=fulfilling,
        driver_name=driver_name or "",
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    note.code = next_document_code(company=company, prefix=DELIVERY_NOTE_CODE_PREFIX)
    note.save()

    for row in rows:
        row.delivery_note = note
    DeliveryNoteItem.objects.bulk_create(rows)

    logger.info("Delivery note %s created with %d line(s)", note.code, len(rows))
    return note


def _lock_note(*, company, note_id) -> DeliveryNote:
    note = (
        DeliveryNote.objects.select_for_update()
        .alive()
        .select_related("requesting_warehouse", "fulfilling_warehouse")
        .filter(company=company, id=note_id)
        .first()
    )
    if note is None:
        raise NotFoundError("Delivery note not found")
    return note


def _line_quantities(note: DeliveryNote, quantities: list[dict] | None, *, field_name: str) -> dict:
    """Map delivery note item id -> quantity from [{"id": ..., field_name: ...}]."""
    if not quantities:
        return {}
    known = {str(pk) for pk in note.items.values_list("id", flat=True)}
    result = {}
    for raw in quantities:
        key = str(raw.get("id") or raw.get("delivery_note_item_id") or "")
        if key not in known:
            raise ValidationFailed(f"Delivery note item {key or '?'} not found on {note.code}")
        result[key] = to_quantity(raw.get(field_name), field_name=field_name)
    return result


@transaction.atomic
def confirm_delivery_note(*, company, note_id) -> DeliveryNote:
    return DELIVERY_NOTE_WORKFLOW.apply(_lock_note(company=company, note_id=note_id), "confirm")


@transaction.atomic
def start_picking(*, company, note_id) -> DeliveryNote:
    return DELIVERY_NOTE_WORKFLOW.apply(_lock_note(company=company, note_id=note_id), "start_picking")


@transaction.atomic
def record_picks(*, company, note_id, picks: list[dict]) -> DeliveryNote:
    """picks: [{"id": <delivery note item id>, "picked_qty": ...}]"""
    note = _lock_note(company=company, note_id=note_id)
    DELIVERY_NOTE_WORKFLOW.require_status(note, PICKABLE_STATUSES, action="picked")

    quantities = _line_quantities(note, picks, field_name="picked_qty")
    if not quantities:
        raise ValidationFailed("At least one pick is required")

    for row in note.items.filter(id__in=list(quantities)):
        picked = quantities[str(row.id)]
        if picked < 0 or picked > row.allocated_qty:
            raise ValidationFailed(
                f"Picked quantity for {row.item.code} must be between 0 and {_fmt(row.allocated_qty)}"
            )
        row.picked_qty = picked
        row.short_qty = row.allocated_qty - picked
        row.save(update_fields=["picked_qty", "short_qty", "updated_at"])

    return note


@transaction.atomic
def mark_dispatch_ready(*, company, note_id) -> DeliveryNote:
    note = _lock_note(company=company, note_id=note_id)
    DELIVERY_NOTE_WORKFLOW.validate(note, "mark_dispatch_ready")
    if not note.items.filter(picked_qty__gt=0).exists():
        raise ValidationFailed(f"Delivery note {note.code} has nothing picked")
    return DELIVERY_NOTE_WORKFLOW.apply(note, "mark_dispatch_ready")


@transaction.atomic
def dispatch_delivery_note(*, company, note_id, quantities: list[dict] | None = None, user=None) -> dict:
    note = _lock_note(company=company, note_id=note_id)
    DELIVERY_NOTE_WORKFLOW.validate(note, "dispatch")

    overrides = _line_quantities(note, quantities, field_name="dispatched_qty")

    lines = []
    rows = list(note.items.select_related("item", "packaging").all())
    for row in rows:
        qty = overrides.get(str(row.id), row.picked_qty)
        if qty < 0 or qty > row.picked_qty:
            raise ValidationFailed(
                f"Dispatched quantity for {row.item.code} must be between 0 and {_fmt(row.picked_qty)}"
            )
        row.dispatched_qty = qty
        row.save(update_fields=["dispatched_qty", "updated_at"])

        if qty > 0:
            normalized = normalize_line(company=company, item=row.item, packaging=row.packaging, input_qty=qty)
            lines.append(StockLine(normalized=normalized, direction=OUT))

    if not lines:
        raise ValidationFailed(f"Delivery note {note.code} has nothing to dispatch")

    posting = post_stock_transaction(
        company=company,
        warehouse=note.fulfilling_warehouse,
        transaction_type=StockTransaction.TransactionType.TRANSFER,
        reference_type=REFERENCE_TYPE,
        reference_id=note.id,
        reference_code=note.code,
        business_unit=note.business_unit,
        user=user,
        notes=f"Dispatch {note.code} to {note.requesting_warehouse.code}",
        lines=lines,
    )

    for line in lines:
        adjust_in_transit(
            item=line.normalized.item,
            warehouse=note.requesting_warehouse,
            delta=line.normalized.normalized_qty,
        )

    DELIVERY_NOTE_WORKFLOW.apply(note, "dispatch", dispatch_transaction=posting.transaction)
    logger.info("Delivery note %s dispatched as %s", note.code, posting.transaction.code)

    return {
        "delivery_note_id": str(note.id),
        "code": note.code,
        "status": note.status,
        "transaction_id": str(posting.transaction.id),
        "transaction_code": posting.transaction.code,
        "lines_dispatched": len(posting.items),
    }


@transaction.atomic
def receive_delivery_note(*, company, note_id, quantities: list[dict] | None = None, user=None) -> dict:
    note = _lock_note(company=company, note_id=note_id)
    DELIVERY_NOTE_WORKFLOW.validate(note, "receive")

    rows = list(note.items.select_related("item", "packaging", "stock_request_item").all())
    if not rows:
        raise ValidationFailed(f"Delivery note {note.code} has no items")

    overrides = _line_quantities(note, quantities, field_name="received_qty")

    lines = []
    in_transit_release = []
    for row in rows:
        qty = overrides.get(str(row.id), row.dispatched_qty)
        if qty < 0 or qty > row.dispatched_qty:
            raise ValidationFailed(
                f"Received quantity for {row.item.code} must be between 0 and {_fmt(row.dispatched_qty)}"
            )
        row.received_qty = qty
        row.save(update_fields=["received_qty", "updated_at"])

        if row.dispatched_qty > 0:
            in_transit_release.append(
                normalize_line(
                    company=company, item=row.item, packaging=row.packaging, input_qty=row.dispatched_qty
                )
            )
        if qty > 0:
            normalized = normalize_line(company=company, item=row.item, packaging=row.packaging, input_qty=qty)
            lines.append(StockLine(normalized=normalized, direction=IN))
            StockRequestItem.objects.filter(pk=row.stock_request_item_id).update(
                received_qty=F("received_qty") + qty
            )

    posting = None
    if lines:
        posting = post_stock_transaction(
            company=company,
            warehouse=note.requesting_warehouse,
            transaction_type=StockTransaction.TransactionType.TRANSFER,
            reference_type=REFERENCE_TYPE,
            reference_id=note.id,
            reference_code=note.code,
            business_unit=note.business_unit,
            user=user,
            notes=f"Receipt of {note.code} from {note.fulfilling_warehouse.code}",
            lines=lines,
        )

    # the whole dispatched quantity has left transit, including any shortfall
    for normalized in in_transit_release:
        adjust_in_transit(
            item=normalized.item,
            warehouse=note.requesting_warehouse,
            delta=-normalized.normalized_qty,
        )

    DELIVERY_NOTE_WORKFLOW.apply(
        note,
        "receive",
        receipt_transaction=posting.transaction if posting else None,
        received_by=user if getattr(user, "is_authenticated", False) else None,
    )

    completed = []
    request_ids = {row.stock_request_id for row in rows}
    for request in StockRequest.objects.select_for_update().filter(id__in=request_ids):
        if complete_if_fulfilled(request):
            completed.append(request.code)

    logger.info("Delivery note %s received", note.code)

    return {
        "delivery_note_id": str(note.id),
        "code": note.code,
        "status": note.status,
        "transaction_id": str(posting.transaction.id) if posting else None,
        "transaction_code": posting.transaction.code if posting else None,
        "lines_received": len(lines),
        "completed_stock_requests": completed,
    }


@transaction.atomic
def void_delivery_note(*, company, note_id, reason: str = "") -> DeliveryNote:
    note = _lock_note(company=company, note_id=note_id)
    return DELIVERY_NOTE_WORKFLOW.apply(note, "void", void_reason=(reason or "").strip())
