# fulfillment/services/stock_requests.py

"""
STOCK REQUEST SERVICE

- create_stock_request (draft) / submit / cancel
- derived_status(): fulfilment progress computed from request lines and
  the non-voided delivery notes allocated against them
"""

from __future__ import annotations

from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from common.numbering import next_document_code
from fulfillment.models import DeliveryNote, DeliveryNoteItem, StockRequest, StockRequestItem
from fulfillment.services.exceptions import NotFoundError, ValidationFailed
from fulfillment.services.lifecycle import STOCK_REQUEST_WORKFLOW
from inventory.models.item import Item, ItemPackaging
from inventory.models.warehouse import Warehouse
from inventory.services.normalization import to_quantity

STOCK_REQUEST_CODE_PREFIX = "SR"
ZERO = Decimal("0")

DERIVED_FULFILLED = "fulfilled"
DERIVED_PARTIALLY_FULFILLED = "partially_fulfilled"
DERIVED_DISPATCHED = "dispatched"
DERIVED_ALLOCATED = "allocated"
DERIVED_PARTIALLY_ALLOCATED = "partially_allocated"
DERIVED_ALLOCATING = "allocating"
DERIVED_SUBMITTED = "submitted"
DERIVED_DRAFT = "draft"


def _warehouse(*, company, warehouse_id, label) -> Warehouse:
    wh = Warehouse.objects.alive().filter(company=company, id=warehouse_id, is_active=True).first()
    if wh is None:
        raise ValidationFailed(f"{label} warehouse not found")
    return wh


@transaction.atomic
def create_stock_request(
    *,
    company,
    requesting_warehouse_id,
    fulfilling_warehouse_id,
    items: list[dict],
    required_date=None,
    notes: str = "",
    business_unit=None,
    user=None,
) -> StockRequest:
    requesting = _warehouse(company=company, warehouse_id=requesting_warehouse_id, label="Requesting")
    fulfilling = _warehouse(company=company, warehouse_id=fulfilling_warehouse_id, label="Fulfilling")
    if requesting.id == fulfilling.id:
        raise ValidationFailed("Requesting and fulfilling warehouses must differ")
    if not items:
        raise ValidationFailed("At least one item is required")

    request = StockRequest(
        company=company,
        business_unit=business_unit,
        requesting_warehouse=requesting,
        fulfilling_warehouse=fulfilling,
        required_date=required_date,
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    request.code = next_document_code(
        company=company, prefix=STOCK_REQUEST_CODE_PREFIX, on_date=request.request_date
    )
    request.save()

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

        qty = to_quantity(raw.get("requested_qty"), field_name="requested_qty")
        if qty <= 0:
            raise ValidationFailed("requested_qty must be greater than zero")

        rows.append(
            StockRequestItem(
                stock_request=request,
                item=item,
                packaging_id=packaging_id,
                requested_qty=qty,
                notes=raw.get("notes", "") or "",
            )
        )
    StockRequestItem.objects.bulk_create(rows)
    return request


def _lock_request(*, company, request_id) -> StockRequest:
    req = (
        StockRequest.objects.select_for_update()
        .alive()
        .filter(company=company, id=request_id)
        .first()
    )
    if req is None:
        raise NotFoundError("Stock request not found")
    return req


@transaction.atomic
def submit_stock_request(*, company, request_id) -> StockRequest:
    return STOCK_REQUEST_WORKFLOW.apply(_lock_request(company=company, request_id=request_id), "submit")


@transaction.atomic
def cancel_stock_request(*, company, request_id) -> StockRequest:
    return STOCK_REQUEST_WORKFLOW.apply(_lock_request(company=company, request_id=request_id), "cancel")


def derived_status(request: StockRequest) -> str:
    totals = request.items.aggregate(requested=Sum("requested_qty"), received=Sum("received_qty"))
    requested = totals["requested"] or ZERO
    received = totals["received"] or ZERO

    active = DeliveryNoteItem.objects.filter(stock_request=request).exclude(
        delivery_note__status=DeliveryNote.Status.VOIDED
    )
    dn_totals = active.aggregate(allocated=Sum("allocated_qty"), dispatched=Sum("dispatched_qty"))
    allocated = dn_totals["allocated"] or ZERO
    dispatched = dn_totals["dispatched"] or ZERO

    if requested > 0 and received >= requested:
        return DERIVED_FULFILLED
    if received > 0:
        return DERIVED_PARTIALLY_FULFILLED
    if dispatched > 0:
        return DERIVED_DISPATCHED
    if requested > 0 and allocated >= requested:
        return DERIVED_ALLOCATED
    if allocated > 0:
        return DERIVED_PARTIALLY_ALLOCATED
    if active.exists():
        return DERIVED_ALLOCATING
    if request.status == StockRequest.Status.DRAFT:
        return DERIVED_DRAFT
    return DERIVED_SUBMITTED


def complete_if_fulfilled(request: StockRequest) -> bool:
    """Move a submitted request to completed once every line is fully received."""
    if request.status != StockRequest.Status.SUBMITTED:
        return False
    if any(it.received_qty < it.requested_qty for it in request.items.all()):
        return False
    STOCK_REQUEST_WORKFLOW.apply(request, "complete")
    return True
