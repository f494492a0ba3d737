# sales/services/order_conversion.py

"""
======================================================
PATH: sales/services/order_conversion.py
======================================================
SALES ORDER -> INVOICE CONVERSION

One database transaction:
1) Lock order; must be confirmed/processing and not already converted
2) Warehouse required (request body wins, else the order's own)
3) Create invoice (status sent, due in INVOICE_DUE_DAYS) copying the lines
4) Stock OUT for the invoice (normalized, reference "sales_invoice")
5) Order -> invoiced, linked to the invoice
6) AR + COGS downstream postings (best-effort, see invoice_posting)
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounting.models.posting_failure import PostingFailure
from common.numbering import next_document_code
from sales.models import SalesInvoice, SalesInvoiceItem, SalesOrder
from sales.services.exceptions import AlreadyConvertedError, NotFoundError, ValidationFailed
from sales.services.invoice_posting import (
    downstream_errors,
    issue_invoice_stock,
    resolve_warehouse,
    run_invoice_downstream,
)
from sales.services.lifecycle import ORDER_WORKFLOW

logger = logging.getLogger(__name__)

INVOICE_CODE_PREFIX = "INV"


def _lock_order(*, company, order_id) -> SalesOrder:
    order = (
        SalesOrder.objects.select_for_update()
        .alive()
        .filter(company=company, id=order_id)
        .first()
    )
    if order is None:
        raise NotFoundError("Sales order not found")
    return order


def _due_days() -> int:
    return int(getattr(settings, "INVOICE_DUE_DAYS", 30))


def _create_invoice_from_order(*, order: SalesOrder, warehouse, user=None) -> SalesInvoice:
    today = timezone.localdate()
    user = user if getattr(user, "is_authenticated", False) else None

    invoice = SalesInvoice.objects.create(
        company=order.company,
        business_unit=order.business_unit,
        customer=order.customer,
        sales_order=order,
        warehouse=warehouse,
        code=next_document_code(company=order.company, prefix=INVOICE_CODE_PREFIX, on_date=today),
        status=SalesInvoice.Status.SENT,
        invoice_date=today,
        due_date=today + timedelta(days=_due_days()),
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        tax_amount=order.tax_amount,
        total_amount=order.total_amount,
        amount_due=order.total_amount,
        primary_employee=order.sales_employee,
        posted_at=timezone.now(),
        posted_by=user,
        created_by=user,
        notes=order.notes,
    )

    for row in order.items.all():
        SalesInvoiceItem.objects.create(
            invoice=invoice,
            item=row.item,
            packaging=row.packaging,
            description=row.description,
            quantity=row.quantity,
            unit_price=row.unit_price,
            discount_amount=row.discount_amount,
            tax_amount=row.tax_amount,
        )
    return invoice


@transaction.atomic
def convert_sales_order_to_invoice(*, company, order_id, warehouse_id=None, user=None) -> dict:
    order = _lock_order(company=company, order_id=order_id)

    if order.invoice_id:
        raise AlreadyConvertedError(f"Sales order {order.code} has already been converted to an invoice")
    ORDER_WORKFLOW.validate(order, "convert_to_invoice")

    if not order.items.exists():
        raise ValidationFailed(f"Sales order {order.code} has no items")

    warehouse = resolve_warehouse(company=company, warehouse_id=warehouse_id, fallback=order.warehouse)

    invoice = _create_invoice_from_order(order=order, warehouse=warehouse, user=user)
    posting = issue_invoice_stock(invoice=invoice, warehouse=warehouse, user=user)
    if posting is not None:
        invoice.stock_transaction = posting.transaction
        invoice.save(update_fields=["stock_transaction", "updated_at"])

    ORDER_WORKFLOW.apply(order, "convert_to_invoice", invoice=invoice)
    logger.info("Sales order %s converted to invoice %s", order.code, invoice.code)

    outcomes = run_invoice_downstream(invoice=invoice, include_commission=False)
    ar = outcomes[PostingFailure.KIND_AR]
    cogs = outcomes[PostingFailure.KIND_COGS]

    return {
        "order_id": str(order.id),
        "order_status": order.status,
        "invoice_id": str(invoice.id),
        "invoice_code": invoice.code,
        "invoice_status": invoice.status,
        "due_date": invoice.due_date.isoformat(),
        "transaction_id": str(posting.transaction.id) if posting else None,
        "transaction_code": posting.transaction.code if posting else None,
        "ar_journal_entry_id": ar.journal_entry_id,
        "ar_posting_success": ar.success,
        "cogs_journal_entry_id": cogs.journal_entry_id,
        "cogs_posting_success": cogs.success,
        "cogs_total_amount": str(cogs.amount) if cogs.amount is not None else "0.00",
        "errors": downstream_errors(outcomes),
        "postings": {kind: o.as_dict() for kind, o in outcomes.items()},
    }
