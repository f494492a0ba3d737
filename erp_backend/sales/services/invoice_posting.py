# sales/services/invoice_posting.py

"""
======================================================
PATH: sales/services/invoice_posting.py
======================================================
INVOICE POSTING (APPLICATION SERVICE)

post_invoice(): draft -> sent

One database transaction:
1) Lock invoice, validate transition (draft only)
2) Resolve warehouse (request body wins, else the invoice's own)
3) Stock OUT for every stock-item line, normalized to base units
   (reference_type "sales_invoice"); insufficient stock aborts everything
4) Status -> sent, posted_at / posted_by / stock_transaction stamped
5) Downstream postings, each in its own savepoint:
   commission -> AR -> COGS
   A downstream failure is reported in the response and queued in
   PostingFailure; it never undoes steps 3-4.
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.models.posting_failure import PostingFailure
from accounting.services.downstream import PostingOutcome, run_downstream
from accounting.services.posting import (
    SALES_INVOICE_DOCUMENT,
    post_invoice_ar,
    post_invoice_cogs,
)
from inventory.models.stock_transaction import StockTransaction
from inventory.models.warehouse import Warehouse
from inventory.services.normalization import normalize_line
from inventory.services.stock_ledger import OUT, StockLine, StockPosting, post_stock_transaction
from sales.models import SalesInvoice
from sales.services.commission_service import calculate_invoice_commission
from sales.services.exceptions import NotFoundError, ValidationFailed
from sales.services.lifecycle import INVOICE_WORKFLOW

logger = logging.getLogger(__name__)


def _lock_invoice(*, company, invoice_id) -> SalesInvoice:
    invoice = (
        SalesInvoice.objects.select_for_update()
        .alive()
        .filter(company=company, id=invoice_id)
        .first()
    )
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


def resolve_warehouse(*, company, warehouse_id=None, fallback=None) -> Warehouse:
    if warehouse_id:
        warehouse = (
            Warehouse.objects.alive()
            .filter(company=company, id=warehouse_id, is_active=True)
            .first()
        )
        if warehouse is None:
            raise ValidationFailed(f"Warehouse {warehouse_id} not found")
        return warehouse

    if fallback is not None:
        return fallback

    raise ValidationFailed("Warehouse is required to post stock")


def issue_invoice_stock(*, invoice: SalesInvoice, warehouse: Warehouse, user=None) -> StockPosting | None:
    """Stock OUT for the invoice's stock lines. None when nothing moves."""
    lines = []
    for row in invoice.items.select_related("item", "packaging").all():
        if row.item is None or not row.item.is_stock_item:
            continue
        normalized = normalize_line(
            company=invoice.company,
            item=row.item,
            packaging=row.packaging,
            input_qty=row.quantity,
        )
        lines.append(StockLine(normalized=normalized, direction=OUT, notes=row.description))

    if not lines:
        return None

    return post_stock_transaction(
        company=invoice.company,
        warehouse=warehouse,
        transaction_type=StockTransaction.TransactionType.OUT,
        reference_type=SALES_INVOICE_DOCUMENT,
        reference_id=invoice.id,
        reference_code=invoice.code,
        business_unit=invoice.business_unit,
        user=user,
        transaction_date=invoice.invoice_date,
        notes=f"Sales invoice {invoice.code}",
        lines=lines,
    )


def run_invoice_downstream(*, invoice: SalesInvoice, include_commission: bool = True) -> dict[str, PostingOutcome]:
    common = {
        "company": invoice.company,
        "document_type": SALES_INVOICE_DOCUMENT,
        "document_id": invoice.id,
        "document_code": invoice.code,
    }
    outcomes: dict[str, PostingOutcome] = {}

    if include_commission:
        outcomes[PostingFailure.KIND_COMMISSION] = run_downstream(
            kind=PostingFailure.KIND_COMMISSION,
            action=lambda: calculate_invoice_commission(invoice=invoice),
            **common,
        )
    outcomes[PostingFailure.KIND_AR] = run_downstream(
        kind=PostingFailure.KIND_AR,
        action=lambda: post_invoice_ar(invoice=invoice),
        **common,
    )
    outcomes[PostingFailure.KIND_COGS] = run_downstream(
        kind=PostingFailure.KIND_COGS,
        action=lambda: post_invoice_cogs(invoice=invoice),
        **common,
    )

    # savepoint rollbacks may have left unsaved attribute changes on the instance
    invoice.refresh_from_db()
    return outcomes


def downstream_errors(outcomes: dict[str, PostingOutcome]) -> list[str]:
    return [
        f"{kind}: {o.error}"
        for kind, o in outcomes.items()
        if not o.success and not o.skipped and o.error
    ]


@transaction.atomic
def post_invoice(*, company, invoice_id, warehouse_id=None, user=None) -> dict:
    invoice = _lock_invoice(company=company, invoice_id=invoice_id)
    INVOICE_WORKFLOW.validate(invoice, "post")

    warehouse = resolve_warehouse(
        company=company, warehouse_id=warehouse_id, fallback=invoice.warehouse
    )

    posting = issue_invoice_stock(invoice=invoice, warehouse=warehouse, user=user)

    INVOICE_WORKFLOW.apply(
        invoice,
        "post",
        warehouse=warehouse,
        stock_transaction=posting.transaction if posting else None,
        posted_by=user if getattr(user, "is_authenticated", False) else None,
    )
    logger.info("Invoice %s posted", invoice.code)

    outcomes = run_invoice_downstream(invoice=invoice)
    commission = outcomes[PostingFailure.KIND_COMMISSION]
    ar = outcomes[PostingFailure.KIND_AR]
    cogs = outcomes[PostingFailure.KIND_COGS]

    return {
        "invoice_id": str(invoice.id),
        "invoice_code": invoice.code,
        "status": invoice.status,
        "transaction_id": str(posting.transaction.id) if posting else None,
        "transaction_code": posting.transaction.code if posting else None,
        "ar_journal_entry_id": ar.journal_entry_id,
        "ar_posting_success": ar.success,
        "cogs_journal_entry_id": cogs.journal_entry_id,
        "cogs_posting_success": cogs.success,
        "cogs_total_amount": str(cogs.amount) if cogs.amount is not None else "0.00",
        "commission_total": str(invoice.commission_total),
        "commission_employee_id": commission.extra.get("employee_id"),
        "commission_success": commission.success,
        "errors": downstream_errors(outcomes),
        "postings": {kind: o.as_dict() for kind, o in outcomes.items()},
    }
