# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTER (SALES INVOICES)

Build postings and call create_journal_entry (the engine).

This module should remain a thin adapter:
- It DOES NOT do workflows (sales services do).
- It DOES map business events -> accounting postings.
- It ALWAYS calls create_journal_entry (engine) for immutability + idempotency.

AR:
    DR Accounts Receivable / CR Sales Revenue, for the invoice total
    reference SALES_INVOICE_AR:{invoice_id}

COGS:
    DR COGS / CR Inventory, for the cost of the invoice's outbound stock
    (Σ normalized_qty × valuation_rate, stored as total_cost on each line)
    reference SALES_INVOICE_COGS:{invoice_id}
    zero cost => skipped (nothing to post)

PAYMENT:
    DR Cash (cash) or Bank (other methods) / CR Accounts Receivable
    reference SALES_INVOICE_PAYMENT:{payment_id}

Re-running any of these postings returns the existing entry.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum
from django.utils import timezone

from accounting.models.posting_failure import PostingFailure
from accounting.services.downstream import PostingOutcome
from accounting.services.journal_entry_service import create_journal_entry, find_journal_entry
from accounting.services.posting_rules import (
    build_ar_postings,
    build_cogs_postings,
    build_payment_postings,
)
from common.exceptions import NotFoundError
from inventory.models.stock_transaction import StockTransactionItem
from sales.models import InvoicePayment, SalesInvoice

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

SALES_INVOICE_DOCUMENT = "sales_invoice"
SALES_INVOICE_PAYMENT_DOCUMENT = "sales_invoice_payment"
REF_SALES_INVOICE_AR = "SALES_INVOICE_AR"
REF_SALES_INVOICE_COGS = "SALES_INVOICE_COGS"
REF_SALES_INVOICE_PAYMENT = "SALES_INVOICE_PAYMENT"


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _posted_at(invoice):
    return invoice.posted_at or timezone.now()


def _link(invoice, field: str, entry) -> None:
    if getattr(invoice, f"{field}_id") == entry.id:
        return
    setattr(invoice, field, entry)
    invoice.save(update_fields=[field, "updated_at"])


def invoice_cogs_amount(*, invoice) -> Decimal:
    total = StockTransactionItem.objects.filter(
        transaction__company_id=invoice.company_id,
        transaction__reference_type=SALES_INVOICE_DOCUMENT,
        transaction__reference_id=str(invoice.id),
        direction=StockTransactionItem.Direction.OUT,
    ).aggregate(total=Sum("total_cost"))["total"]
    return _money(total)


def post_invoice_ar(*, invoice) -> PostingOutcome:
    existing = find_journal_entry(
        company=invoice.company, reference_type=REF_SALES_INVOICE_AR, reference_id=invoice.id
    )
    if existing is not None:
        _link(invoice, "ar_journal_entry", existing)
        return PostingOutcome(
            kind=PostingFailure.KIND_AR,
            success=True,
            journal_entry_id=str(existing.id),
            amount=_money(invoice.total_amount),
        )

    amount = _money(invoice.total_amount)
    entry = create_journal_entry(
        description=f"Sales invoice {invoice.code}",
        postings=build_ar_postings(company=invoice.company, amount=amount),
        reference_type=REF_SALES_INVOICE_AR,
        reference_id=invoice.id,
        posted_at=_posted_at(invoice),
    )
    _link(invoice, "ar_journal_entry", entry)

    logger.info("AR posted for invoice %s: %s", invoice.code, amount)
    return PostingOutcome(
        kind=PostingFailure.KIND_AR,
        success=True,
        journal_entry_id=str(entry.id),
        amount=amount,
    )


def post_invoice_cogs(*, invoice) -> PostingOutcome:
    amount = invoice_cogs_amount(invoice=invoice)

    existing = find_journal_entry(
        company=invoice.company, reference_type=REF_SALES_INVOICE_COGS, reference_id=invoice.id
    )
    if existing is not None:
        _link(invoice, "cogs_journal_entry", existing)
        return PostingOutcome(
            kind=PostingFailure.KIND_COGS,
            success=True,
            journal_entry_id=str(existing.id),
            amount=amount,
        )

    if amount <= 0:
        return PostingOutcome(
            kind=PostingFailure.KIND_COGS,
            skipped=True,
            amount=amount,
            error="No inventory cost to post",
        )

    entry = create_journal_entry(
        description=f"COGS for sales invoice {invoice.code}",
        postings=build_cogs_postings(company=invoice.company, amount=amount),
        reference_type=REF_SALES_INVOICE_COGS,
        reference_id=invoice.id,
        posted_at=_posted_at(invoice),
    )
    _link(invoice, "cogs_journal_entry", entry)

    logger.info("COGS posted for invoice %s: %s", invoice.code, amount)
    return PostingOutcome(
        kind=PostingFailure.KIND_COGS,
        success=True,
        journal_entry_id=str(entry.id),
        amount=amount,
    )


def post_invoice_payment(*, payment) -> PostingOutcome:
    amount = _money(payment.amount)

    existing = find_journal_entry(
        company=payment.company, reference_type=REF_SALES_INVOICE_PAYMENT, reference_id=payment.id
    )
    if existing is None:
        existing = create_journal_entry(
            description=f"Payment for sales invoice {payment.invoice.code}",
            postings=build_payment_postings(
                company=payment.company,
                amount=amount,
                via_bank=payment.method != InvoicePayment.Method.CASH,
            ),
            reference_type=REF_SALES_INVOICE_PAYMENT,
            reference_id=payment.id,
            posted_at=timezone.now(),
        )
        logger.info("Payment posted for invoice %s: %s", payment.invoice.code, amount)

    _link(payment, "journal_entry", existing)
    return PostingOutcome(
        kind=PostingFailure.KIND_PAYMENT,
        success=True,
        journal_entry_id=str(existing.id),
        amount=amount,
    )


# ------------------------------------------------------------
# Retry handlers (see accounting.services.retry)
# ------------------------------------------------------------

def _load_invoice(*, company, document_id):
    invoice = SalesInvoice.objects.alive().filter(company=company, id=document_id).first()
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


def retry_invoice_ar(*, company, document_id) -> PostingOutcome:
    return post_invoice_ar(invoice=_load_invoice(company=company, document_id=document_id))


def retry_invoice_cogs(*, company, document_id) -> PostingOutcome:
    return post_invoice_cogs(invoice=_load_invoice(company=company, document_id=document_id))


def retry_invoice_payment(*, company, document_id) -> PostingOutcome:
    payment = (
        InvoicePayment.objects.select_related("invoice", "company")
        .filter(company=company, id=document_id)
        .first()
    )
    if payment is None:
        raise NotFoundError("Payment not found")
    return post_invoice_payment(payment=payment)
