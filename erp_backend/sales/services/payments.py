# sales/services/payments.py

"""
======================================================
PATH: sales/services/payments.py
======================================================
INVOICE PAYMENTS (APPLICATION SERVICE)

record_invoice_payment(): customer money against a posted invoice

One database transaction:
1) Lock invoice; only sent / overdue invoices take payments
2) 0 < amount <= amount_due
3) InvoicePayment row; amount_paid += amount, amount_due -= amount
4) amount_due reaching zero moves the invoice to paid (INVOICE_WORKFLOW)
5) Downstream: DR Cash|Bank / CR AR in its own savepoint. A failure is
   reported and queued in PostingFailure; it never undoes steps 3-4.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction

from accounting.models.posting_failure import PostingFailure
from accounting.services.downstream import run_downstream
from accounting.services.posting import SALES_INVOICE_PAYMENT_DOCUMENT, post_invoice_payment
from sales.models import InvoicePayment, SalesInvoice
from sales.services.exceptions import ValidationFailed
from sales.services.invoice_posting import _lock_invoice
from sales.services.lifecycle import INVOICE_WORKFLOW

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

PAYABLE_STATUSES = {SalesInvoice.Status.SENT, SalesInvoice.Status.OVERDUE}


def _amount(value) -> Decimal:
    try:
        return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationFailed(f"Invalid payment amount: {value!r}") from exc


@transaction.atomic
def record_invoice_payment(
    *,
    company,
    invoice_id,
    amount,
    method: str = InvoicePayment.Method.CASH,
    payment_date=None,
    reference: str = "",
    notes: str = "",
    user=None,
) -> dict:
    invoice = _lock_invoice(company=company, invoice_id=invoice_id)
    INVOICE_WORKFLOW.require_status(invoice, PAYABLE_STATUSES, action="paid")

    if method not in InvoicePayment.Method.values:
        raise ValidationFailed(f"Unknown payment method '{method}'")

    amount = _amount(amount)
    if amount <= ZERO:
        raise ValidationFailed("Payment amount must be greater than zero")
    if amount > invoice.amount_due:
        raise ValidationFailed(
            f"Payment {amount} exceeds amount due {invoice.amount_due} on invoice {invoice.code}"
        )

    fields = {"invoice": invoice, "company": invoice.company, "amount": amount, "method": method}
    if payment_date is not None:
        fields["payment_date"] = payment_date
    payment = InvoicePayment.objects.create(
        reference=reference or "",
        notes=notes or "",
        received_by=user if getattr(user, "is_authenticated", False) else None,
        **fields,
    )

    amount_paid = invoice.amount_paid + amount
    amount_due = invoice.amount_due - amount
    if amount_due == ZERO:
        INVOICE_WORKFLOW.apply(invoice, "mark_paid", amount_paid=amount_paid, amount_due=ZERO)
    else:
        invoice.amount_paid = amount_paid
        invoice.amount_due = amount_due
        invoice.save(update_fields=["amount_paid", "amount_due", "updated_at"])
    logger.info("Payment %s recorded on invoice %s (due %s)", amount, invoice.code, amount_due)

    outcome = run_downstream(
        kind=PostingFailure.KIND_PAYMENT,
        company=invoice.company,
        document_type=SALES_INVOICE_PAYMENT_DOCUMENT,
        document_id=payment.id,
        document_code=invoice.code,
        action=lambda: post_invoice_payment(payment=payment),
    )
    payment.refresh_from_db()

    return {
        "payment_id": str(payment.id),
        "invoice_id": str(invoice.id),
        "invoice_code": invoice.code,
        "status": invoice.status,
        "amount": str(payment.amount),
        "method": payment.method,
        "amount_paid": str(invoice.amount_paid),
        "amount_due": str(invoice.amount_due),
        "journal_entry_id": outcome.journal_entry_id,
        "accounting_success": outcome.success,
        "errors": [f"{outcome.kind}: {outcome.error}"] if not outcome.success and not outcome.skipped else [],
        "postings": {outcome.kind: outcome.as_dict()},
    }


@transaction.atomic
def settle_invoice(*, company, invoice_id, user=None) -> SalesInvoice:
    """mark_paid: record the outstanding balance as one cash payment."""
    invoice = _lock_invoice(company=company, invoice_id=invoice_id)
    if invoice.amount_due <= ZERO:
        return INVOICE_WORKFLOW.apply(invoice, "mark_paid")

    record_invoice_payment(
        company=company,
        invoice_id=invoice.id,
        amount=invoice.amount_due,
        notes="Settled in full (mark_paid)",
        user=user,
    )
    invoice.refresh_from_db()
    return invoice
