# sales/models/payment.py

"""
CUSTOMER PAYMENT AGAINST A SALES INVOICE

Written only by sales.services.payments.record_invoice_payment, which keeps
invoice.amount_paid / amount_due in step and posts
DR Cash|Bank / CR Accounts Receivable (reference SALES_INVOICE_PAYMENT:{id}).
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel


class InvoicePayment(TimeStampedModel):
    class Method(models.TextChoices):
        CASH = "cash", "Cash"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"
        CARD = "card", "Card"
        CHEQUE = "cheque", "Cheque"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="invoice_payments",
    )
    invoice = models.ForeignKey(
        "sales.SalesInvoice",
        on_delete=models.PROTECT,
        related_name="payments",
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    method = models.CharField(max_length=20, choices=Method.choices, default=Method.CASH)
    payment_date = models.DateField(default=timezone.localdate)
    reference = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoice_payments_received",
    )

    class Meta:
        ordering = ["payment_date", "created_at"]
        indexes = [
            models.Index(fields=["company", "invoice"], name="sales_pay_company_inv_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="sales_payment_amount_positive",
            )
        ]

    def __str__(self):
        return f"{self.amount} on {self.invoice_id} ({self.method})"
