# sales/models/commission.py

import uuid
from decimal import Decimal

from django.db import models

from common.models import TimeStampedModel


class InvoiceEmployee(TimeStampedModel):
    """
    Commission share of one employee on one invoice.

    split_percentage across an invoice sums to 100.
    commission_amount = invoice total × split% × commission_rate%.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(
        "sales.SalesInvoice",
        on_delete=models.CASCADE,
        related_name="commission_splits",
    )
    employee = models.ForeignKey(
        "sales.Employee",
        on_delete=models.PROTECT,
        related_name="invoice_commissions",
    )

    split_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("100.00"))
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    commission_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    is_primary = models.BooleanField(default=False)

    class Meta:
        ordering = ["-is_primary", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["invoice", "employee"],
                name="uniq_invoice_employee",
            )
        ]

    def __str__(self):
        return f"{self.employee_id} {self.split_percentage}% of {self.invoice_id}"
