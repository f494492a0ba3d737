# sales/models/lines.py

import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.db import models

from common.models import TimeStampedModel

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


class SalesLine(TimeStampedModel):
    """
    Shared shape of sales order / invoice lines.

    item is optional: service or free-text lines carry only a description
    and never move stock.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    packaging = models.ForeignKey(
        "inventory.ItemPackaging",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    description = models.CharField(max_length=255, blank=True, default="")

    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    line_total = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)

    class Meta:
        abstract = True
        ordering = ["created_at"]

    @property
    def gross_amount(self) -> Decimal:
        return (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(
            TWOPLACES, rounding=ROUND_HALF_UP
        )

    def compute_line_total(self) -> Decimal:
        return (self.gross_amount - Decimal(self.discount_amount) + Decimal(self.tax_amount)).quantize(
            TWOPLACES, rounding=ROUND_HALF_UP
        )

    def save(self, *args, **kwargs):
        self.line_total = self.compute_line_total()
        return super().save(*args, **kwargs)
