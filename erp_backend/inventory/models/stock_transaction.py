# inventory/models/stock_transaction.py

"""
STOCK TRANSACTION LEDGER (APPEND-ONLY)

StockTransaction      - header: type, originating document, warehouse, date
StockTransactionItem  - one posted line: normalized quantity + before/after
                        snapshot + valuation, forming the audit trail

GUARANTEES:
- Created once by inventory.services.stock_ledger, never edited
- No deletes (corrections are new, opposite postings)
- qty_after == qty_before ± normalized_qty (direction-checked in clean())
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

ZERO = Decimal("0")


class StockTransaction(models.Model):
    class TransactionType(models.TextChoices):
        IN = "in", "Stock In"
        OUT = "out", "Stock Out"
        TRANSFER = "transfer", "Transfer"
        ADJUSTMENT = "adjustment", "Adjustment"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="stock_transactions",
    )
    business_unit = models.ForeignKey(
        "companies.BusinessUnit",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_transactions",
    )

    code = models.CharField(max_length=32)
    transaction_type = models.CharField(max_length=16, choices=TransactionType.choices)

    warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="stock_transactions",
    )

    reference_type = models.CharField(max_length=40)
    reference_id = models.CharField(max_length=64)
    reference_code = models.CharField(max_length=64, blank=True, default="")

    transaction_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["company", "reference_type", "reference_id"], name="inv_st_company_reference_idx"),
            models.Index(fields=["company", "transaction_date"], name="inv_st_company_date_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_stock_transaction_company_code",
            )
        ]

    def __str__(self):
        return f"{self.code} ({self.transaction_type})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockTransaction records are immutable once created")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("StockTransaction records are immutable and cannot be deleted")


class StockTransactionItem(models.Model):
    class Direction(models.TextChoices):
        IN = "in", "In"
        OUT = "out", "Out"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction = models.ForeignKey(
        StockTransaction,
        on_delete=models.PROTECT,
        related_name="items",
    )
    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="stock_transaction_items",
    )
    warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="stock_transaction_items",
    )
    direction = models.CharField(max_length=3, choices=Direction.choices)

    # --- normalization trace ---
    input_qty = models.DecimalField(max_digits=18, decimal_places=4)
    input_packaging = models.ForeignKey(
        "inventory.ItemPackaging",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    conversion_factor = models.DecimalField(max_digits=18, decimal_places=4)
    normalized_qty = models.DecimalField(max_digits=18, decimal_places=4)
    base_package = models.ForeignKey(
        "inventory.ItemPackaging",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    uom = models.CharField(max_length=32, blank=True, default="")

    # --- balance snapshot ---
    qty_before = models.DecimalField(max_digits=18, decimal_places=4)
    qty_after = models.DecimalField(max_digits=18, decimal_places=4)

    # --- valuation ---
    valuation_rate = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    unit_cost = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    total_cost = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    stock_value_before = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    stock_value_after = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    posting_date = models.DateField(default=timezone.localdate)
    posting_time = models.TimeField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["item", "warehouse", "created_at"], name="inv_sti_item_wh_created_idx"),
            models.Index(fields=["item", "created_at"], name="inv_sti_item_created_idx"),
        ]

    def __str__(self):
        return f"{self.direction} {self.normalized_qty} {self.uom} of {self.item_id}"

    def clean(self):
        if self.normalized_qty is None or self.normalized_qty <= 0:
            raise ValidationError("normalized_qty must be greater than zero")

        if self.qty_after is None or self.qty_after < 0:
            raise ValidationError("qty_after cannot be negative")

        sign = 1 if self.direction == self.Direction.IN else -1
        if self.qty_after != self.qty_before + sign * self.normalized_qty:
            raise ValidationError(
                f"Balance snapshot mismatch: before={self.qty_before} "
                f"after={self.qty_after} normalized={self.normalized_qty} ({self.direction})"
            )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockTransactionItem records are immutable once created")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("StockTransactionItem records are immutable and cannot be deleted")
