# inventory/models/stock_adjustment.py

"""
STOCK ADJUSTMENT (count corrections, write-offs, found stock)

Editable (items, notes) and deletable ONLY while draft; posting is
performed by inventory.services.adjustments and moves it to posted.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import SoftDeleteModel, TimeStampedModel

ZERO = Decimal("0.0000")


class StockAdjustment(SoftDeleteModel):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        POSTED = "posted", "Posted"

    class Reason(models.TextChoices):
        PHYSICAL_COUNT = "physical_count", "Physical Count"
        DAMAGE = "damage", "Damage"
        EXPIRY = "expiry", "Expiry"
        LOSS = "loss", "Loss / Theft"
        FOUND = "found", "Found Stock"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="stock_adjustments",
    )
    business_unit = models.ForeignKey(
        "companies.BusinessUnit",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_adjustments",
    )
    warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="stock_adjustments",
    )

    code = models.CharField(max_length=32)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    reason = models.CharField(max_length=32, choices=Reason.choices, default=Reason.PHYSICAL_COUNT)
    adjustment_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True, default="")

    stock_transaction = models.ForeignKey(
        "inventory.StockTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_adjustments_posted",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_adjustments_created",
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_stock_adjustment_company_code",
            )
        ]

    def __str__(self):
        return f"{self.code} ({self.status})"


class StockAdjustmentItem(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    adjustment = models.ForeignKey(
        StockAdjustment,
        on_delete=models.CASCADE,
        related_name="items",
    )
    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="+",
    )
    packaging = models.ForeignKey(
        "inventory.ItemPackaging",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )

    current_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    adjusted_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    difference = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=ZERO,
        help_text="Signed: positive adds stock, negative removes it (in the line's packaging)",
    )
    unit_cost = models.DecimalField(max_digits=18, decimal_places=4, null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.item_id}: {self.difference:+}"
