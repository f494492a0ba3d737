# inventory/models/item.py

"""
ITEM MASTER + PACKAGING

Every item has exactly one base packaging (qty_per_pack == 1); all stock
balances are kept in that unit. Alternate packagings ("box of 12") carry
the number of base units one pack contains.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from common.models import SoftDeleteModel, TimeStampedModel

ONE = Decimal("1")


class Item(SoftDeleteModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="items",
    )

    code = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    uom = models.CharField(max_length=32, default="each", help_text="Base unit of measure")

    purchase_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000")
    )
    sales_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000")
    )

    is_stock_item = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["company", "code"], name="inv_item_company_code_idx"),
            models.Index(fields=["company", "is_active"], name="inv_item_company_active_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_item_company_code_alive",
            )
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()
        if not self.code:
            raise ValidationError("Item code is required")
        if not self.name:
            raise ValidationError("Item name is required")


class ItemPackaging(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item = models.ForeignKey(
        Item,
        on_delete=models.CASCADE,
        related_name="packagings",
    )

    name = models.CharField(max_length=64)
    qty_per_pack = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=ONE,
        help_text="Base units contained in one pack",
    )
    is_base = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    barcode = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        ordering = ["item", "-is_base", "qty_per_pack"]
        constraints = [
            models.UniqueConstraint(
                fields=["item"],
                condition=Q(is_base=True),
                name="uniq_item_base_packaging",
            ),
            models.UniqueConstraint(
                fields=["item", "name"],
                name="uniq_item_packaging_name",
            ),
            models.CheckConstraint(
                condition=Q(qty_per_pack__gt=0),
                name="chk_packaging_qty_per_pack_positive",
            ),
            models.CheckConstraint(
                condition=Q(is_base=False) | Q(qty_per_pack=1),
                name="chk_base_packaging_factor_is_one",
            ),
        ]

    def __str__(self):
        return f"{self.item.code} / {self.name} ({self.qty_per_pack})"

    def clean(self):
        if self.qty_per_pack is None or self.qty_per_pack <= 0:
            raise ValidationError("qty_per_pack must be greater than zero")
        if self.is_base and self.qty_per_pack != ONE:
            raise ValidationError("Base packaging must have qty_per_pack = 1")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
