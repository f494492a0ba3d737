# inventory/models/warehouse.py

"""
WAREHOUSES + RUNNING BALANCES

ItemWarehouse holds the on-hand balance for one (item, warehouse) pair,
always in base units. It is mutated in place ONLY by
inventory.services.stock_ledger; the audit trail lives in
StockTransactionItem.

The database itself refuses a negative current_stock (check constraint),
so a bug in a write path fails loudly instead of overselling.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from common.models import SoftDeleteModel, TimeStampedModel

ZERO = Decimal("0.0000")


class Warehouse(SoftDeleteModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="warehouses",
    )
    business_unit = models.ForeignKey(
        "companies.BusinessUnit",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="warehouses",
    )

    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_warehouse_company_code_alive",
            )
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"


class ItemWarehouse(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="item_warehouses",
    )
    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="balances",
    )
    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name="balances",
    )

    current_stock = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    reserved_stock = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    in_transit = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    default_location = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        ordering = ["warehouse", "item"]
        indexes = [
            models.Index(fields=["company", "warehouse"], name="inv_balance_company_wh_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["item", "warehouse"],
                name="uniq_item_warehouse",
            ),
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name="chk_item_warehouse_stock_not_negative",
            ),
            models.CheckConstraint(
                condition=Q(in_transit__gte=0),
                name="chk_item_warehouse_in_transit_not_negative",
            ),
        ]

    def __str__(self):
        return f"{self.item_id}@{self.warehouse_id}: {self.current_stock}"

    @property
    def available_stock(self) -> Decimal:
        return (self.current_stock or ZERO) - (self.reserved_stock or ZERO)
