# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from common.models import SoftDeleteModel, TimeStampedModel

ZERO = Decimal("0.0000")

User = settings.AUTH_USER_MODEL


class Supplier(SoftDeleteModel):
    """
    Supplier master (company-scoped).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="suppliers",
    )

    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["company", "name"], name="pur_supplier_company_name_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_supplier_company_code_alive",
            )
        ]

    def __str__(self):
        return self.name


class GoodsReceiptNote(SoftDeleteModel):
    """
    Goods receipt note (GRN) header.

    Lifecycle (purchases.services.lifecycle.GRN_WORKFLOW):
    draft -> pending_approval -> approved | rejected

    Approval is performed by purchases.services.receiving_service:
    - stock IN per line (normalized to base units, at the line's unit cost)
    - in_transit released for the received quantity
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PENDING_APPROVAL = "pending_approval", "Pending Approval"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="grns",
    )
    business_unit = models.ForeignKey(
        "companies.BusinessUnit",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="grns",
    )
    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="grns",
    )
    warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="grns",
    )

    code = models.CharField(max_length=32)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    receipt_date = models.DateField(default=timezone.localdate)
    supplier_reference = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True, default="")

    stock_transaction = models.ForeignKey(
        "inventory.StockTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="grns_created",
    )
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="grns_approved",
    )

    class Meta:
        ordering = ["-receipt_date", "-created_at"]
        indexes = [
            models.Index(fields=["company", "status"], name="pur_grn_company_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_grn_company_code",
            )
        ]

    def __str__(self):
        return f"{self.code} ({self.status})"


class GoodsReceiptNoteItem(TimeStampedModel):
    """
    received_qty / damaged_qty are in the line's packaging units.
    The full received_qty is stocked on approval; damaged_qty is carried
    into the stock line notes for the damaged-goods workflow.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    grn = models.ForeignKey(
        GoodsReceiptNote,
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

    received_qty = models.DecimalField(max_digits=18, decimal_places=4)
    damaged_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    unit_cost = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(received_qty__gte=0),
                name="chk_grn_item_received_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(damaged_qty__gte=0),
                name="chk_grn_item_damaged_non_negative",
            ),
        ]

    def clean(self):
        if self.damaged_qty and self.received_qty is not None and self.damaged_qty > self.received_qty:
            raise ValidationError({"damaged_qty": "damaged_qty cannot exceed received_qty"})

    def __str__(self):
        return f"{self.item_id} x {self.received_qty}"
