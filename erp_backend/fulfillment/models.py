# fulfillment/models.py

"""
STOCK REQUESTS + DELIVERY NOTES (INTER-WAREHOUSE FULFILLMENT)

A StockRequest is raised by the requesting warehouse against a fulfilling
warehouse. DeliveryNotes allocate request lines, are picked, dispatched
(stock leaves the fulfilling warehouse, in_transit grows at the requesting
one) and finally received (stock enters the requesting warehouse).

Quantities on request and delivery lines are in the line's packaging units;
stock postings normalize them to base units.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from common.models import SoftDeleteModel, TimeStampedModel

ZERO = Decimal("0.0000")

User = settings.AUTH_USER_MODEL


class StockRequest(SoftDeleteModel):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SUBMITTED = "submitted", "Submitted"
        CANCELLED = "cancelled", "Cancelled"
        COMPLETED = "completed", "Completed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="stock_requests",
    )
    business_unit = models.ForeignKey(
        "companies.BusinessUnit",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_requests",
    )
    requesting_warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="stock_requests_out",
    )
    fulfilling_warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="stock_requests_in",
    )

    code = models.CharField(max_length=32)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    request_date = models.DateField(default=timezone.localdate)
    required_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_requests_created",
    )

    class Meta:
        ordering = ["-request_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_stock_request_company_code",
            ),
            models.CheckConstraint(
                condition=~Q(requesting_warehouse=F("fulfilling_warehouse")),
                name="chk_stock_request_distinct_warehouses",
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.status})"


class StockRequestItem(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stock_request = models.ForeignKey(
        StockRequest,
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

    requested_qty = models.DecimalField(max_digits=18, decimal_places=4)
    received_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(requested_qty__gt=0),
                name="chk_stock_request_item_requested_positive",
            ),
            models.CheckConstraint(
                condition=Q(received_qty__gte=0),
                name="chk_stock_request_item_received_non_negative",
            ),
        ]

    @property
    def outstanding_qty(self) -> Decimal:
        return max(Decimal(self.requested_qty) - Decimal(self.received_qty), ZERO)


class DeliveryNote(SoftDeleteModel):
    """
    Lifecycle (fulfillment.services.lifecycle.DELIVERY_NOTE_WORKFLOW):
    draft -> confirmed -> picking_in_progress -> dispatch_ready -> dispatched -> received
    voided from any status before dispatched
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        CONFIRMED = "confirmed", "Confirmed"
        PICKING_IN_PROGRESS = "picking_in_progress", "Picking In Progress"
        DISPATCH_READY = "dispatch_ready", "Dispatch Ready"
        DISPATCHED = "dispatched", "Dispatched"
        RECEIVED = "received", "Received"
        VOIDED = "voided", "Voided"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="delivery_notes",
    )
    business_unit = models.ForeignKey(
        "companies.BusinessUnit",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="delivery_notes",
    )
    requesting_warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="delivery_notes_in",
    )
    fulfilling_warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        related_name="delivery_notes_out",
    )

    code = models.CharField(max_length=32)
    status = models.CharField(max_length=24, choices=Status.choices, default=Status.DRAFT)

    confirmed_at = models.DateTimeField(null=True, blank=True)
    picking_started_at = models.DateTimeField(null=True, blank=True)
    picking_completed_at = models.DateTimeField(null=True, blank=True)
    dispatched_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.TextField(blank=True, default="")

    driver_name = models.CharField(max_length=120, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    dispatch_transaction = models.ForeignKey(
        "inventory.StockTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    receipt_transaction = models.ForeignKey(
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
        related_name="delivery_notes_created",
    )
    received_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="delivery_notes_received",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["company", "status"], name="ful_dn_company_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_delivery_note_company_code",
            )
        ]

    def __str__(self):
        return f"{self.code} ({self.status})"


class DeliveryNoteItem(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    delivery_note = models.ForeignKey(
        DeliveryNote,
        on_delete=models.CASCADE,
        related_name="items",
    )
    stock_request = models.ForeignKey(
        StockRequest,
        on_delete=models.PROTECT,
        related_name="delivery_items",
    )
    stock_request_item = models.ForeignKey(
        StockRequestItem,
        on_delete=models.PROTECT,
        related_name="delivery_items",
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

    allocated_qty = models.DecimalField(max_digits=18, decimal_places=4)
    picked_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    short_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    dispatched_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    received_qty = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(allocated_qty__gt=0),
                name="chk_dn_item_allocated_positive",
            ),
            models.CheckConstraint(
                condition=Q(picked_qty__lte=F("allocated_qty")),
                name="chk_dn_item_picked_lte_allocated",
            ),
            models.CheckConstraint(
                condition=Q(dispatched_qty__lte=F("picked_qty")),
                name="chk_dn_item_dispatched_lte_picked",
            ),
            models.CheckConstraint(
                condition=Q(received_qty__lte=F("dispatched_qty")),
                name="chk_dn_item_received_lte_dispatched",
            ),
        ]

    def __str__(self):
        return f"{self.item_id} x {self.allocated_qty}"
