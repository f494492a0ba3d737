import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("companies", "0001_initial"),
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StockRequest",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("submitted", "Submitted"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("request_date", models.DateField(default=django.utils.timezone.localdate)),
                ("required_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "business_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_requests",
                        to="companies.businessunit",
                    ),
                ),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_requests",
                        to="companies.company",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_requests_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "fulfilling_warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_requests_in",
                        to="inventory.warehouse",
                    ),
                ),
                (
                    "requesting_warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_requests_out",
                        to="inventory.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-request_date", "-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "code"), name="uniq_stock_request_company_code"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("requesting_warehouse", models.F("fulfilling_warehouse")), _negated=True
                        ),
                        name="chk_stock_request_distinct_warehouses",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockRequestItem",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("requested_qty", models.DecimalField(decimal_places=4, max_digits=18)),
                ("received_qty", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.item",
                    ),
                ),
                (
                    "packaging",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.itempackaging",
                    ),
                ),
                (
                    "stock_request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="fulfillment.stockrequest",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("requested_qty__gt", 0)),
                        name="chk_stock_request_item_requested_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("received_qty__gte", 0)),
                        name="chk_stock_request_item_received_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DeliveryNote",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("confirmed", "Confirmed"),
                            ("picking_in_progress", "Picking In Progress"),
                            ("dispatch_ready", "Dispatch Ready"),
                            ("dispatched", "Dispatched"),
                            ("received", "Received"),
                            ("voided", "Voided"),
                        ],
                        default="draft",
                        max_length=24,
                    ),
                ),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("picking_started_at", models.DateTimeField(blank=True, null=True)),
                ("picking_completed_at", models.DateTimeField(blank=True, null=True)),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, default="")),
                ("driver_name", models.CharField(blank=True, default="", max_length=120)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "business_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="delivery_notes",
                        to="companies.businessunit",
                    ),
                ),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery_notes",
                        to="companies.company",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="delivery_notes_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "dispatch_transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.stocktransaction",
                    ),
                ),
                (
                    "fulfilling_warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery_notes_out",
                        to="inventory.warehouse",
                    ),
                ),
                (
                    "receipt_transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.stocktransaction",
                    ),
                ),
                (
                    "received_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="delivery_notes_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "requesting_warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery_notes_in",
                        to="inventory.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="ful_dn_company_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "code"), name="uniq_delivery_note_company_code")
                ],
            },
        ),
        migrations.CreateModel(
            name="DeliveryNoteItem",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("allocated_qty", models.DecimalField(decimal_places=4, max_digits=18)),
                ("picked_qty", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("short_qty", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("dispatched_qty", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("received_qty", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                (
                    "delivery_note",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="fulfillment.deliverynote",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.item",
                    ),
                ),
                (
                    "packaging",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.itempackaging",
                    ),
                ),
                (
                    "stock_request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery_items",
                        to="fulfillment.stockrequest",
                    ),
                ),
                (
                    "stock_request_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery_items",
                        to="fulfillment.stockrequestitem",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("allocated_qty__gt", 0)),
                        name="chk_dn_item_allocated_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("picked_qty__lte", models.F("allocated_qty"))),
                        name="chk_dn_item_picked_lte_allocated",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("dispatched_qty__lte", models.F("picked_qty"))),
                        name="chk_dn_item_dispatched_lte_picked",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("received_qty__lte", models.F("dispatched_qty"))),
                        name="chk_dn_item_received_lte_dispatched",
                    ),
                ],
            },
        ),
    ]
