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
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Item",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=64)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("uom", models.CharField(default="each", help_text="Base unit of measure", max_length=32)),
                ("purchase_price", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("sales_price", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("is_stock_item", models.BooleanField(default=True)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                        to="companies.company",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["company", "code"], name="inv_item_company_code_idx"),
                    models.Index(fields=["company", "is_active"], name="inv_item_company_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("deleted_at__isnull", True)),
                        fields=("company", "code"),
                        name="uniq_item_company_code_alive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ItemPackaging",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=64)),
                (
                    "qty_per_pack",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("1"),
                        help_text="Base units contained in one pack",
                        max_digits=18,
                    ),
                ),
                ("is_base", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("barcode", models.CharField(blank=True, default="", max_length=64)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="packagings",
                        to="inventory.item",
                    ),
                ),
            ],
            options={
                "ordering": ["item", "-is_base", "qty_per_pack"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_base", True)),
                        fields=("item",),
                        name="uniq_item_base_packaging",
                    ),
                    models.UniqueConstraint(fields=("item", "name"), name="uniq_item_packaging_name"),
                    models.CheckConstraint(
                        condition=models.Q(("qty_per_pack__gt", 0)),
                        name="chk_packaging_qty_per_pack_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("is_base", False), ("qty_per_pack", 1), _connector="OR"),
                        name="chk_base_packaging_factor_is_one",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Warehouse",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32)),
                ("name", models.CharField(max_length=200)),
                ("address", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                (
                    "business_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="warehouses",
                        to="companies.businessunit",
                    ),
                ),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="warehouses",
                        to="companies.company",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("deleted_at__isnull", True)),
                        fields=("company", "code"),
                        name="uniq_warehouse_company_code_alive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ItemWarehouse",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("current_stock", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("reserved_stock", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("in_transit", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("default_location", models.CharField(blank=True, default="", max_length=64)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="item_warehouses",
                        to="companies.company",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balances",
                        to="inventory.item",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balances",
                        to="inventory.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["warehouse", "item"],
                "indexes": [
                    models.Index(fields=["company", "warehouse"], name="inv_balance_company_wh_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("item", "warehouse"), name="uniq_item_warehouse"),
                    models.CheckConstraint(
                        condition=models.Q(("current_stock__gte", 0)),
                        name="chk_item_warehouse_stock_not_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("in_transit__gte", 0)),
                        name="chk_item_warehouse_in_transit_not_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("in", "Stock In"),
                            ("out", "Stock Out"),
                            ("transfer", "Transfer"),
                            ("adjustment", "Adjustment"),
                        ],
                        max_length=16,
                    ),
                ),
                ("reference_type", models.CharField(max_length=40)),
                ("reference_id", models.CharField(max_length=64)),
                ("reference_code", models.CharField(blank=True, default="", max_length=64)),
                ("transaction_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "business_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_transactions",
                        to="companies.businessunit",
                    ),
                ),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_transactions",
                        to="companies.company",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_transactions",
                        to="inventory.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["company", "reference_type", "reference_id"],
                        name="inv_st_company_reference_idx",
                    ),
                    models.Index(fields=["company", "transaction_date"], name="inv_st_company_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "code"), name="uniq_stock_transaction_company_code")
                ],
            },
        ),
        migrations.CreateModel(
            name="StockTransactionItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("direction", models.CharField(choices=[("in", "In"), ("out", "Out")], max_length=3)),
                ("input_qty", models.DecimalField(decimal_places=4, max_digits=18)),
                ("conversion_factor", models.DecimalField(decimal_places=4, max_digits=18)),
                ("normalized_qty", models.DecimalField(decimal_places=4, max_digits=18)),
                ("uom", models.CharField(blank=True, default="", max_length=32)),
                ("qty_before", models.DecimalField(decimal_places=4, max_digits=18)),
                ("qty_after", models.DecimalField(decimal_places=4, max_digits=18)),
                ("valuation_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=18)),
                ("unit_cost", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=18)),
                ("total_cost", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=18)),
                ("stock_value_before", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=18)),
                ("stock_value_after", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=18)),
                ("posting_date", models.DateField(default=django.utils.timezone.localdate)),
                ("posting_time", models.TimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "base_package",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.itempackaging",
                    ),
                ),
                (
                    "input_packaging",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.itempackaging",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_transaction_items",
                        to="inventory.item",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                        to="inventory.stocktransaction",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_transaction_items",
                        to="inventory.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["item", "warehouse", "created_at"], name="inv_sti_item_wh_created_idx"),
                    models.Index(fields=["item", "created_at"], name="inv_sti_item_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockAdjustment",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("posted", "Posted")],
                        default="draft",
                        max_length=16,
                    ),
                ),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("physical_count", "Physical Count"),
                            ("damage", "Damage"),
                            ("expiry", "Expiry"),
                            ("loss", "Loss / Theft"),
                            ("found", "Found Stock"),
                            ("other", "Other"),
                        ],
                        default="physical_count",
                        max_length=32,
                    ),
                ),
                ("adjustment_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True, default="")),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "business_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_adjustments",
                        to="companies.businessunit",
                    ),
                ),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_adjustments",
                        to="companies.company",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_adjustments_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "posted_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_adjustments_posted",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "stock_transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="inventory.stocktransaction",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_adjustments",
                        to="inventory.warehouse",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "code"), name="uniq_stock_adjustment_company_code")
                ],
            },
        ),
        migrations.CreateModel(
            name="StockAdjustmentItem",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("current_qty", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                ("adjusted_qty", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=18)),
                (
                    "difference",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0.0000"),
                        help_text="Signed: positive adds stock, negative removes it (in the line's packaging)",
                        max_digits=18,
                    ),
                ),
                ("unit_cost", models.DecimalField(blank=True, decimal_places=4, max_digits=18, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "adjustment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="inventory.stockadjustment",
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
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
    ]
