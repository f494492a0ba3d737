# sales/api/serializers.py

from rest_framework import serializers

from sales.models import (
    InvoiceEmployee,
    InvoicePayment,
    SalesInvoice,
    SalesInvoiceItem,
    SalesOrder,
    SalesOrderItem,
)


class SalesLineInputSerializer(serializers.Serializer):
    item_id = serializers.UUIDField(required=False, allow_null=True)
    packaging_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4)
    unit_price = serializers.DecimalField(max_digits=18, decimal_places=4, required=False, allow_null=True)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)

    def validate(self, attrs):
        if not attrs.get("item_id") and not (attrs.get("description") or "").strip():
            raise serializers.ValidationError("A line needs an item_id or a description")
        return attrs


LINE_FIELDS = [
    "id",
    "item",
    "packaging",
    "description",
    "quantity",
    "unit_price",
    "discount_amount",
    "tax_amount",
    "line_total",
]


class SalesInvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SalesInvoiceItem
        fields = LINE_FIELDS


class SalesOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SalesOrderItem
        fields = LINE_FIELDS


class InvoiceEmployeeSerializer(serializers.ModelSerializer):
    employee_name = serializers.CharField(source="employee.name", read_only=True)

    class Meta:
        model = InvoiceEmployee
        fields = [
            "employee",
            "employee_name",
            "split_percentage",
            "commission_rate",
            "commission_amount",
            "is_primary",
        ]


class SalesInvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    items = SalesInvoiceItemSerializer(many=True, read_only=True)
    commission_splits = InvoiceEmployeeSerializer(many=True, read_only=True)

    class Meta:
        model = SalesInvoice
        fields = [
            "id",
            "code",
            "status",
            "customer",
            "customer_name",
            "sales_order",
            "warehouse",
            "invoice_date",
            "due_date",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "amount_paid",
            "amount_due",
            "primary_employee",
            "commission_total",
            "commission_split_count",
            "stock_transaction",
            "ar_journal_entry",
            "cogs_journal_entry",
            "posted_at",
            "notes",
            "created_at",
            "items",
            "commission_splits",
        ]


class SalesInvoiceCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    warehouse_id = serializers.UUIDField(required=False, allow_null=True)
    primary_employee_id = serializers.UUIDField(required=False, allow_null=True)
    invoice_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = SalesLineInputSerializer(many=True)


class SalesOrderSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    items = SalesOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = SalesOrder
        fields = [
            "id",
            "code",
            "status",
            "customer",
            "customer_name",
            "sales_employee",
            "warehouse",
            "order_date",
            "expected_delivery_date",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "invoice",
            "converted_at",
            "notes",
            "created_at",
            "items",
        ]


class SalesOrderCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    warehouse_id = serializers.UUIDField(required=False, allow_null=True)
    sales_employee_id = serializers.UUIDField(required=False, allow_null=True)
    order_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = SalesLineInputSerializer(many=True)


class WarehouseSelectionSerializer(serializers.Serializer):
    """Body of invoice post / order conversion."""

    warehouse_id = serializers.UUIDField(required=False, allow_null=True)


class InvoiceTransitionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["mark_overdue", "mark_paid", "cancel"])


class OrderTransitionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["confirm", "start_processing", "cancel"])


class CommissionSplitLineSerializer(serializers.Serializer):
    employee_id = serializers.UUIDField()
    split_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)


class CommissionSplitSerializer(serializers.Serializer):
    splits = CommissionSplitLineSerializer(many=True)


class InvoicePaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoicePayment
        fields = [
            "id",
            "invoice",
            "amount",
            "method",
            "payment_date",
            "reference",
            "notes",
            "journal_entry",
            "received_by",
            "created_at",
        ]


class InvoicePaymentCreateSerializer(serializers.Serializer):
    # positivity and the amount_due ceiling are checked by the service
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    method = serializers.ChoiceField(choices=InvoicePayment.Method.choices, default=InvoicePayment.Method.CASH)
    payment_date = serializers.DateField(required=False)
    reference = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
