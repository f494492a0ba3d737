# inventory/api/serializers.py

from rest_framework import serializers

from inventory.models import (
    ItemWarehouse,
    StockAdjustment,
    StockAdjustmentItem,
    StockTransaction,
    StockTransactionItem,
)


class ItemWarehouseSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.code", read_only=True)
    item_name = serializers.CharField(source="item.name", read_only=True)
    uom = serializers.CharField(source="item.uom", read_only=True)
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)
    available_stock = serializers.DecimalField(max_digits=18, decimal_places=4, read_only=True)

    class Meta:
        model = ItemWarehouse
        fields = [
            "id",
            "item",
            "item_code",
            "item_name",
            "uom",
            "warehouse",
            "warehouse_code",
            "current_stock",
            "reserved_stock",
            "in_transit",
            "available_stock",
            "default_location",
            "updated_at",
        ]


class StockTransactionItemSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.code", read_only=True)

    class Meta:
        model = StockTransactionItem
        fields = [
            "id",
            "item",
            "item_code",
            "direction",
            "input_qty",
            "input_packaging",
            "conversion_factor",
            "normalized_qty",
            "base_package",
            "uom",
            "qty_before",
            "qty_after",
            "valuation_rate",
            "total_cost",
            "stock_value_before",
            "stock_value_after",
            "posting_date",
            "posting_time",
            "notes",
        ]


class StockTransactionSerializer(serializers.ModelSerializer):
    items = StockTransactionItemSerializer(many=True, read_only=True)
    warehouse_code = serializers.CharField(source="warehouse.code", read_only=True)

    class Meta:
        model = StockTransaction
        fields = [
            "id",
            "code",
            "transaction_type",
            "warehouse",
            "warehouse_code",
            "reference_type",
            "reference_id",
            "reference_code",
            "transaction_date",
            "notes",
            "created_at",
            "items",
        ]


# ---------------------------
# Stock adjustments
# ---------------------------

class StockAdjustmentItemInputSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    packaging_id = serializers.UUIDField(required=False, allow_null=True)
    current_qty = serializers.DecimalField(max_digits=18, decimal_places=4, required=False, default=0)
    adjusted_qty = serializers.DecimalField(max_digits=18, decimal_places=4, required=False, default=0)
    difference = serializers.DecimalField(max_digits=18, decimal_places=4, required=False, allow_null=True)
    unit_cost = serializers.DecimalField(max_digits=18, decimal_places=4, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockAdjustmentCreateSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField()
    reason = serializers.ChoiceField(
        choices=StockAdjustment.Reason.choices, default=StockAdjustment.Reason.PHYSICAL_COUNT
    )
    adjustment_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = StockAdjustmentItemInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value


class StockAdjustmentUpdateSerializer(serializers.Serializer):
    warehouse_id = serializers.UUIDField(required=False)
    reason = serializers.ChoiceField(choices=StockAdjustment.Reason.choices, required=False)
    adjustment_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = StockAdjustmentItemInputSerializer(many=True, required=False)


class StockAdjustmentItemSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.code", read_only=True)

    class Meta:
        model = StockAdjustmentItem
        fields = [
            "id",
            "item",
            "item_code",
            "packaging",
            "current_qty",
            "adjusted_qty",
            "difference",
            "unit_cost",
            "notes",
        ]


class StockAdjustmentSerializer(serializers.ModelSerializer):
    items = StockAdjustmentItemSerializer(many=True, read_only=True)

    class Meta:
        model = StockAdjustment
        fields = [
            "id",
            "code",
            "status",
            "reason",
            "warehouse",
            "adjustment_date",
            "notes",
            "stock_transaction",
            "posted_at",
            "created_at",
            "items",
        ]


# ---------------------------
# Manual stock transactions
# ---------------------------

class StockMovementLineSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    packaging_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4)
    unit_cost = serializers.DecimalField(max_digits=18, decimal_places=4, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockMovementCreateSerializer(serializers.Serializer):
    transaction_type = serializers.ChoiceField(
        choices=[
            StockTransaction.TransactionType.IN,
            StockTransaction.TransactionType.OUT,
            StockTransaction.TransactionType.TRANSFER,
        ]
    )
    warehouse_id = serializers.UUIDField()
    to_warehouse_id = serializers.UUIDField(required=False, allow_null=True)
    transaction_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = StockMovementLineSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value
