# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import GoodsReceiptNote, GoodsReceiptNoteItem, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ["id", "code", "name", "phone", "email", "address", "is_active", "created_at"]
        read_only_fields = ("id", "is_active", "created_at")


class GRNItemInputSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    packaging_id = serializers.UUIDField(required=False, allow_null=True)
    received_qty = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)
    damaged_qty = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0, required=False, default=0)
    unit_cost = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs.get("damaged_qty", 0) > attrs["received_qty"]:
            raise serializers.ValidationError({"damaged_qty": "Cannot exceed received_qty"})
        return attrs


class GRNCreateSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    warehouse_id = serializers.UUIDField()
    receipt_date = serializers.DateField(required=False)
    supplier_reference = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = GRNItemInputSerializer(many=True)


class GRNItemsUpdateSerializer(serializers.Serializer):
    items = GRNItemInputSerializer(many=True)


class GRNItemSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.code", read_only=True)

    class Meta:
        model = GoodsReceiptNoteItem
        fields = ["id", "item", "item_code", "packaging", "received_qty", "damaged_qty", "unit_cost", "notes"]


class GRNSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = GRNItemSerializer(many=True, read_only=True)

    class Meta:
        model = GoodsReceiptNote
        fields = [
            "id",
            "code",
            "status",
            "supplier",
            "supplier_name",
            "warehouse",
            "receipt_date",
            "supplier_reference",
            "notes",
            "submitted_at",
            "approved_at",
            "rejected_at",
            "rejection_reason",
            "stock_transaction",
            "created_at",
            "items",
        ]


class GRNApproveSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class GRNRejectSerializer(serializers.Serializer):
    reason = serializers.CharField()
