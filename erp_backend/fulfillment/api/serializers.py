# fulfillment/api/serializers.py

from rest_framework import serializers

from fulfillment.models import DeliveryNote, DeliveryNoteItem, StockRequest, StockRequestItem
from fulfillment.services.stock_requests import derived_status


# ---------------------------
# Stock requests
# ---------------------------

class StockRequestItemInputSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    packaging_id = serializers.UUIDField(required=False, allow_null=True)
    requested_qty = serializers.DecimalField(max_digits=18, decimal_places=4)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockRequestCreateSerializer(serializers.Serializer):
    requesting_warehouse_id = serializers.UUIDField()
    fulfilling_warehouse_id = serializers.UUIDField()
    required_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = StockRequestItemInputSerializer(many=True)

    def validate(self, attrs):
        if attrs["requesting_warehouse_id"] == attrs["fulfilling_warehouse_id"]:
            raise serializers.ValidationError("Requesting and fulfilling warehouses must differ")
        return attrs


class StockRequestItemSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.code", read_only=True)

    class Meta:
        model = StockRequestItem
        fields = ["id", "item", "item_code", "packaging", "requested_qty", "received_qty", "outstanding_qty", "notes"]


class StockRequestSerializer(serializers.ModelSerializer):
    items = StockRequestItemSerializer(many=True, read_only=True)
    fulfillment_status = serializers.SerializerMethodField()

    class Meta:
        model = StockRequest
        fields = [
            "id",
            "code",
            "status",
            "fulfillment_status",
            "requesting_warehouse",
            "fulfilling_warehouse",
            "request_date",
            "required_date",
            "notes",
            "created_at",
            "items",
        ]

    def get_fulfillment_status(self, obj) -> str:
        return derived_status(obj)


# ---------------------------
# Delivery notes
# ---------------------------

class DeliveryNoteLineInputSerializer(serializers.Serializer):
    stock_request_item_id = serializers.UUIDField()
    allocated_qty = serializers.DecimalField(max_digits=18, decimal_places=4)


class DeliveryNoteCreateSerializer(serializers.Serializer):
    driver_name = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    lines = DeliveryNoteLineInputSerializer(many=True)


class PickLineSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    picked_qty = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)


class PicksSerializer(serializers.Serializer):
    picks = PickLineSerializer(many=True)


class DispatchLineSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    dispatched_qty = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)


class DispatchSerializer(serializers.Serializer):
    items = DispatchLineSerializer(many=True, required=False)


class ReceiveLineSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    received_qty = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)


class ReceiveSerializer(serializers.Serializer):
    """Lines left out are received in full (received = dispatched)."""

    items = ReceiveLineSerializer(many=True, required=False)


class VoidSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class DeliveryNoteItemSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.code", read_only=True)

    class Meta:
        model = DeliveryNoteItem
        fields = [
            "id",
            "stock_request",
            "stock_request_item",
            "item",
            "item_code",
            "packaging",
            "allocated_qty",
            "picked_qty",
            "short_qty",
            "dispatched_qty",
            "received_qty",
        ]


class DeliveryNoteSerializer(serializers.ModelSerializer):
    items = DeliveryNoteItemSerializer(many=True, read_only=True)

    class Meta:
        model = DeliveryNote
        fields = [
            "id",
            "code",
            "status",
            "requesting_warehouse",
            "fulfilling_warehouse",
            "driver_name",
            "notes",
            "confirmed_at",
            "picking_started_at",
            "picking_completed_at",
            "dispatched_at",
            "received_at",
            "voided_at",
            "void_reason",
            "dispatch_transaction",
            "receipt_transaction",
            "created_at",
            "items",
        ]
