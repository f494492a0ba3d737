# fulfillment/admin.py

from django.contrib import admin

from fulfillment.models import DeliveryNote, DeliveryNoteItem, StockRequest, StockRequestItem


class StockRequestItemInline(admin.TabularInline):
    model = StockRequestItem
    extra = 0
    fields = ("item", "packaging", "requested_qty", "received_qty", "notes")
    readonly_fields = ("received_qty",)


@admin.register(StockRequest)
class StockRequestAdmin(admin.ModelAdmin):
    list_display = ("code", "company", "requesting_warehouse", "fulfilling_warehouse", "status", "request_date")
    list_filter = ("company", "status")
    search_fields = ("code",)
    readonly_fields = ("code", "status")
    inlines = [StockRequestItemInline]


class DeliveryNoteItemInline(admin.TabularInline):
    model = DeliveryNoteItem
    extra = 0
    can_delete = False
    fields = ("stock_request_item", "item", "allocated_qty", "picked_qty", "short_qty", "dispatched_qty", "received_qty")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(DeliveryNote)
class DeliveryNoteAdmin(admin.ModelAdmin):
    list_display = ("code", "company", "fulfilling_warehouse", "requesting_warehouse", "status", "dispatched_at", "received_at")
    list_filter = ("company", "status")
    search_fields = ("code", "driver_name")
    readonly_fields = (
        "code",
        "status",
        "confirmed_at",
        "picking_started_at",
        "picking_completed_at",
        "dispatched_at",
        "received_at",
        "received_by",
        "voided_at",
        "void_reason",
        "dispatch_transaction",
        "receipt_transaction",
    )
    inlines = [DeliveryNoteItemInline]
