# purchases/admin.py

from django.contrib import admin

from purchases.models import GoodsReceiptNote, GoodsReceiptNoteItem, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "company", "phone", "is_active")
    list_filter = ("company", "is_active")
    search_fields = ("code", "name", "email")


class GoodsReceiptNoteItemInline(admin.TabularInline):
    model = GoodsReceiptNoteItem
    extra = 0
    fields = ("item", "packaging", "received_qty", "damaged_qty", "unit_cost", "notes")


@admin.register(GoodsReceiptNote)
class GoodsReceiptNoteAdmin(admin.ModelAdmin):
    list_display = ("code", "company", "supplier", "warehouse", "status", "receipt_date")
    list_filter = ("company", "status", "receipt_date")
    search_fields = ("code", "supplier__name", "supplier_reference")
    readonly_fields = (
        "code",
        "status",
        "submitted_at",
        "approved_at",
        "approved_by",
        "rejected_at",
        "rejection_reason",
        "stock_transaction",
    )
    inlines = [GoodsReceiptNoteItemInline]
