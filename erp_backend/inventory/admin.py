# inventory/admin.py

from django.contrib import admin

from inventory.models import (
    Item,
    ItemPackaging,
    ItemWarehouse,
    StockAdjustment,
    StockAdjustmentItem,
    StockTransaction,
    StockTransactionItem,
    Warehouse,
)

# ======================================================
# ITEMS + PACKAGING
# ======================================================


class ItemPackagingInline(admin.TabularInline):
    model = ItemPackaging
    extra = 0
    fields = ("name", "qty_per_pack", "is_base", "barcode", "is_active")


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "company", "uom", "is_stock_item", "is_active")
    list_filter = ("company", "is_stock_item", "is_active")
    search_fields = ("code", "name")
    inlines = [ItemPackagingInline]


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "company", "business_unit", "is_active")
    list_filter = ("company", "is_active")
    search_fields = ("code", "name")


# ======================================================
# BALANCES (written only by the stock ledger service)
# ======================================================


@admin.register(ItemWarehouse)
class ItemWarehouseAdmin(admin.ModelAdmin):
    list_display = ("item", "warehouse", "current_stock", "reserved_stock", "in_transit", "updated_at")
    list_filter = ("company", "warehouse")
    search_fields = ("item__code", "item__name", "warehouse__code")
    readonly_fields = ("company", "item", "warehouse", "current_stock", "reserved_stock", "in_transit")


class StockTransactionItemInline(admin.TabularInline):
    model = StockTransactionItem
    extra = 0
    can_delete = False
    fields = (
        "item",
        "direction",
        "input_qty",
        "conversion_factor",
        "normalized_qty",
        "qty_before",
        "qty_after",
        "valuation_rate",
        "total_cost",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(StockTransaction)
class StockTransactionAdmin(admin.ModelAdmin):
    list_display = ("code", "company", "transaction_type", "warehouse", "reference_type", "reference_code", "transaction_date")
    list_filter = ("company", "transaction_type", "reference_type")
    search_fields = ("code", "reference_code", "reference_id")
    inlines = [StockTransactionItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class StockAdjustmentItemInline(admin.TabularInline):
    model = StockAdjustmentItem
    extra = 0
    fields = ("item", "packaging", "current_qty", "adjusted_qty", "difference", "unit_cost", "notes")


@admin.register(StockAdjustment)
class StockAdjustmentAdmin(admin.ModelAdmin):
    list_display = ("code", "company", "warehouse", "reason", "status", "adjustment_date")
    list_filter = ("company", "status", "reason")
    search_fields = ("code",)
    readonly_fields = ("code", "status", "stock_transaction", "posted_at", "posted_by")
    inlines = [StockAdjustmentItemInline]
