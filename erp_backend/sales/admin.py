# sales/admin.py

from django.contrib import admin

from sales.models import (
    Customer,
    Employee,
    EmployeeTerritory,
    InvoiceEmployee,
    InvoicePayment,
    SalesInvoice,
    SalesInvoiceItem,
    SalesOrder,
    SalesOrderItem,
)

# ======================================================
# MASTER DATA
# ======================================================


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "company", "billing_city", "billing_state", "is_active")
    list_filter = ("company", "is_active")
    search_fields = ("code", "name", "email", "billing_city")


class EmployeeTerritoryInline(admin.TabularInline):
    model = EmployeeTerritory
    extra = 0
    fields = ("city", "region_state", "is_primary")


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "company", "role", "commission_rate", "is_active")
    list_filter = ("company", "role", "is_active")
    search_fields = ("code", "name", "email")
    inlines = [EmployeeTerritoryInline]

    def save_formset(self, request, form, formset, change):
        instances = formset.save(commit=False)
        for territory in instances:
            territory.company_id = form.instance.company_id
            territory.save()
        for obj in formset.deleted_objects:
            obj.delete()
        formset.save_m2m()


# ======================================================
# SALES ORDERS
# ======================================================


class SalesOrderItemInline(admin.TabularInline):
    model = SalesOrderItem
    extra = 0
    fields = ("item", "packaging", "description", "quantity", "unit_price", "discount_amount", "tax_amount", "line_total")
    readonly_fields = ("line_total",)


@admin.register(SalesOrder)
class SalesOrderAdmin(admin.ModelAdmin):
    list_display = ("code", "company", "customer", "status", "total_amount", "order_date")
    list_filter = ("company", "status", "order_date")
    search_fields = ("code", "customer__name")
    readonly_fields = ("code", "status", "invoice", "converted_at", "created_at", "updated_at")
    inlines = [SalesOrderItemInline]


# ======================================================
# SALES INVOICES
# ======================================================
# Status, stock and journal links only change through the posting services.


class SalesInvoiceItemInline(admin.TabularInline):
    model = SalesInvoiceItem
    extra = 0
    fields = ("item", "packaging", "description", "quantity", "unit_price", "discount_amount", "tax_amount", "line_total")
    readonly_fields = ("line_total",)


class InvoiceEmployeeInline(admin.TabularInline):
    model = InvoiceEmployee
    extra = 0
    fields = ("employee", "split_percentage", "commission_rate", "commission_amount", "is_primary")
    readonly_fields = ("commission_rate", "commission_amount")


class InvoicePaymentInline(admin.TabularInline):
    """Written by sales.services.payments only."""

    model = InvoicePayment
    extra = 0
    can_delete = False
    fields = ("payment_date", "amount", "method", "reference", "journal_entry", "received_by")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "company",
        "customer",
        "status",
        "total_amount",
        "amount_due",
        "commission_total",
        "invoice_date",
    )
    list_filter = ("company", "status", "invoice_date")
    search_fields = ("code", "customer__name")
    readonly_fields = (
        "code",
        "status",
        "amount_paid",
        "amount_due",
        "stock_transaction",
        "ar_journal_entry",
        "cogs_journal_entry",
        "commission_total",
        "commission_split_count",
        "posted_at",
        "posted_by",
        "created_at",
        "updated_at",
    )
    inlines = [SalesInvoiceItemInline, InvoiceEmployeeInline, InvoicePaymentInline]
