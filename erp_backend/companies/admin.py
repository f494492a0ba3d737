# companies/admin.py

from django.contrib import admin

from companies.models import BusinessUnit, Company, Membership


class BusinessUnitInline(admin.TabularInline):
    model = BusinessUnit
    extra = 0
    fields = ("code", "name", "is_active")


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "base_currency", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("code", "name")
    inlines = [BusinessUnitInline]


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("user", "company", "business_unit", "role", "is_default", "is_active")
    list_filter = ("company", "role", "is_active")
    search_fields = ("user__username", "user__email", "company__code")
