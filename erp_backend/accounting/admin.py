# accounting/admin.py

from django.contrib import admin

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.ledger import LedgerEntry
from accounting.models.posting_failure import PostingFailure


class _ReadOnlyMixin:
    """Ledger data is written by services only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("company", "code", "name", "account_type", "normal_balance", "is_active")
    list_filter = ("company", "account_type", "is_active")
    search_fields = ("code", "name")
    ordering = ("company", "code")
    readonly_fields = ("created_at", "updated_at")


class LedgerEntryInline(_ReadOnlyMixin, admin.TabularInline):
    model = LedgerEntry
    extra = 0
    fields = ("account", "entry_type", "amount")
    readonly_fields = fields


# ============================================================
# JOURNAL (IMMUTABLE)
# ============================================================


@admin.register(JournalEntry)
class JournalEntryAdmin(_ReadOnlyMixin, admin.ModelAdmin):
    list_display = ("posted_at", "company", "reference", "description")
    list_filter = ("company",)
    search_fields = ("reference", "description")
    date_hierarchy = "posted_at"
    inlines = [LedgerEntryInline]


@admin.register(LedgerEntry)
class LedgerEntryAdmin(_ReadOnlyMixin, admin.ModelAdmin):
    list_display = ("journal_entry", "account", "entry_type", "amount")
    list_filter = ("entry_type", "account__company")
    search_fields = ("journal_entry__reference", "account__code")
    list_select_related = ("journal_entry", "account")


# ============================================================
# POSTING FAILURES (retried via retry_failed_postings)
# ============================================================


@admin.register(PostingFailure)
class PostingFailureAdmin(_ReadOnlyMixin, admin.ModelAdmin):
    list_display = ("kind", "document_type", "document_code", "status", "attempts", "last_attempt_at")
    list_filter = ("status", "kind", "company")
    search_fields = ("document_code", "document_id", "error")
    ordering = ("-last_attempt_at",)
