# accounting/api/filters.py

import django_filters

from accounting.models.journal import JournalEntry
from accounting.models.ledger import LedgerEntry


class JournalEntryFilter(django_filters.FilterSet):
    reference = django_filters.CharFilter()
    # "SALES_INVOICE_COGS" matches every COGS entry
    reference_type = django_filters.CharFilter(field_name="reference", method="filter_reference_type")
    posted_from = django_filters.DateFilter(field_name="posted_at", lookup_expr="date__gte")
    posted_to = django_filters.DateFilter(field_name="posted_at", lookup_expr="date__lte")

    class Meta:
        model = JournalEntry
        fields = ["reference", "reference_type", "posted_from", "posted_to"]

    def filter_reference_type(self, queryset, name, value):
        return queryset.filter(reference__startswith=f"{value.strip()}:") if value else queryset


class LedgerEntryFilter(django_filters.FilterSet):
    journal_entry = django_filters.UUIDFilter(field_name="journal_entry_id")
    account = django_filters.UUIDFilter(field_name="account_id")
    account_code = django_filters.CharFilter(field_name="account__code")
    entry_type = django_filters.ChoiceFilter(choices=LedgerEntry.ENTRY_TYPES)

    class Meta:
        model = LedgerEntry
        fields = ["journal_entry", "account", "account_code", "entry_type"]
