# accounting/api/view.py

"""
PATH: accounting/api/view.py

JOURNAL + LEDGER BROWSING (READ-ONLY)

GET /api/accounting/journal-entries/?reference_type=SALES_INVOICE_AR
GET /api/accounting/journal-entries/?reference=SALES_INVOICE_COGS:<invoice id>
GET /api/accounting/ledger-entries/?account_code=1100&entry_type=DEBIT

Rows are written only by the posting services; these viewsets never write.
"""

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.filters import JournalEntryFilter, LedgerEntryFilter
from accounting.api.serializers import JournalEntrySerializer, LedgerEntrySerializer
from accounting.models.journal import JournalEntry
from accounting.models.ledger import LedgerEntry
from companies.services.context import resolve_request_context
from permissions.roles import CAP_ACCOUNTING_VIEW, HasCapability


class _LedgerReadViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ACCOUNTING_VIEW
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    @property
    def company(self):
        return resolve_request_context(self.request).company


@extend_schema_view(list=extend_schema(tags=["accounting"]), retrieve=extend_schema(tags=["accounting"]))
class JournalEntryViewSet(_LedgerReadViewSet):
    serializer_class = JournalEntrySerializer
    filterset_class = JournalEntryFilter
    ordering_fields = ["posted_at", "created_at"]
    ordering = ["-posted_at"]

    def get_queryset(self):
        return JournalEntry.objects.filter(company=self.company).prefetch_related(
            "ledger_entries__account"
        )


@extend_schema_view(list=extend_schema(tags=["accounting"]), retrieve=extend_schema(tags=["accounting"]))
class LedgerEntryViewSet(_LedgerReadViewSet):
    serializer_class = LedgerEntrySerializer
    filterset_class = LedgerEntryFilter
    ordering_fields = ["created_at", "amount"]
    ordering = ["-created_at"]

    def get_queryset(self):
        return LedgerEntry.objects.select_related("journal_entry", "account").filter(
            journal_entry__company=self.company
        )
