# accounting/api/views/__init__.py

# Viewsets live in accounting.api.view; APIViews in this package.
from accounting.api.view import JournalEntryViewSet, LedgerEntryViewSet
from accounting.api.views.accounts import ChartAccountsView
from accounting.api.views.posting_failures import PostingFailureListView, PostingFailureRetryView

__all__ = [
    "ChartAccountsView",
    "JournalEntryViewSet",
    "LedgerEntryViewSet",
    "PostingFailureListView",
    "PostingFailureRetryView",
]
