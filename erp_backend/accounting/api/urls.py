# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.view import JournalEntryViewSet, LedgerEntryViewSet
from accounting.api.views.accounts import ChartAccountsView
from accounting.api.views.posting_failures import PostingFailureListView, PostingFailureRetryView

router = DefaultRouter()
router.register("journal-entries", JournalEntryViewSet, basename="journal-entry")
router.register("ledger-entries", LedgerEntryViewSet, basename="ledger-entry")

urlpatterns = [
    path("", include(router.urls)),
    path("accounts/", ChartAccountsView.as_view(), name="accounts"),
    path("posting-failures/", PostingFailureListView.as_view(), name="posting-failures"),
    path(
        "posting-failures/<uuid:failure_id>/retry/",
        PostingFailureRetryView.as_view(),
        name="posting-failure-retry",
    ),
]
