# inventory/api/urls.py

from django.urls import path

from inventory.api.views import (
    StockAdjustmentDetailView,
    StockAdjustmentListCreateView,
    StockAdjustmentPostView,
    StockBalanceListView,
    StockTransactionListCreateView,
)

urlpatterns = [
    path("balances/", StockBalanceListView.as_view(), name="inventory-balances"),
    path(
        "stock-transactions/",
        StockTransactionListCreateView.as_view(),
        name="stock-transactions",
    ),
    path(
        "stock-adjustments/",
        StockAdjustmentListCreateView.as_view(),
        name="stock-adjustments",
    ),
    path(
        "stock-adjustments/<uuid:adjustment_id>/",
        StockAdjustmentDetailView.as_view(),
        name="stock-adjustment-detail",
    ),
    path(
        "stock-adjustments/<uuid:adjustment_id>/post/",
        StockAdjustmentPostView.as_view(),
        name="stock-adjustment-post",
    ),
]
