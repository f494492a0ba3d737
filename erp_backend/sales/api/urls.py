# sales/api/urls.py

from django.urls import path

from sales.api.views import (
    SalesInvoiceCommissionView,
    SalesInvoiceDetailView,
    SalesInvoiceListCreateView,
    SalesInvoicePaymentView,
    SalesInvoicePostView,
    SalesInvoiceTransitionView,
    SalesOrderConvertView,
    SalesOrderListCreateView,
    SalesOrderTransitionView,
)

urlpatterns = [
    path("invoices/", SalesInvoiceListCreateView.as_view(), name="sales-invoices"),
    path("invoices/<uuid:invoice_id>/", SalesInvoiceDetailView.as_view(), name="sales-invoice-detail"),
    path("invoices/<uuid:invoice_id>/post/", SalesInvoicePostView.as_view(), name="sales-invoice-post"),
    path(
        "invoices/<uuid:invoice_id>/transition/",
        SalesInvoiceTransitionView.as_view(),
        name="sales-invoice-transition",
    ),
    path(
        "invoices/<uuid:invoice_id>/payments/",
        SalesInvoicePaymentView.as_view(),
        name="sales-invoice-payments",
    ),
    path(
        "invoices/<uuid:invoice_id>/commission/",
        SalesInvoiceCommissionView.as_view(),
        name="sales-invoice-commission",
    ),
    path("orders/", SalesOrderListCreateView.as_view(), name="sales-orders"),
    path(
        "orders/<uuid:order_id>/transition/",
        SalesOrderTransitionView.as_view(),
        name="sales-order-transition",
    ),
    path(
        "orders/<uuid:order_id>/convert-to-invoice/",
        SalesOrderConvertView.as_view(),
        name="sales-order-convert",
    ),
]
