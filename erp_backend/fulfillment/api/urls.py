# fulfillment/api/urls.py

from django.urls import path

from fulfillment.api.views import (
    DeliveryNoteDetailView,
    DeliveryNoteDispatchView,
    DeliveryNoteListCreateView,
    DeliveryNotePicksView,
    DeliveryNoteReceiveView,
    DeliveryNoteStepView,
    DeliveryNoteVoidView,
    StockRequestActionView,
    StockRequestDetailView,
    StockRequestListCreateView,
)

urlpatterns = [
    path("stock-requests/", StockRequestListCreateView.as_view(), name="stock-requests"),
    path("stock-requests/<uuid:request_id>/", StockRequestDetailView.as_view(), name="stock-request-detail"),
    path(
        "stock-requests/<uuid:request_id>/submit/",
        StockRequestActionView.as_view(action_name="submit"),
        name="stock-request-submit",
    ),
    path(
        "stock-requests/<uuid:request_id>/cancel/",
        StockRequestActionView.as_view(action_name="cancel"),
        name="stock-request-cancel",
    ),
    path("delivery-notes/", DeliveryNoteListCreateView.as_view(), name="delivery-notes"),
    path("delivery-notes/<uuid:note_id>/", DeliveryNoteDetailView.as_view(), name="delivery-note-detail"),
    path(
        "delivery-notes/<uuid:note_id>/confirm/",
        DeliveryNoteStepView.as_view(action_name="confirm"),
        name="delivery-note-confirm",
    ),
    path(
        "delivery-notes/<uuid:note_id>/start-picking/",
        DeliveryNoteStepView.as_view(action_name="start_picking"),
        name="delivery-note-start-picking",
    ),
    path("delivery-notes/<uuid:note_id>/picks/", DeliveryNotePicksView.as_view(), name="delivery-note-picks"),
    path(
        "delivery-notes/<uuid:note_id>/dispatch-ready/",
        DeliveryNoteStepView.as_view(action_name="mark_dispatch_ready"),
        name="delivery-note-dispatch-ready",
    ),
    path("delivery-notes/<uuid:note_id>/dispatch/", DeliveryNoteDispatchView.as_view(), name="delivery-note-dispatch"),
    path("delivery-notes/<uuid:note_id>/receive/", DeliveryNoteReceiveView.as_view(), name="delivery-note-receive"),
    path("delivery-notes/<uuid:note_id>/void/", DeliveryNoteVoidView.as_view(), name="delivery-note-void"),
]
