# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    GRNApproveView,
    GRNDetailView,
    GRNListCreateView,
    GRNRejectView,
    GRNSubmitView,
    SupplierListCreateView,
)

urlpatterns = [
    path("suppliers/", SupplierListCreateView.as_view(), name="purchasing-suppliers"),
    path("grns/", GRNListCreateView.as_view(), name="purchasing-grns"),
    path("grns/<uuid:grn_id>/", GRNDetailView.as_view(), name="purchasing-grn-detail"),
    path("grns/<uuid:grn_id>/submit/", GRNSubmitView.as_view(), name="purchasing-grn-submit"),
    path("grns/<uuid:grn_id>/reject/", GRNRejectView.as_view(), name="purchasing-grn-reject"),
    path("grns/<uuid:grn_id>/approve/", GRNApproveView.as_view(), name="purchasing-grn-approve"),
]
