# purchases/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from common.api.views import DomainAPIView
from permissions.roles import CAP_GRN_APPROVE, CAP_GRN_SUBMIT, CAP_GRN_VIEW
from purchases.api.serializers import (
    GRNApproveSerializer,
    GRNCreateSerializer,
    GRNItemsUpdateSerializer,
    GRNRejectSerializer,
    GRNSerializer,
    SupplierSerializer,
)
from purchases.models import GoodsReceiptNote, Supplier
from purchases.services.exceptions import NotFoundError
from purchases.services.receiving_service import (
    approve_grn,
    create_grn,
    reject_grn,
    submit_grn,
    update_grn_items,
)
from purchases.services.suppliers import create_supplier


def _grn_queryset(company):
    return (
        GoodsReceiptNote.objects.alive()
        .select_related("supplier")
        .prefetch_related("items", "items__item")
        .filter(company=company)
    )


class SupplierListCreateView(DomainAPIView):
    method_capabilities = {"GET": CAP_GRN_VIEW, "POST": CAP_GRN_SUBMIT}
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchasing"], responses=SupplierSerializer(many=True))
    def get(self, request):
        qs = Supplier.objects.alive().filter(company=self.company, is_active=True).order_by("name")
        return self.list_response(qs)

    @extend_schema(tags=["purchasing"], request=SupplierSerializer, responses={201: SupplierSerializer})
    def post(self, request):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        supplier = create_supplier(company=self.company, **s.validated_data)
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)


class GRNListCreateView(DomainAPIView):
    method_capabilities = {"GET": CAP_GRN_VIEW, "POST": CAP_GRN_SUBMIT}
    serializer_class = GRNSerializer
    filterset_fields = ["status", "supplier", "warehouse"]

    def get_queryset(self):
        return _grn_queryset(self.company)

    @extend_schema(tags=["purchasing"], responses=GRNSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["purchasing"], request=GRNCreateSerializer, responses={201: GRNSerializer})
    def post(self, request):
        s = GRNCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        grn = create_grn(
            company=self.company,
            business_unit=self.ctx.business_unit,
            supplier_id=data["supplier_id"],
            warehouse_id=data["warehouse_id"],
            receipt_date=data.get("receipt_date"),
            supplier_reference=data.get("supplier_reference", ""),
            notes=data.get("notes", ""),
            items=data["items"],
            user=request.user,
        )
        grn = self.get_queryset().get(pk=grn.pk)
        return Response(GRNSerializer(grn).data, status=status.HTTP_201_CREATED)


class GRNDetailView(DomainAPIView):
    method_capabilities = {"GET": CAP_GRN_VIEW, "PUT": CAP_GRN_SUBMIT}

    def _get(self, grn_id):
        grn = _grn_queryset(self.company).filter(id=grn_id).first()
        if grn is None:
            raise NotFoundError("GRN not found")
        return grn

    @extend_schema(tags=["purchasing"], responses=GRNSerializer)
    def get(self, request, grn_id):
        return Response(GRNSerializer(self._get(grn_id)).data)

    @extend_schema(tags=["purchasing"], request=GRNItemsUpdateSerializer, responses=GRNSerializer)
    def put(self, request, grn_id):
        s = GRNItemsUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        update_grn_items(company=self.company, grn_id=grn_id, items=s.validated_data["items"])
        return Response(GRNSerializer(self._get(grn_id)).data)


class GRNSubmitView(DomainAPIView):
    required_capability = CAP_GRN_SUBMIT

    @extend_schema(tags=["purchasing"], request=None, responses=GRNSerializer)
    def post(self, request, grn_id):
        grn = submit_grn(company=self.company, grn_id=grn_id)
        return Response(GRNSerializer(_grn_queryset(self.company).get(pk=grn.pk)).data)


class GRNRejectView(DomainAPIView):
    required_capability = CAP_GRN_APPROVE
    serializer_class = GRNRejectSerializer

    @extend_schema(tags=["purchasing"], request=GRNRejectSerializer, responses=GRNSerializer)
    def post(self, request, grn_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        grn = reject_grn(company=self.company, grn_id=grn_id, reason=s.validated_data["reason"])
        return Response(GRNSerializer(_grn_queryset(self.company).get(pk=grn.pk)).data)


class GRNApproveView(DomainAPIView):
    """
    POST /api/purchasing/grns/{id}/approve/
    pending_approval -> approved, stock IN at the GRN warehouse
    """

    required_capability = CAP_GRN_APPROVE
    serializer_class = GRNApproveSerializer

    @extend_schema(tags=["purchasing"], request=GRNApproveSerializer)
    def post(self, request, grn_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = approve_grn(
            company=self.company,
            grn_id=grn_id,
            user=request.user,
            notes=s.validated_data.get("notes", ""),
        )
        return Response(result, status=status.HTTP_200_OK)
