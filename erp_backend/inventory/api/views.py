# inventory/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from common.api.views import DomainAPIView
from inventory.api.filters import ItemWarehouseFilter, StockAdjustmentFilter, StockTransactionFilter
from inventory.api.serializers import (
    ItemWarehouseSerializer,
    StockAdjustmentCreateSerializer,
    StockAdjustmentSerializer,
    StockAdjustmentUpdateSerializer,
    StockMovementCreateSerializer,
    StockTransactionSerializer,
)
from inventory.models import ItemWarehouse, StockAdjustment, StockTransaction
from inventory.services.adjustments import (
    create_stock_adjustment,
    delete_stock_adjustment,
    post_stock_adjustment,
    update_stock_adjustment,
)
from inventory.services.exceptions import NotFoundError
from inventory.services.stock_movements import create_stock_transaction
from permissions.roles import (
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_ADJUST_POST,
    CAP_INVENTORY_VIEW,
)


class StockBalanceListView(DomainAPIView):
    required_capability = CAP_INVENTORY_VIEW
    serializer_class = ItemWarehouseSerializer
    filterset_class = ItemWarehouseFilter

    def get_queryset(self):
        return (
            ItemWarehouse.objects.select_related("item", "warehouse")
            .filter(company=self.company)
            .order_by("warehouse__code", "item__code")
        )

    @extend_schema(tags=["inventory"], responses=ItemWarehouseSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())


class StockTransactionListCreateView(DomainAPIView):
    """
    GET  /api/inventory/stock-transactions/
    POST /api/inventory/stock-transactions/   manual in / out / transfer, posted immediately
    """

    method_capabilities = {
        "GET": CAP_INVENTORY_VIEW,
        "POST": CAP_INVENTORY_ADJUST,
    }
    serializer_class = StockTransactionSerializer
    filterset_class = StockTransactionFilter

    def get_queryset(self):
        return (
            StockTransaction.objects.select_related("warehouse")
            .prefetch_related("items", "items__item")
            .filter(company=self.company)
            .order_by("-created_at")
        )

    @extend_schema(tags=["inventory"], responses=StockTransactionSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["inventory"], request=StockMovementCreateSerializer)
    def post(self, request):
        s = StockMovementCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = create_stock_transaction(
            company=self.company,
            business_unit=self.ctx.business_unit,
            warehouse_id=data["warehouse_id"],
            to_warehouse_id=data.get("to_warehouse_id"),
            transaction_type=data["transaction_type"],
            transaction_date=data.get("transaction_date"),
            notes=data.get("notes", ""),
            items=data["items"],
            user=request.user,
        )
        return Response(result, status=status.HTTP_201_CREATED)


class StockAdjustmentListCreateView(DomainAPIView):
    method_capabilities = {
        "GET": CAP_INVENTORY_VIEW,
        "POST": CAP_INVENTORY_ADJUST,
    }
    serializer_class = StockAdjustmentSerializer
    filterset_class = StockAdjustmentFilter

    def get_queryset(self):
        return (
            StockAdjustment.objects.alive()
            .prefetch_related("items", "items__item")
            .filter(company=self.company)
            .order_by("-adjustment_date", "-created_at")
        )

    @extend_schema(tags=["inventory"], responses=StockAdjustmentSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(
        tags=["inventory"],
        request=StockAdjustmentCreateSerializer,
        responses={201: StockAdjustmentSerializer},
    )
    def post(self, request):
        s = StockAdjustmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        adjustment = create_stock_adjustment(
            company=self.company,
            business_unit=self.ctx.business_unit,
            warehouse_id=data["warehouse_id"],
            reason=data["reason"],
            adjustment_date=data.get("adjustment_date"),
            notes=data.get("notes", ""),
            items=data["items"],
            user=request.user,
        )
        adjustment = self.get_queryset().get(pk=adjustment.pk)
        return Response(StockAdjustmentSerializer(adjustment).data, status=status.HTTP_201_CREATED)


class StockAdjustmentDetailView(DomainAPIView):
    method_capabilities = {
        "GET": CAP_INVENTORY_VIEW,
        "PATCH": CAP_INVENTORY_ADJUST,
        "DELETE": CAP_INVENTORY_ADJUST,
    }
    serializer_class = StockAdjustmentSerializer

    def _get(self, adjustment_id):
        adj = (
            StockAdjustment.objects.alive()
            .prefetch_related("items", "items__item")
            .filter(company=self.company, id=adjustment_id)
            .first()
        )
        if adj is None:
            raise NotFoundError("Stock adjustment not found")
        return adj

    @extend_schema(tags=["inventory"], responses=StockAdjustmentSerializer)
    def get(self, request, adjustment_id):
        return Response(StockAdjustmentSerializer(self._get(adjustment_id)).data)

    @extend_schema(
        tags=["inventory"],
        request=StockAdjustmentUpdateSerializer,
        responses=StockAdjustmentSerializer,
    )
    def patch(self, request, adjustment_id):
        s = StockAdjustmentUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        items = data.pop("items", None)

        update_stock_adjustment(company=self.company, adjustment_id=adjustment_id, items=items, **data)
        return Response(StockAdjustmentSerializer(self._get(adjustment_id)).data)

    @extend_schema(tags=["inventory"], responses={204: None})
    def delete(self, request, adjustment_id):
        delete_stock_adjustment(company=self.company, adjustment_id=adjustment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class StockAdjustmentPostView(DomainAPIView):
    required_capability = CAP_INVENTORY_ADJUST_POST

    @extend_schema(tags=["inventory"], request=None)
    def post(self, request, adjustment_id):
        result = post_stock_adjustment(
            company=self.company,
            adjustment_id=adjustment_id,
            user=request.user,
        )
        return Response(result, status=status.HTTP_200_OK)
