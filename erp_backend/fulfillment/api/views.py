# fulfillment/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from common.api.views import DomainAPIView
from fulfillment.api.serializers import (
    DeliveryNoteCreateSerializer,
    DeliveryNoteSerializer,
    DispatchSerializer,
    PicksSerializer,
    ReceiveSerializer,
    StockRequestCreateSerializer,
    StockRequestSerializer,
    VoidSerializer,
)
from fulfillment.models import DeliveryNote, StockRequest
from fulfillment.services.delivery_notes import (
    confirm_delivery_note,
    create_delivery_note,
    dispatch_delivery_note,
    mark_dispatch_ready,
    receive_delivery_note,
    record_picks,
    start_picking,
    void_delivery_note,
)
from fulfillment.services.exceptions import NotFoundError
from fulfillment.services.stock_requests import (
    cancel_stock_request,
    create_stock_request,
    submit_stock_request,
)
from permissions.roles import (
    CAP_DELIVERY_NOTES_DISPATCH,
    CAP_DELIVERY_NOTES_MANAGE,
    CAP_DELIVERY_NOTES_RECEIVE,
    CAP_DELIVERY_NOTES_VIEW,
)


def _request_queryset(company):
    return StockRequest.objects.alive().prefetch_related("items", "items__item").filter(company=company)


def _note_queryset(company):
    return DeliveryNote.objects.alive().prefetch_related("items", "items__item").filter(company=company)


def _note_data(company, note_id):
    note = _note_queryset(company).filter(id=note_id).first()
    if note is None:
        raise NotFoundError("Delivery note not found")
    return DeliveryNoteSerializer(note).data


# ---------------------------
# Stock requests
# ---------------------------

class StockRequestListCreateView(DomainAPIView):
    method_capabilities = {"GET": CAP_DELIVERY_NOTES_VIEW, "POST": CAP_DELIVERY_NOTES_MANAGE}
    serializer_class = StockRequestSerializer
    filterset_fields = ["status", "requesting_warehouse", "fulfilling_warehouse"]

    def get_queryset(self):
        return _request_queryset(self.company)

    @extend_schema(tags=["fulfillment"], responses=StockRequestSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["fulfillment"], request=StockRequestCreateSerializer, responses={201: StockRequestSerializer})
    def post(self, request):
        s = StockRequestCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        req = create_stock_request(
            company=self.company,
            business_unit=self.ctx.business_unit,
            requesting_warehouse_id=data["requesting_warehouse_id"],
            fulfilling_warehouse_id=data["fulfilling_warehouse_id"],
            required_date=data.get("required_date"),
            notes=data.get("notes", ""),
            items=data["items"],
            user=request.user,
        )
        return Response(
            StockRequestSerializer(self.get_queryset().get(pk=req.pk)).data,
            status=status.HTTP_201_CREATED,
        )


class StockRequestDetailView(DomainAPIView):
    required_capability = CAP_DELIVERY_NOTES_VIEW

    @extend_schema(tags=["fulfillment"], responses=StockRequestSerializer)
    def get(self, request, request_id):
        req = _request_queryset(self.company).filter(id=request_id).first()
        if req is None:
            raise NotFoundError("Stock request not found")
        return Response(StockRequestSerializer(req).data)


class StockRequestActionView(DomainAPIView):
    """POST /api/fulfillment/stock-requests/{id}/{submit|cancel}/"""

    required_capability = CAP_DELIVERY_NOTES_MANAGE
    action_name = ""

    ACTIONS = {
        "submit": submit_stock_request,
        "cancel": cancel_stock_request,
    }

    @extend_schema(tags=["fulfillment"], request=None, responses=StockRequestSerializer)
    def post(self, request, request_id):
        req = self.ACTIONS[self.action_name](company=self.company, request_id=request_id)
        return Response(StockRequestSerializer(_request_queryset(self.company).get(pk=req.pk)).data)


# ---------------------------
# Delivery notes
# ---------------------------

class DeliveryNoteListCreateView(DomainAPIView):
    method_capabilities = {"GET": CAP_DELIVERY_NOTES_VIEW, "POST": CAP_DELIVERY_NOTES_MANAGE}
    serializer_class = DeliveryNoteSerializer
    filterset_fields = ["status", "requesting_warehouse", "fulfilling_warehouse"]

    def get_queryset(self):
        return _note_queryset(self.company)

    @extend_schema(tags=["fulfillment"], responses=DeliveryNoteSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(tags=["fulfillment"], request=DeliveryNoteCreateSerializer, responses={201: DeliveryNoteSerializer})
    def post(self, request):
        s = DeliveryNoteCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        note = create_delivery_note(
            company=self.company,
            business_unit=self.ctx.business_unit,
            lines=data["lines"],
            driver_name=data.get("driver_name", ""),
            notes=data.get("notes", ""),
            user=request.user,
        )
        return Response(_note_data(self.company, note.pk), status=status.HTTP_201_CREATED)


class DeliveryNoteDetailView(DomainAPIView):
    required_capability = CAP_DELIVERY_NOTES_VIEW

    @extend_schema(tags=["fulfillment"], responses=DeliveryNoteSerializer)
    def get(self, request, note_id):
        return Response(_note_data(self.company, note_id))


class DeliveryNoteStepView(DomainAPIView):
    """Body-less picking steps: confirm, start-picking, dispatch-ready."""

    required_capability = CAP_DELIVERY_NOTES_MANAGE
    action_name = ""

    ACTIONS = {
        "confirm": confirm_delivery_note,
        "start_picking": start_picking,
        "mark_dispatch_ready": mark_dispatch_ready,
    }

    @extend_schema(tags=["fulfillment"], request=None, responses=DeliveryNoteSerializer)
    def post(self, request, note_id):
        self.ACTIONS[self.action_name](company=self.company, note_id=note_id)
        return Response(_note_data(self.company, note_id))


class DeliveryNotePicksView(DomainAPIView):
    required_capability = CAP_DELIVERY_NOTES_MANAGE
    serializer_class = PicksSerializer

    @extend_schema(tags=["fulfillment"], request=PicksSerializer, responses=DeliveryNoteSerializer)
    def post(self, request, note_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        record_picks(company=self.company, note_id=note_id, picks=s.validated_data["picks"])
        return Response(_note_data(self.company, note_id))


class DeliveryNoteDispatchView(DomainAPIView):
    required_capability = CAP_DELIVERY_NOTES_DISPATCH
    serializer_class = DispatchSerializer

    @extend_schema(tags=["fulfillment"], request=DispatchSerializer)
    def post(self, request, note_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        result = dispatch_delivery_note(
            company=self.company,
            note_id=note_id,
            quantities=s.validated_data.get("items"),
            user=request.user,
        )
        return Response(result, status=status.HTTP_200_OK)


class DeliveryNoteReceiveView(DomainAPIView):
    """
    POST /api/fulfillment/delivery-notes/{id}/receive/
    dispatched -> received, stock IN at the requesting warehouse
    """

    required_capability = CAP_DELIVERY_NOTES_RECEIVE
    serializer_class = ReceiveSerializer

    @extend_schema(tags=["fulfillment"], request=ReceiveSerializer)
    def post(self, request, note_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        result = receive_delivery_note(
            company=self.company,
            note_id=note_id,
            quantities=s.validated_data.get("items"),
            user=request.user,
        )
        return Response(result, status=status.HTTP_200_OK)


class DeliveryNoteVoidView(DomainAPIView):
    required_capability = CAP_DELIVERY_NOTES_MANAGE
    serializer_class = VoidSerializer

    @extend_schema(tags=["fulfillment"], request=VoidSerializer, responses=DeliveryNoteSerializer)
    def post(self, request, note_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        void_delivery_note(company=self.company, note_id=note_id, reason=s.validated_data.get("reason", ""))
        return Response(_note_data(self.company, note_id))
