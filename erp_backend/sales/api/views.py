# sales/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from common.api.views import DomainAPIView
from inventory.models.warehouse import Warehouse
from permissions.roles import (
    CAP_SALES_INVOICES_MANAGE,
    CAP_SALES_INVOICES_POST,
    CAP_SALES_INVOICES_VIEW,
    CAP_SALES_ORDERS_CONVERT,
    CAP_SALES_ORDERS_MANAGE,
    CAP_SALES_ORDERS_VIEW,
    CAP_SALES_PAYMENTS_RECORD,
)
from sales.api.serializers import (
    CommissionSplitSerializer,
    InvoicePaymentCreateSerializer,
    InvoicePaymentSerializer,
    InvoiceTransitionSerializer,
    OrderTransitionSerializer,
    SalesInvoiceCreateSerializer,
    SalesInvoiceSerializer,
    SalesOrderCreateSerializer,
    SalesOrderSerializer,
    WarehouseSelectionSerializer,
)
from sales.models import InvoicePayment, SalesInvoice, SalesOrder
from sales.services.commission_service import assign_commission_split
from sales.services.documents import (
    create_sales_invoice,
    create_sales_order,
    transition_invoice,
    transition_order,
)
from sales.services.exceptions import NotFoundError, ValidationFailed
from sales.services.invoice_posting import post_invoice
from sales.services.order_conversion import convert_sales_order_to_invoice
from sales.services.payments import record_invoice_payment


def _warehouse_or_none(company, warehouse_id):
    if not warehouse_id:
        return None
    wh = Warehouse.objects.alive().filter(company=company, id=warehouse_id, is_active=True).first()
    if wh is None:
        raise ValidationFailed(f"Warehouse {warehouse_id} not found")
    return wh


def _invoice_queryset(company):
    return (
        SalesInvoice.objects.alive()
        .select_related("customer")
        .prefetch_related("items", "commission_splits", "commission_splits__employee")
        .filter(company=company)
    )


def _order_queryset(company):
    return (
        SalesOrder.objects.alive()
        .select_related("customer")
        .prefetch_related("items")
        .filter(company=company)
    )


# ---------------------------
# Invoices
# ---------------------------

class SalesInvoiceListCreateView(DomainAPIView):
    method_capabilities = {
        "GET": CAP_SALES_INVOICES_VIEW,
        "POST": CAP_SALES_INVOICES_MANAGE,
    }
    serializer_class = SalesInvoiceSerializer
    filterset_fields = ["status", "customer"]

    def get_queryset(self):
        return _invoice_queryset(self.company).order_by("-invoice_date", "-created_at")

    @extend_schema(tags=["sales"], responses=SalesInvoiceSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(
        tags=["sales"],
        request=SalesInvoiceCreateSerializer,
        responses={201: SalesInvoiceSerializer},
    )
    def post(self, request):
        s = SalesInvoiceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        invoice = create_sales_invoice(
            company=self.company,
            business_unit=self.ctx.business_unit,
            customer_id=data["customer_id"],
            warehouse=_warehouse_or_none(self.company, data.get("warehouse_id")),
            primary_employee_id=data.get("primary_employee_id"),
            invoice_date=data.get("invoice_date"),
            due_date=data.get("due_date"),
            notes=data.get("notes", ""),
            items=data["items"],
            user=request.user,
        )
        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(SalesInvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class SalesInvoiceDetailView(DomainAPIView):
    required_capability = CAP_SALES_INVOICES_VIEW

    @extend_schema(tags=["sales"], responses=SalesInvoiceSerializer)
    def get(self, request, invoice_id):
        invoice = _invoice_queryset(self.company).filter(id=invoice_id).first()
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return Response(SalesInvoiceSerializer(invoice).data)


class SalesInvoicePostView(DomainAPIView):
    """
    POST /api/sales/invoices/{id}/post/
    draft -> sent: stock out + commission + AR + COGS
    """

    required_capability = CAP_SALES_INVOICES_POST
    serializer_class = WarehouseSelectionSerializer

    @extend_schema(tags=["sales"], request=WarehouseSelectionSerializer)
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = post_invoice(
            company=self.company,
            invoice_id=invoice_id,
            warehouse_id=s.validated_data.get("warehouse_id"),
            user=request.user,
        )
        return Response(result, status=status.HTTP_200_OK)


class SalesInvoiceTransitionView(DomainAPIView):
    required_capability = CAP_SALES_INVOICES_MANAGE
    serializer_class = InvoiceTransitionSerializer

    @extend_schema(tags=["sales"], request=InvoiceTransitionSerializer, responses=SalesInvoiceSerializer)
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        invoice = transition_invoice(
            company=self.company,
            invoice_id=invoice_id,
            action=s.validated_data["action"],
            user=request.user,
        )
        invoice = _invoice_queryset(self.company).get(pk=invoice.pk)
        return Response(SalesInvoiceSerializer(invoice).data)


class SalesInvoicePaymentView(DomainAPIView):
    """
    GET  /api/sales/invoices/{id}/payments/
    POST /api/sales/invoices/{id}/payments/   amount_paid/amount_due + DR Cash / CR AR
    """

    method_capabilities = {
        "GET": CAP_SALES_INVOICES_VIEW,
        "POST": CAP_SALES_PAYMENTS_RECORD,
    }
    serializer_class = InvoicePaymentCreateSerializer

    @extend_schema(tags=["sales"], responses=InvoicePaymentSerializer(many=True))
    def get(self, request, invoice_id):
        if not SalesInvoice.objects.alive().filter(company=self.company, id=invoice_id).exists():
            raise NotFoundError("Invoice not found")
        payments = InvoicePayment.objects.filter(company=self.company, invoice_id=invoice_id)
        return Response(InvoicePaymentSerializer(payments, many=True).data)

    @extend_schema(tags=["sales"], request=InvoicePaymentCreateSerializer)
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = record_invoice_payment(
            company=self.company,
            invoice_id=invoice_id,
            amount=data["amount"],
            method=data["method"],
            payment_date=data.get("payment_date"),
            reference=data.get("reference", ""),
            notes=data.get("notes", ""),
            user=request.user,
        )
        return Response(result, status=status.HTTP_201_CREATED)


class SalesInvoiceCommissionView(DomainAPIView):
    required_capability = CAP_SALES_INVOICES_MANAGE
    serializer_class = CommissionSplitSerializer

    @extend_schema(tags=["sales"], request=CommissionSplitSerializer, responses=SalesInvoiceSerializer)
    def put(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        assign_commission_split(
            company=self.company,
            invoice_id=invoice_id,
            splits=s.validated_data["splits"],
        )
        invoice = _invoice_queryset(self.company).get(pk=invoice_id)
        return Response(SalesInvoiceSerializer(invoice).data)


# ---------------------------
# Orders
# ---------------------------

class SalesOrderListCreateView(DomainAPIView):
    method_capabilities = {
        "GET": CAP_SALES_ORDERS_VIEW,
        "POST": CAP_SALES_ORDERS_MANAGE,
    }
    serializer_class = SalesOrderSerializer
    filterset_fields = ["status", "customer"]

    def get_queryset(self):
        return _order_queryset(self.company).order_by("-order_date", "-created_at")

    @extend_schema(tags=["sales"], responses=SalesOrderSerializer(many=True))
    def get(self, request):
        return self.list_response(self.get_queryset())

    @extend_schema(
        tags=["sales"],
        request=SalesOrderCreateSerializer,
        responses={201: SalesOrderSerializer},
    )
    def post(self, request):
        s = SalesOrderCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        order = create_sales_order(
            company=self.company,
            business_unit=self.ctx.business_unit,
            customer_id=data["customer_id"],
            warehouse=_warehouse_or_none(self.company, data.get("warehouse_id")),
            sales_employee_id=data.get("sales_employee_id"),
            order_date=data.get("order_date"),
            notes=data.get("notes", ""),
            items=data["items"],
            user=request.user,
        )
        order = self.get_queryset().get(pk=order.pk)
        return Response(SalesOrderSerializer(order).data, status=status.HTTP_201_CREATED)


class SalesOrderTransitionView(DomainAPIView):
    required_capability = CAP_SALES_ORDERS_MANAGE
    serializer_class = OrderTransitionSerializer

    @extend_schema(tags=["sales"], request=OrderTransitionSerializer, responses=SalesOrderSerializer)
    def post(self, request, order_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        order = transition_order(company=self.company, order_id=order_id, action=s.validated_data["action"])
        order = _order_queryset(self.company).get(pk=order.pk)
        return Response(SalesOrderSerializer(order).data)


class SalesOrderConvertView(DomainAPIView):
    """
    POST /api/sales/orders/{id}/convert-to-invoice/
    """

    required_capability = CAP_SALES_ORDERS_CONVERT
    serializer_class = WarehouseSelectionSerializer

    @extend_schema(tags=["sales"], request=WarehouseSelectionSerializer)
    def post(self, request, order_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = convert_sales_order_to_invoice(
            company=self.company,
            order_id=order_id,
            warehouse_id=s.validated_data.get("warehouse_id"),
            user=request.user,
        )
        return Response(result, status=status.HTTP_201_CREATED)
