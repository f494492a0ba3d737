# sales/services/documents.py

"""
SALES DOCUMENT DRAFTS + SIMPLE TRANSITIONS

Create draft invoices / orders with server-computed totals, and the
transitions that carry no stock side effects (confirm, start processing,
cancel, mark overdue). mark paid delegates to sales.services.payments.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from common.numbering import next_document_code
from inventory.models.item import Item, ItemPackaging
from inventory.services.normalization import to_quantity
from sales.models import (
    Customer,
    Employee,
    SalesInvoice,
    SalesInvoiceItem,
    SalesOrder,
    SalesOrderItem,
)
from sales.services.exceptions import NotFoundError, ValidationFailed
from sales.services.lifecycle import INVOICE_WORKFLOW, ORDER_WORKFLOW
from sales.services.payments import settle_invoice

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

INVOICE_CODE_PREFIX = "INV"
ORDER_CODE_PREFIX = "SO"


def _money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _get(model, *, company, pk, label):
    qs = model.objects.filter(company=company, id=pk)
    if hasattr(qs, "alive"):
        qs = qs.alive()
    obj = qs.first()
    if obj is None:
        raise ValidationFailed(f"{label} {pk} not found")
    return obj


def _line_kwargs(*, company, raw: dict) -> dict:
    item = None
    packaging = None
    if raw.get("item_id"):
        item = _get(Item, company=company, pk=raw["item_id"], label="Item")
        if raw.get("packaging_id"):
            packaging = ItemPackaging.objects.filter(
                id=raw["packaging_id"], item=item, is_active=True
            ).first()
            if packaging is None:
                raise ValidationFailed(f"Packaging {raw['packaging_id']} not found for item {item.code}")
    elif not (raw.get("description") or "").strip():
        raise ValidationFailed("A line needs an item or a description")

    quantity = to_quantity(raw.get("quantity"), field_name="quantity")
    if quantity <= 0:
        raise ValidationFailed("quantity must be greater than zero")

    unit_price = raw.get("unit_price")
    if unit_price in (None, "") and item is not None:
        unit_price = item.sales_price

    return {
        "item": item,
        "packaging": packaging,
        "description": raw.get("description") or (item.name if item else ""),
        "quantity": quantity,
        "unit_price": Decimal(str(unit_price or 0)),
        "discount_amount": _money(raw.get("discount_amount")),
        "tax_amount": _money(raw.get("tax_amount")),
    }


def _apply_totals(doc, rows) -> None:
    doc.subtotal = _money(sum((r.gross_amount for r in rows), ZERO))
    doc.discount_amount = _money(sum((Decimal(r.discount_amount) for r in rows), ZERO))
    doc.tax_amount = _money(sum((Decimal(r.tax_amount) for r in rows), ZERO))
    doc.total_amount = _money(doc.subtotal - doc.discount_amount + doc.tax_amount)


@transaction.atomic
def create_sales_invoice(
    *,
    company,
    customer_id,
    items: list[dict],
    warehouse=None,
    primary_employee_id=None,
    invoice_date=None,
    due_date=None,
    notes: str = "",
    business_unit=None,
    user=None,
) -> SalesInvoice:
    if not items:
        raise ValidationFailed("At least one item is required")

    customer = _get(Customer, company=company, pk=customer_id, label="Customer")
    employee = (
        _get(Employee, company=company, pk=primary_employee_id, label="Employee")
        if primary_employee_id
        else None
    )
    invoice_date = invoice_date or timezone.localdate()

    invoice = SalesInvoice.objects.create(
        company=company,
        business_unit=business_unit,
        customer=customer,
        warehouse=warehouse,
        primary_employee=employee,
        code=next_document_code(company=company, prefix=INVOICE_CODE_PREFIX, on_date=invoice_date),
        invoice_date=invoice_date,
        due_date=due_date,
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )

    rows = [SalesInvoiceItem(invoice=invoice, **_line_kwargs(company=company, raw=raw)) for raw in items]
    for row in rows:
        row.save()

    _apply_totals(invoice, rows)
    invoice.amount_due = invoice.total_amount - invoice.amount_paid
    invoice.save(update_fields=["subtotal", "discount_amount", "tax_amount", "total_amount", "amount_due", "updated_at"])
    return invoice


@transaction.atomic
def create_sales_order(
    *,
    company,
    customer_id,
    items: list[dict],
    warehouse=None,
    sales_employee_id=None,
    order_date=None,
    notes: str = "",
    business_unit=None,
    user=None,
) -> SalesOrder:
    if not items:
        raise ValidationFailed("At least one item is required")

    customer = _get(Customer, company=company, pk=customer_id, label="Customer")
    employee = (
        _get(Employee, company=company, pk=sales_employee_id, label="Employee")
        if sales_employee_id
        else None
    )
    order_date = order_date or timezone.localdate()

    order = SalesOrder.objects.create(
        company=company,
        business_unit=business_unit,
        customer=customer,
        warehouse=warehouse,
        sales_employee=employee,
        code=next_document_code(company=company, prefix=ORDER_CODE_PREFIX, on_date=order_date),
        order_date=order_date,
        notes=notes or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )

    rows = [SalesOrderItem(order=order, **_line_kwargs(company=company, raw=raw)) for raw in items]
    for row in rows:
        row.save()

    _apply_totals(order, rows)
    order.save(update_fields=["subtotal", "discount_amount", "tax_amount", "total_amount", "updated_at"])
    return order


def _lock(model, *, company, pk, label):
    obj = model.objects.select_for_update().alive().filter(company=company, id=pk).first()
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


@transaction.atomic
def transition_order(*, company, order_id, action: str) -> SalesOrder:
    """confirm / start_processing / cancel. Conversion has its own service."""
    if action == "convert_to_invoice":
        raise ValidationFailed("Use the convert-to-invoice endpoint")
    order = _lock(SalesOrder, company=company, pk=order_id, label="Sales order")
    return ORDER_WORKFLOW.apply(order, action)


@transaction.atomic
def transition_invoice(*, company, invoice_id, action: str, user=None) -> SalesInvoice:
    """
    mark_overdue / mark_paid / cancel. Posting has its own service.
    mark_paid settles the outstanding balance through the payments service.
    """
    if action == "post":
        raise ValidationFailed("Use the post endpoint")
    if action == "mark_paid":
        return settle_invoice(company=company, invoice_id=invoice_id, user=user)

    invoice = _lock(SalesInvoice, company=company, pk=invoice_id, label="Invoice")
    return INVOICE_WORKFLOW.apply(invoice, action)
