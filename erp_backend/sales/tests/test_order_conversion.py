# sales/tests/test_order_conversion.py

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from accounting.models import JournalEntry
from common.exceptions import InvalidTransitionError
from common.tests.factories import (
    make_company,
    make_customer,
    make_employee,
    make_item,
    make_warehouse,
    packaging,
    stock_in,
)
from inventory.services.exceptions import InsufficientStockError, ValidationFailed
from inventory.services.stock_ledger import get_balance
from sales.models import InvoiceEmployee, SalesInvoice, SalesOrder
from sales.services.documents import create_sales_order, transition_order
from sales.services.exceptions import AlreadyConvertedError
from sales.services.order_conversion import convert_sales_order_to_invoice


class OrderConversionTests(TestCase):
    """
    GUARANTEES:
    - Only confirmed / processing orders convert, once
    - Conversion creates a sent invoice, moves stock and links both documents
    - AR + COGS run best-effort; commission is not calculated on conversion
    """

    def setUp(self):
        self.company = make_company()
        self.warehouse = make_warehouse(self.company)
        self.item = make_item(self.company, "SOAP", pack=("Carton", 12))
        self.customer = make_customer(self.company)
        self.agent = make_employee(self.company)
        stock_in(self.company, self.warehouse, self.item, 50, unit_cost="1.50")

    def _order(self, *, warehouse=True, qty="2", confirm=True):
        order = create_sales_order(
            company=self.company,
            customer_id=self.customer.id,
            warehouse=self.warehouse if warehouse else None,
            sales_employee_id=self.agent.id,
            items=[
                {
                    "item_id": self.item.id,
                    "packaging_id": packaging(self.item, "Carton").id,
                    "quantity": qty,
                    "unit_price": "30.00",
                }
            ],
        )
        if confirm:
            transition_order(company=self.company, order_id=order.id, action="confirm")
        return order

    @override_settings(INVOICE_DUE_DAYS=14)
    def test_convert_confirmed_order(self):
        order = self._order()

        result = convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        self.assertEqual(result["order_status"], SalesOrder.Status.INVOICED)
        self.assertEqual(result["invoice_status"], SalesInvoice.Status.SENT)
        self.assertEqual(
            result["due_date"], (timezone.localdate() + timedelta(days=14)).isoformat()
        )
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("26"))

        invoice = SalesInvoice.objects.get(pk=result["invoice_id"])
        self.assertEqual(invoice.sales_order_id, order.id)
        self.assertEqual(invoice.total_amount, Decimal("60.00"))
        self.assertEqual(invoice.items.count(), 1)
        self.assertEqual(str(invoice.stock_transaction_id), result["transaction_id"])
        self.assertEqual(invoice.primary_employee_id, self.agent.id)

        order.refresh_from_db()
        self.assertEqual(order.invoice_id, invoice.id)
        self.assertIsNotNone(order.converted_at)

    def test_conversion_posts_ar_and_cogs_only(self):
        order = self._order()

        result = convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        self.assertTrue(result["ar_posting_success"])
        self.assertTrue(result["cogs_posting_success"])
        self.assertEqual(result["cogs_total_amount"], "36.00")
        self.assertNotIn("commission", result["postings"])
        self.assertEqual(JournalEntry.objects.filter(company=self.company).count(), 2)
        self.assertFalse(InvoiceEmployee.objects.exists())

    def test_processing_order_converts(self):
        order = self._order()
        transition_order(company=self.company, order_id=order.id, action="start_processing")

        result = convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        self.assertEqual(result["order_status"], SalesOrder.Status.INVOICED)

    def test_second_conversion_rejected(self):
        order = self._order()
        convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        with self.assertRaises(AlreadyConvertedError):
            convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        self.assertEqual(SalesInvoice.objects.filter(sales_order=order).count(), 1)

    def test_draft_order_rejected(self):
        order = self._order(confirm=False)

        with self.assertRaises(InvalidTransitionError) as ctx:
            convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        self.assertIn("Required status: confirmed or processing", str(ctx.exception))

    def test_warehouse_required(self):
        order = self._order(warehouse=False)

        with self.assertRaises(ValidationFailed):
            convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        result = convert_sales_order_to_invoice(
            company=self.company, order_id=order.id, warehouse_id=self.warehouse.id
        )
        self.assertEqual(result["order_status"], SalesOrder.Status.INVOICED)

    def test_insufficient_stock_leaves_order_untouched(self):
        order = self._order(qty="5")

        with self.assertRaises(InsufficientStockError):
            convert_sales_order_to_invoice(company=self.company, order_id=order.id)

        order.refresh_from_db()
        self.assertEqual(order.status, SalesOrder.Status.CONFIRMED)
        self.assertIsNone(order.invoice_id)
        self.assertFalse(SalesInvoice.objects.filter(company=self.company).exists())
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("50"))
