# sales/tests/test_api.py

from decimal import Decimal

from django.test import TestCase

from common.tests.factories import (
    api_client_for,
    make_company,
    make_customer,
    make_employee,
    make_item,
    make_user,
    make_warehouse,
    stock_in,
)
from rest_framework.test import APIClient

from companies.models import Membership
from inventory.services.stock_ledger import get_balance
from sales.models import SalesInvoice, SalesOrder

MISSING_ID = "00000000-0000-0000-0000-000000000000"


class SalesAPITests(TestCase):
    """
    GUARANTEES:
    - Invoice post / order convert endpoints return the posting summary
    - Capability + tenant checks (403), unknown documents (404)
    - Domain errors surface as {"error": "..."}
    """

    def setUp(self):
        self.company = make_company()
        self.warehouse = make_warehouse(self.company)
        self.item = make_item(self.company, "SOAP")
        self.customer = make_customer(self.company)
        make_employee(self.company)
        stock_in(self.company, self.warehouse, self.item, 10, unit_cost="4.00")
        self.client = api_client_for(make_user(self.company, role=Membership.ROLE_SALES))

    def _create_invoice(self, qty="2"):
        res = self.client.post(
            "/api/sales/invoices/",
            {
                "customer_id": str(self.customer.id),
                "warehouse_id": str(self.warehouse.id),
                "items": [{"item_id": str(self.item.id), "quantity": qty, "unit_price": "10.00"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        return res.data["id"]

    # ======================================================
    # INVOICE POST
    # ======================================================

    def test_post_invoice(self):
        invoice_id = self._create_invoice()

        res = self.client.post(f"/api/sales/invoices/{invoice_id}/post/", {}, format="json")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], SalesInvoice.Status.SENT)
        self.assertTrue(res.data["ar_posting_success"])
        self.assertEqual(res.data["cogs_total_amount"], "8.00")
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("8"))

    def test_insufficient_stock_is_400_with_error(self):
        invoice_id = self._create_invoice(qty="11")

        res = self.client.post(f"/api/sales/invoices/{invoice_id}/post/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("Available=10, requested=11", res.data["error"])

    def test_posting_twice_is_400(self):
        invoice_id = self._create_invoice()
        self.client.post(f"/api/sales/invoices/{invoice_id}/post/", {}, format="json")

        res = self.client.post(f"/api/sales/invoices/{invoice_id}/post/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("Required status: draft", res.data["error"])

    def test_unknown_invoice_is_404(self):
        res = self.client.post(f"/api/sales/invoices/{MISSING_ID}/post/", {}, format="json")
        self.assertEqual(res.status_code, 404)
        self.assertIn("error", res.data)

    def test_viewer_cannot_post(self):
        invoice_id = self._create_invoice()
        viewer = api_client_for(make_user(self.company, role=Membership.ROLE_VIEWER))

        res = viewer.post(f"/api/sales/invoices/{invoice_id}/post/", {}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_other_company_cannot_see_invoice(self):
        invoice_id = self._create_invoice()
        other = make_company("other")
        outsider = api_client_for(make_user(other, role=Membership.ROLE_ADMIN))

        res = outsider.post(f"/api/sales/invoices/{invoice_id}/post/", {}, format="json")

        self.assertEqual(res.status_code, 404)

    def test_anonymous_rejected(self):
        res = APIClient().post(f"/api/sales/invoices/{MISSING_ID}/post/")
        self.assertEqual(res.status_code, 401)

    # ======================================================
    # ORDER CONVERSION
    # ======================================================

    def _confirmed_order(self):
        res = self.client.post(
            "/api/sales/orders/",
            {
                "customer_id": str(self.customer.id),
                "items": [{"item_id": str(self.item.id), "quantity": "3", "unit_price": "10.00"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        order_id = res.data["id"]
        res = self.client.post(
            f"/api/sales/orders/{order_id}/transition/", {"action": "confirm"}, format="json"
        )
        self.assertEqual(res.status_code, 200, res.data)
        return order_id

    def test_convert_order(self):
        order_id = self._confirmed_order()

        res = self.client.post(
            f"/api/sales/orders/{order_id}/convert-to-invoice/",
            {"warehouse_id": str(self.warehouse.id)},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["order_status"], SalesOrder.Status.INVOICED)
        self.assertEqual(res.data["invoice_status"], SalesInvoice.Status.SENT)
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("7"))

    def test_convert_twice_is_400(self):
        order_id = self._confirmed_order()
        url = f"/api/sales/orders/{order_id}/convert-to-invoice/"
        self.client.post(url, {"warehouse_id": str(self.warehouse.id)}, format="json")

        res = self.client.post(url, {"warehouse_id": str(self.warehouse.id)}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("already been converted", res.data["error"])

    def test_convert_without_warehouse_is_400(self):
        order_id = self._confirmed_order()

        res = self.client.post(f"/api/sales/orders/{order_id}/convert-to-invoice/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("Warehouse is required", res.data["error"])
