# accounting/tests/test_api.py

from unittest import mock

from django.test import TestCase

from accounting.models import PostingFailure
from common.exceptions import PostingError
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
from companies.models import Membership
from sales.services.documents import create_sales_invoice
from sales.services.invoice_posting import post_invoice


class AccountingAPITests(TestCase):
    """
    GUARANTEES:
    - chart, journal and ledger endpoints are read-only views of one company
    - journal entries filter by reference type
    - an open posting failure can be retried over HTTP (accounting.retry only)
    """

    def setUp(self):
        self.company = make_company()
        warehouse = make_warehouse(self.company)
        item = make_item(self.company, "SOAP")
        make_employee(self.company)
        stock_in(self.company, warehouse, item, 10, unit_cost="1.00")

        self.invoice = create_sales_invoice(
            company=self.company,
            customer_id=make_customer(self.company).id,
            warehouse=warehouse,
            items=[{"item_id": item.id, "quantity": "2", "unit_price": "5.00"}],
        )
        with mock.patch(
            "sales.services.invoice_posting.post_invoice_cogs",
            side_effect=PostingError("ledger unavailable"),
        ):
            post_invoice(company=self.company, invoice_id=self.invoice.id)

        self.client = api_client_for(make_user(self.company, role=Membership.ROLE_ACCOUNTANT))

    # ======================================================
    # READ
    # ======================================================

    def test_chart_lists_normal_balance(self):
        res = self.client.get("/api/accounting/accounts/")

        self.assertEqual(res.status_code, 200)
        by_code = {row["code"]: row for row in res.data}
        self.assertEqual(by_code["1100"]["normal_balance"], "DEBIT")
        self.assertEqual(by_code["4000"]["normal_balance"], "CREDIT")

    def test_journal_entries_filter_by_reference_type(self):
        res = self.client.get("/api/accounting/journal-entries/", {"reference_type": "SALES_INVOICE_AR"})

        self.assertEqual(res.status_code, 200)
        rows = res.data["results"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["reference"], f"SALES_INVOICE_AR:{self.invoice.id}")
        self.assertEqual(len(rows[0]["ledger_entries"]), 2)

        none = self.client.get("/api/accounting/journal-entries/", {"reference_type": "SALES_INVOICE_COGS"})
        self.assertEqual(none.data["results"], [])

    def test_other_company_sees_nothing(self):
        other = make_company("other")
        client = api_client_for(make_user(other, role=Membership.ROLE_ACCOUNTANT))

        res = client.get("/api/accounting/ledger-entries/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["results"], [])

    def test_viewer_cannot_read_ledger(self):
        client = api_client_for(make_user(self.company, role=Membership.ROLE_VIEWER))

        self.assertEqual(client.get("/api/accounting/journal-entries/").status_code, 403)

    # ======================================================
    # POSTING FAILURES
    # ======================================================

    def test_failure_listed_and_retried(self):
        listed = self.client.get("/api/accounting/posting-failures/", {"status": "open"})

        self.assertEqual(listed.status_code, 200)
        (row,) = listed.data["results"]
        self.assertEqual(row["kind"], PostingFailure.KIND_COGS)

        res = self.client.post(f"/api/accounting/posting-failures/{row['id']}/retry/")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertTrue(res.data["success"])
        self.assertEqual(PostingFailure.objects.get().status, PostingFailure.STATUS_RESOLVED)

        again = self.client.post(f"/api/accounting/posting-failures/{row['id']}/retry/")
        self.assertEqual(again.status_code, 400)
        self.assertIn("already resolved", again.data["error"])

    def test_manager_cannot_retry(self):
        failure = PostingFailure.objects.get()
        client = api_client_for(make_user(self.company, role=Membership.ROLE_MANAGER))

        res = client.post(f"/api/accounting/posting-failures/{failure.id}/retry/")

        self.assertEqual(res.status_code, 403)
