# accounting/tests/test_retry.py

from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase

from accounting.models import JournalEntry, PostingFailure
from accounting.services.downstream import PostingOutcome, record_failure, run_downstream
from common.exceptions import PostingError
from common.tests.factories import (
    make_company,
    make_customer,
    make_employee,
    make_item,
    make_warehouse,
    stock_in,
)
from sales.services.documents import create_sales_invoice
from sales.services.invoice_posting import post_invoice


class DownstreamRunnerTests(TestCase):
    """
    GUARANTEES:
    - a failing action is recorded once per (document, kind); repeats bump attempts
    - a later success resolves the open failure
    """

    def setUp(self):
        self.company = make_company(with_chart=False)

    def _run(self, action):
        return run_downstream(
            kind=PostingFailure.KIND_AR,
            company=self.company,
            document_type="sales_invoice",
            document_id="doc-1",
            document_code="INV-2026-0001",
            action=action,
        )

    def test_failure_recorded_then_resolved(self):
        def boom():
            raise PostingError("ledger unavailable")

        first = self._run(boom)
        self._run(boom)

        self.assertFalse(first.success)
        self.assertEqual(first.error, "ledger unavailable")
        failure = PostingFailure.objects.get()
        self.assertEqual(failure.attempts, 2)
        self.assertEqual(failure.status, PostingFailure.STATUS_OPEN)

        ok = self._run(lambda: PostingOutcome(kind=PostingFailure.KIND_AR, success=True))

        self.assertTrue(ok.success)
        failure.refresh_from_db()
        self.assertEqual(failure.status, PostingFailure.STATUS_RESOLVED)
        self.assertIsNotNone(failure.resolved_at)

    def test_unexpected_exception_is_captured(self):
        outcome = self._run(lambda: 1 / 0)

        self.assertFalse(outcome.success)
        self.assertTrue(PostingFailure.objects.filter(status=PostingFailure.STATUS_OPEN).exists())

    def test_record_failure_keeps_one_open_row(self):
        for _ in range(3):
            record_failure(
                company=self.company,
                kind=PostingFailure.KIND_COGS,
                document_type="sales_invoice",
                document_id="doc-2",
                error="nope",
            )
        self.assertEqual(PostingFailure.objects.get().attempts, 3)


class RetryCommandTests(TestCase):
    """
    GUARANTEES:
    - --dry-run lists without changing anything
    - a retry that now succeeds resolves the failure and posts the entry
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
            "sales.services.invoice_posting.post_invoice_ar",
            side_effect=PostingError("ledger unavailable"),
        ):
            post_invoice(company=self.company, invoice_id=self.invoice.id)

    def test_dry_run_changes_nothing(self):
        out = StringIO()

        call_command("retry_failed_postings", "--dry-run", stdout=out)

        self.assertIn("WOULD RETRY", out.getvalue())
        self.assertIn(self.invoice.code, out.getvalue())
        self.assertEqual(PostingFailure.objects.get().status, PostingFailure.STATUS_OPEN)

    def test_retry_resolves(self):
        out = StringIO()

        call_command("retry_failed_postings", "--company", self.company.code, stdout=out)

        self.assertIn("RESOLVED", out.getvalue())
        self.assertEqual(PostingFailure.objects.get().status, PostingFailure.STATUS_RESOLVED)
        self.assertTrue(
            JournalEntry.objects.filter(reference=f"SALES_INVOICE_AR:{self.invoice.id}").exists()
        )

    def test_kind_filter_skips_other_kinds(self):
        out = StringIO()

        call_command("retry_failed_postings", "--kind", PostingFailure.KIND_COGS, stdout=out)

        self.assertIn("Open failures selected: 0", out.getvalue())
        self.assertEqual(PostingFailure.objects.get().status, PostingFailure.STATUS_OPEN)

    def test_validate_postings_accepts_queued_failure(self):
        out, err = StringIO(), StringIO()

        call_command("validate_postings", "--strict", stdout=out, stderr=err)

        self.assertIn("VALIDATION PASSED", out.getvalue())
        self.assertIn("Open ar failures: 1", out.getvalue())
