# sales/tests/test_payments.py

from decimal import Decimal
from unittest import mock

from django.test import TestCase

from accounting.models import LedgerEntry, PostingFailure
from accounting.services.retry import open_failures, retry_failure
from common.exceptions import InvalidTransitionError, PostingError
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
from sales.models import InvoicePayment, SalesInvoice
from sales.services.documents import create_sales_invoice, transition_invoice
from sales.services.exceptions import ValidationFailed
from sales.services.invoice_posting import post_invoice
from sales.services.payments import record_invoice_payment


def _lines(entry_id):
    return {
        (row.account.code, row.entry_type): row.amount
        for row in LedgerEntry.objects.select_related("account").filter(journal_entry_id=entry_id)
    }


class _InvoiceFixture(TestCase):
    def setUp(self):
        self.company = make_company()
        self.warehouse = make_warehouse(self.company)
        self.item = make_item(self.company, "SOAP")
        self.customer = make_customer(self.company)
        make_employee(self.company)
        stock_in(self.company, self.warehouse, self.item, 10, unit_cost="1.00")
        self.invoice = self._invoice(post=True)

    def _invoice(self, *, post=False):
        invoice = create_sales_invoice(
            company=self.company,
            customer_id=self.customer.id,
            warehouse=self.warehouse,
            items=[{"item_id": self.item.id, "quantity": "2", "unit_price": "5.00"}],
        )
        if post:
            post_invoice(company=self.company, invoice_id=invoice.id)
        invoice.refresh_from_db()
        return invoice

    def _pay(self, amount, **extra):
        return record_invoice_payment(
            company=self.company, invoice_id=self.invoice.id, amount=amount, **extra
        )


class InvoicePaymentTests(_InvoiceFixture):
    """
    GUARANTEES:
    - a payment lowers amount_due and raises amount_paid by the same amount
    - the invoice becomes paid exactly when amount_due reaches zero
    - each payment posts DR Cash (or Bank) / CR Accounts Receivable
    - cancelled / draft / paid invoices and amounts outside (0, amount_due] are rejected
    """

    # ======================================================
    # BALANCES + STATUS
    # ======================================================

    def test_partial_then_final_payment(self):
        first = self._pay("4.00")

        self.invoice.refresh_from_db()
        self.assertEqual(first["status"], SalesInvoice.Status.SENT)
        self.assertEqual(self.invoice.amount_paid, Decimal("4.00"))
        self.assertEqual(self.invoice.amount_due, Decimal("6.00"))
        self.assertEqual(self.invoice.status, SalesInvoice.Status.SENT)

        second = self._pay("6.00", method=InvoicePayment.Method.BANK_TRANSFER, reference="TRX-9")

        self.invoice.refresh_from_db()
        self.assertEqual(second["status"], SalesInvoice.Status.PAID)
        self.assertEqual(second["amount_due"], "0.00")
        self.assertEqual(self.invoice.amount_paid, Decimal("10.00"))
        self.assertEqual(self.invoice.amount_due, Decimal("0.00"))
        self.assertEqual(self.invoice.status, SalesInvoice.Status.PAID)
        self.assertEqual(self.invoice.payments.count(), 2)

    def test_overdue_invoice_accepts_payment(self):
        transition_invoice(company=self.company, invoice_id=self.invoice.id, action="mark_overdue")

        result = self._pay("10.00")

        self.assertEqual(result["status"], SalesInvoice.Status.PAID)

    # ======================================================
    # JOURNAL
    # ======================================================

    def test_cash_payment_credits_receivable(self):
        result = self._pay("4.00")

        self.assertTrue(result["accounting_success"])
        payment = InvoicePayment.objects.get(id=result["payment_id"])
        self.assertEqual(str(payment.journal_entry_id), result["journal_entry_id"])
        self.assertEqual(payment.journal_entry.reference, f"SALES_INVOICE_PAYMENT:{payment.id}")
        self.assertEqual(
            _lines(payment.journal_entry_id),
            {
                ("1000", LedgerEntry.DEBIT): Decimal("4.00"),
                ("1100", LedgerEntry.CREDIT): Decimal("4.00"),
            },
        )

    def test_non_cash_payment_debits_bank(self):
        result = self._pay("10.00", method=InvoicePayment.Method.CARD)

        lines = _lines(result["journal_entry_id"])
        self.assertEqual(lines[("1010", LedgerEntry.DEBIT)], Decimal("10.00"))
        self.assertEqual(lines[("1100", LedgerEntry.CREDIT)], Decimal("10.00"))

    # ======================================================
    # REJECTIONS
    # ======================================================

    def test_amount_above_due_rejected(self):
        with self.assertRaises(ValidationFailed) as ctx:
            self._pay("10.01")

        self.assertIn("exceeds amount due 10.00", str(ctx.exception))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_due, Decimal("10.00"))
        self.assertFalse(InvoicePayment.objects.exists())

    def test_zero_and_negative_amounts_rejected(self):
        for amount in ("0", "-1.00"):
            with self.assertRaises(ValidationFailed):
                self._pay(amount)
        self.assertFalse(InvoicePayment.objects.exists())

    def test_cancelled_invoice_rejected(self):
        draft = self._invoice()
        transition_invoice(company=self.company, invoice_id=draft.id, action="cancel")

        with self.assertRaises(InvalidTransitionError) as ctx:
            record_invoice_payment(company=self.company, invoice_id=draft.id, amount="1.00")

        self.assertIn("Required status: overdue or sent", str(ctx.exception))

    def test_draft_invoice_rejected(self):
        draft = self._invoice()

        with self.assertRaises(InvalidTransitionError):
            record_invoice_payment(company=self.company, invoice_id=draft.id, amount="1.00")

    def test_paid_invoice_rejects_further_payment(self):
        self._pay("10.00")

        with self.assertRaises(InvalidTransitionError):
            self._pay("1.00")

    # ======================================================
    # BEST-EFFORT JOURNAL
    # ======================================================

    def test_journal_failure_keeps_payment_and_is_retried(self):
        with mock.patch(
            "sales.services.payments.post_invoice_payment",
            side_effect=PostingError("ledger unavailable"),
        ):
            result = self._pay("10.00")

        self.assertFalse(result["accounting_success"])
        self.assertEqual(result["errors"], ["payment: ledger unavailable"])
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, SalesInvoice.Status.PAID)

        payment = InvoicePayment.objects.get()
        self.assertIsNone(payment.journal_entry_id)
        (failure,) = open_failures(company=self.company, kind=PostingFailure.KIND_PAYMENT)
        self.assertEqual(failure.document_id, str(payment.id))

        self.assertTrue(retry_failure(failure).success)
        payment.refresh_from_db()
        self.assertIsNotNone(payment.journal_entry_id)
        self.assertFalse(open_failures(company=self.company, kind=PostingFailure.KIND_PAYMENT).exists())

    # ======================================================
    # mark_paid
    # ======================================================

    def test_mark_paid_records_remaining_balance(self):
        self._pay("3.00")

        invoice = transition_invoice(company=self.company, invoice_id=self.invoice.id, action="mark_paid")

        self.assertEqual(invoice.status, SalesInvoice.Status.PAID)
        self.assertEqual(invoice.amount_paid, Decimal("10.00"))
        self.assertEqual(invoice.amount_due, Decimal("0.00"))
        amounts = sorted(p.amount for p in invoice.payments.all())
        self.assertEqual(amounts, [Decimal("3.00"), Decimal("7.00")])
        self.assertTrue(all(p.journal_entry_id for p in invoice.payments.all()))


class InvoicePaymentAPITests(_InvoiceFixture):
    """
    GUARANTEES:
    - POST /api/sales/invoices/{id}/payments/ records a payment (201)
    - sales staff cannot record payments; accountants can
    - rule violations surface as {"error": "..."}
    """

    def setUp(self):
        super().setUp()
        self.url = f"/api/sales/invoices/{self.invoice.id}/payments/"
        self.client = api_client_for(make_user(self.company, role=Membership.ROLE_ACCOUNTANT))

    def test_record_and_list(self):
        res = self.client.post(self.url, {"amount": "4.00", "method": "cheque"}, format="json")

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["amount_due"], "6.00")
        self.assertTrue(res.data["accounting_success"])

        listed = self.client.get(self.url)
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(len(listed.data), 1)
        self.assertEqual(listed.data[0]["method"], "cheque")

    def test_overpayment_is_400(self):
        res = self.client.post(self.url, {"amount": "50.00"}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("exceeds amount due", res.data["error"])

    def test_sales_role_cannot_record(self):
        client = api_client_for(make_user(self.company, role=Membership.ROLE_SALES))

        res = client.post(self.url, {"amount": "4.00"}, format="json")

        self.assertEqual(res.status_code, 403)
        self.assertFalse(InvoicePayment.objects.exists())

    def test_unknown_invoice_is_404(self):
        res = self.client.get("/api/sales/invoices/00000000-0000-0000-0000-000000000000/payments/")

        self.assertEqual(res.status_code, 404)
