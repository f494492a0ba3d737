# accounting/tests/test_journal_integrity.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models import Account, JournalEntry, LedgerEntry
from accounting.services.account_resolver import (
    AR,
    get_account,
    seed_default_accounts,
)
from accounting.services.exceptions import (
    AccountResolutionError,
    IdempotencyError,
    JournalEntryCreationError,
)
from accounting.services.journal_entry_service import create_journal_entry, find_journal_entry
from common.tests.factories import make_company


class JournalEntryServiceTests(TestCase):
    """
    GUARANTEES:
    - debits == credits or nothing is written
    - one journal entry per (company, reference)
    - postings never span companies
    - journal + ledger rows are immutable
    """

    def setUp(self):
        self.company = make_company()
        self.cash = Account.objects.get(company=self.company, code="1000")
        self.sales = Account.objects.get(company=self.company, code="4000")

    def _entry(self, *, debit="100.00", credit="100.00", reference_id="A1", sales=None):
        return create_journal_entry(
            description="Test sale",
            postings=[
                {"account": self.cash, "debit": debit, "credit": "0.00"},
                {"account": sales or self.sales, "debit": "0.00", "credit": credit},
            ],
            reference_type="TEST",
            reference_id=reference_id,
        )

    def test_create_journal_entry_balanced_creates_ledger(self):
        je = self._entry()

        self.assertEqual(je.company_id, self.company.id)
        self.assertEqual(je.reference, "TEST:A1")

        lines = LedgerEntry.objects.filter(journal_entry=je)
        self.assertEqual(lines.count(), 2)

        debit_sum = sum(
            (l.amount for l in lines if l.entry_type == LedgerEntry.DEBIT),
            Decimal("0.00"),
        )
        credit_sum = sum(
            (l.amount for l in lines if l.entry_type == LedgerEntry.CREDIT),
            Decimal("0.00"),
        )
        self.assertEqual(debit_sum, Decimal("100.00"))
        self.assertEqual(credit_sum, Decimal("100.00"))

    def test_unbalanced_raises(self):
        with self.assertRaises(JournalEntryCreationError):
            self._entry(credit="90.00", reference_id="BAD1")

        self.assertFalse(JournalEntry.objects.exists())

    def test_same_reference_is_rejected(self):
        self._entry()

        with self.assertRaises(IdempotencyError):
            self._entry()

        self.assertEqual(JournalEntry.objects.count(), 1)
        self.assertIsNotNone(
            find_journal_entry(company=self.company, reference_type="TEST", reference_id="A1")
        )

    def test_same_reference_allowed_in_another_company(self):
        self._entry()
        other = make_company("other")

        je = create_journal_entry(
            description="Other tenant",
            postings=[
                {"account": Account.objects.get(company=other, code="1000"), "debit": "5.00"},
                {"account": Account.objects.get(company=other, code="4000"), "credit": "5.00"},
            ],
            reference_type="TEST",
            reference_id="A1",
        )

        self.assertEqual(je.company_id, other.id)

    def test_cross_company_postings_rejected(self):
        other = make_company("other")

        with self.assertRaises(JournalEntryCreationError):
            self._entry(sales=Account.objects.get(company=other, code="4000"))

    def test_inactive_account_rejected(self):
        Account.objects.filter(pk=self.sales.pk).update(is_active=False)
        self.sales.refresh_from_db()

        with self.assertRaises(JournalEntryCreationError):
            self._entry()

    def test_line_with_both_sides_rejected(self):
        with self.assertRaises(JournalEntryCreationError):
            create_journal_entry(
                description="Both sides",
                postings=[{"account": self.cash, "debit": "1.00", "credit": "1.00"}],
            )

    def test_entries_are_immutable(self):
        je = self._entry()
        line = je.ledger_entries.first()

        with self.assertRaises(ValidationError):
            je.save()
        with self.assertRaises(ValidationError):
            je.delete()
        with self.assertRaises(ValidationError):
            line.save()


class AccountResolverTests(TestCase):
    def test_seed_is_idempotent(self):
        company = make_company()
        before = Account.objects.filter(company=company).count()

        seed_default_accounts(company=company)

        self.assertEqual(Account.objects.filter(company=company).count(), before)
        self.assertEqual(get_account(company=company, semantic=AR).code, "1100")

    def test_missing_chart_fails_loudly(self):
        company = make_company(with_chart=False)

        with self.assertRaises(AccountResolutionError):
            get_account(company=company, semantic=AR)
