# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY ENGINE

The only writer of JournalEntry / LedgerEntry rows.

create_journal_entry(description, postings, reference_type, reference_id, ...)
1) Normalize each posting {"account", "debit", "credit"} into a JournalLine
   (one side only, >= 0.01, active account)
2) Require debits == credits and a single owning company
3) Reject a reference that already exists in that company (IdempotencyError)
4) Insert header + ledger lines atomically

References are "<TYPE>:<id>"; the (company, reference) unique constraint
backs the pre-check when two writers race.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.models.ledger import LedgerEntry
from accounting.services.exceptions import IdempotencyError, JournalEntryCreationError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class JournalLine:
    account: object
    entry_type: str
    amount: Decimal


def to_money(value) -> Decimal:
    if value in (None, ""):
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise JournalEntryCreationError(f"Invalid money value: {value!r}") from exc
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def build_reference(reference_type: str | None, reference_id) -> str | None:
    rt = str(reference_type or "").strip()
    rid = str(reference_id or "").strip()
    if not rt or not rid:
        return None
    return f"{rt}:{rid}"


def find_journal_entry(*, company, reference_type: str, reference_id) -> JournalEntry | None:
    reference = build_reference(reference_type, reference_id)
    if reference is None:
        return None
    return JournalEntry.objects.filter(company=company, reference=reference).first()


def _to_line(raw) -> JournalLine:
    if not isinstance(raw, dict):
        raise JournalEntryCreationError("Each posting must be a dict")

    account = raw.get("account")
    if account is None:
        raise JournalEntryCreationError("Posting missing account")
    if not getattr(account, "is_active", True):
        raise JournalEntryCreationError(f"Account {account.code} is inactive")

    debit = to_money(raw.get("debit"))
    credit = to_money(raw.get("credit"))

    if debit < 0 or credit < 0:
        raise JournalEntryCreationError("Debit or credit cannot be negative")
    if debit and credit:
        raise JournalEntryCreationError("A posting cannot have both debit and credit")
    if not debit and not credit:
        raise JournalEntryCreationError("A posting must have either debit or credit")

    if debit:
        return JournalLine(account=account, entry_type=LedgerEntry.DEBIT, amount=debit)
    return JournalLine(account=account, entry_type=LedgerEntry.CREDIT, amount=credit)


def _owning_company_id(lines: list[JournalLine], company=None):
    company_ids = {line.account.company_id for line in lines}
    if company is not None:
        company_ids.add(company.id)
    if len(company_ids) != 1:
        raise JournalEntryCreationError(
            "All postings must belong to the same company; cross-company entries are not allowed"
        )
    return company_ids.pop()


def _side_total(lines: list[JournalLine], entry_type: str) -> Decimal:
    return sum((line.amount for line in lines if line.entry_type == entry_type), ZERO)


@transaction.atomic
def create_journal_entry(
    *,
    description: str,
    postings: list,
    reference_type: str | None = None,
    reference_id=None,
    posted_at: datetime | None = None,
    company=None,
) -> JournalEntry:
    description = (description or "").strip()
    if not description:
        raise JournalEntryCreationError("Journal entry description is required")
    if not postings:
        raise JournalEntryCreationError("Journal entry must contain at least one posting")

    lines = [_to_line(raw) for raw in postings]

    debits = _side_total(lines, LedgerEntry.DEBIT)
    credits = _side_total(lines, LedgerEntry.CREDIT)
    if debits != credits:
        raise JournalEntryCreationError(
            f"Journal entry not balanced: debits={debits} credits={credits}"
        )

    company_id = _owning_company_id(lines, company)
    reference = build_reference(reference_type, reference_id)

    if reference and JournalEntry.objects.filter(company_id=company_id, reference=reference).exists():
        raise IdempotencyError(f"Journal entry already exists for reference {reference}")

    if posted_at is None:
        posted_at = timezone.now()
    elif timezone.is_naive(posted_at):
        posted_at = timezone.make_aware(posted_at, timezone.get_current_timezone())

    try:
        with transaction.atomic():
            entry = JournalEntry.objects.create(
                company_id=company_id,
                description=description,
                reference=reference,
                posted_at=posted_at,
            )
    except IntegrityError as exc:
        if reference:
            # lost the race on (company, reference)
            raise IdempotencyError(f"Journal entry already exists for reference {reference}") from exc
        raise JournalEntryCreationError(f"Failed to create journal entry: {exc}") from exc

    LedgerEntry.objects.bulk_create(
        LedgerEntry(
            journal_entry=entry,
            account=line.account,
            entry_type=line.entry_type,
            amount=line.amount,
        )
        for line in lines
    )

    logger.debug("Journal entry %s posted (%s, %s)", entry.id, reference or "no reference", debits)
    return entry
