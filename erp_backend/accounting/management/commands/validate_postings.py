# accounting/management/commands/validate_postings.py

from __future__ import annotations

from django.core.management.base import BaseCommand
from django.db.models import Count, Q, Sum

from accounting.models.ledger import LedgerEntry
from accounting.models.posting_failure import PostingFailure
from sales.models import SalesInvoice

POSTED_STATUSES = [
    SalesInvoice.Status.SENT,
    SalesInvoice.Status.OVERDUE,
    SalesInvoice.Status.PAID,
]


class Command(BaseCommand):
    help = "Validate sales invoice -> accounting integrity (AR links, open failures, ledger balance)."

    def add_arguments(self, parser):
        parser.add_argument("--company", dest="company", help="Company code (optional)")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any error is found.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))
        code = (options.get("company") or "").strip()

        invoices = SalesInvoice.objects.alive().filter(status__in=POSTED_STATUSES)
        ledger_qs = LedgerEntry.objects.all()
        failures = PostingFailure.objects.filter(status=PostingFailure.STATUS_OPEN)
        if code:
            invoices = invoices.filter(company__code=code)
            ledger_qs = ledger_qs.filter(journal_entry__company__code=code)
            failures = failures.filter(company__code=code)

        self.stdout.write(self.style.MIGRATE_HEADING("Invoice -> Accounting Validation"))
        self.stdout.write(f"Posted invoices: {invoices.count()}")
        self.stdout.write("")

        errors = 0

        # -----------------------------
        # 1) Posted invoices carry an AR entry (or an open failure)
        # -----------------------------
        open_ar = set(
            failures.filter(kind=PostingFailure.KIND_AR, document_type="sales_invoice")
            .values_list("document_id", flat=True)
        )
        missing_ar = [
            inv_code
            for inv_id, inv_code in invoices.filter(ar_journal_entry__isnull=True)
            .exclude(total_amount=0)
            .values_list("id", "code")
            if str(inv_id) not in open_ar
        ]
        if missing_ar:
            errors += len(missing_ar)
            self.stderr.write(self.style.ERROR(f"[FAIL] Invoices without AR entry or open failure: {len(missing_ar)}"))
            self.stderr.write("  Examples: " + ", ".join(missing_ar[:10]))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Every posted invoice has AR or a queued failure"))

        # -----------------------------
        # 2) Open failures (informational)
        # -----------------------------
        by_kind = failures.values("kind").annotate(n=Count("id")).order_by("kind")
        if by_kind:
            for row in by_kind:
                self.stdout.write(self.style.WARNING(f"[WARN] Open {row['kind']} failures: {row['n']}"))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] No open posting failures"))

        # -----------------------------
        # 3) Ledger global balance check
        # -----------------------------
        totals = ledger_qs.aggregate(
            debits=Sum("amount", filter=Q(entry_type=LedgerEntry.DEBIT)),
            credits=Sum("amount", filter=Q(entry_type=LedgerEntry.CREDIT)),
        )
        debits = totals["debits"] or 0
        credits = totals["credits"] or 0

        if debits != credits:
            errors += 1
            self.stderr.write(self.style.ERROR(f"[FAIL] Ledger not balanced: debits={debits} credits={credits}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"[OK] Ledger balanced: debits={debits} credits={credits}"))

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("✅ VALIDATION PASSED"))
        else:
            self.stderr.write(self.style.ERROR(f"❌ VALIDATION FOUND ISSUES: {errors} problem(s)"))

        if strict and errors > 0:
            raise SystemExit(1)
