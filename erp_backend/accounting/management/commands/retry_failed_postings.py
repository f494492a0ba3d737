# accounting/management/commands/retry_failed_postings.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from accounting.models.posting_failure import PostingFailure
from accounting.services.retry import handler_for, open_failures, retry_failure
from companies.models import Company


class Command(BaseCommand):
    help = "Retry open AR / COGS / commission posting failures and resolve the ones that now succeed."

    def add_arguments(self, parser):
        parser.add_argument("--company", dest="company", help="Company code (optional)")
        parser.add_argument(
            "--kind",
            dest="kind",
            choices=[k for k, _ in PostingFailure.KIND_CHOICES],
            help="Only retry one kind of posting",
        )
        parser.add_argument("--limit", type=int, default=0, help="Stop after N failures (0 = all)")
        parser.add_argument("--dry-run", action="store_true", help="List what would be retried")

    def handle(self, *args, **options):
        company = None
        code = (options.get("company") or "").strip()
        if code:
            company = Company.objects.filter(code=code).first()
            if company is None:
                raise CommandError(f"Company {code!r} not found")

        failures = open_failures(company=company, kind=options.get("kind"))
        limit = options.get("limit") or 0
        if limit > 0:
            failures = failures[:limit]

        failures = list(failures)
        dry_run = bool(options.get("dry_run"))

        self.stdout.write(self.style.MIGRATE_HEADING("Retry failed postings"))
        self.stdout.write(f"Open failures selected: {len(failures)}")
        if dry_run:
            self.stdout.write("DRY RUN: no database changes will be saved.\n")

        resolved = 0
        still_failing = 0
        errors: list[str] = []

        for failure in failures:
            label = f"{failure.kind.upper():<10} {failure.document_type}:{failure.document_code or failure.document_id}"

            if dry_run:
                handler = "ok" if handler_for(failure) is not None else "NO HANDLER"
                self.stdout.write(f"WOULD RETRY {label} (attempts={failure.attempts}, {handler})")
                continue

            result = retry_failure(failure)
            if result.success or result.skipped:
                resolved += 1
                self.stdout.write(f"RESOLVED    {label}")
            else:
                still_failing += 1
                errors.append(f"{label}: {result.error}")

        if dry_run:
            return

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS(f"Resolved: {resolved}"))
        if still_failing:
            self.stderr.write(self.style.ERROR(f"Still failing: {still_failing}"))
            for line in errors[:20]:
                self.stderr.write(f"  {line}")
