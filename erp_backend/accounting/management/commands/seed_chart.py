# accounting/management/commands/seed_chart.py

from django.core.management.base import BaseCommand, CommandError

from accounting.services.account_resolver import DEFAULT_CHART, seed_default_accounts
from companies.models import Company


class Command(BaseCommand):
    help = "Seed the default chart of accounts (AR, inventory, revenue, COGS, commission) per company"

    def add_arguments(self, parser):
        parser.add_argument(
            "--company",
            dest="company",
            help="Company code to seed (default: every active company)",
        )

    def handle(self, *args, **options):
        companies = Company.objects.filter(is_active=True).order_by("code")

        code = (options.get("company") or "").strip()
        if code:
            companies = companies.filter(code=code)
            if not companies.exists():
                raise CommandError(f"Company {code!r} not found or inactive")

        self.stdout.write(f"Seeding {len(DEFAULT_CHART)} default account(s)...")

        total_created = 0
        for company in companies:
            created = seed_default_accounts(company=company)
            total_created += len(created)
            self.stdout.write(f"  {company.code}: {len(created)} new account(s)")

        self.stdout.write(
            self.style.SUCCESS(f"✔ Chart seeded ({total_created} new accounts).")
        )
