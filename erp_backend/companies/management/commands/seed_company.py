# companies/management/commands/seed_company.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounting.services.account_resolver import seed_default_accounts
from companies.models import BusinessUnit, Company, Membership
from inventory.models import Warehouse


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    username: str


# One login per membership role; the admin doubles as the default superuser.
SEED_USERS = [
    SeedUserSpec("Admin", Membership.ROLE_ADMIN, "admin"),
    SeedUserSpec("Manager", Membership.ROLE_MANAGER, "manager"),
    SeedUserSpec("Accountant", Membership.ROLE_ACCOUNTANT, "accountant"),
    SeedUserSpec("Sales", Membership.ROLE_SALES, "sales"),
    SeedUserSpec("Purchasing", Membership.ROLE_PURCHASING, "purchasing"),
    SeedUserSpec("Warehouse", Membership.ROLE_WAREHOUSE, "warehouse"),
    SeedUserSpec("Viewer", Membership.ROLE_VIEWER, "viewer"),
]


def _upsert_user(*, User, spec: SeedUserSpec, company_code: str, password: str, force_password: bool):
    username = f"{spec.username}@{company_code}"
    user, created = User.objects.get_or_create(
        username=username,
        defaults={
            "email": f"{spec.username}+{company_code}@example.com",
            "is_staff": True,
            "is_superuser": spec.role == Membership.ROLE_ADMIN,
        },
    )
    if created or force_password:
        user.set_password(password)
        user.save()
    return user, created


class Command(BaseCommand):
    help = "Seed a company with a business unit, a main warehouse, the default chart and one user per role."

    def add_arguments(self, parser):
        parser.add_argument("code", type=str, help="Company code (slug)")
        parser.add_argument("--name", type=str, default="", help="Company name (default: code)")
        parser.add_argument("--currency", type=str, default="USD")
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="If set, resets password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        code = (options["code"] or "").strip().lower()
        password = options.get("password") or ""
        if not code:
            raise CommandError("Company code is required")
        if len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        company, created = Company.objects.get_or_create(
            code=code,
            defaults={
                "name": options.get("name") or code.upper(),
                "base_currency": (options.get("currency") or "USD").upper(),
            },
        )
        self.stdout.write(f"{'✅ created' if created else '↩︎ exists '}: company {company.code}")

        unit, _ = BusinessUnit.objects.get_or_create(
            company=company, code="HQ", defaults={"name": "Head Office"}
        )
        Warehouse.objects.get_or_create(
            company=company,
            code="MAIN",
            defaults={"name": "Main Warehouse", "business_unit": unit},
        )

        accounts = seed_default_accounts(company=company)
        self.stdout.write(f"Accounts seeded: {len(accounts)}")

        User = get_user_model()
        created_count = 0
        for spec in SEED_USERS:
            user, user_created = _upsert_user(
                User=User,
                spec=spec,
                company_code=company.code,
                password=password,
                force_password=bool(options.get("force_password")),
            )
            Membership.objects.update_or_create(
                user=user,
                company=company,
                defaults={"role": spec.role, "business_unit": unit, "is_active": True},
            )
            if user_created:
                created_count += 1
                self.stdout.write(f"✅ created: {user.username} ({spec.role})")
            else:
                self.stdout.write(f"↩︎ exists:  {user.username} ({spec.role})")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Created users: {created_count}")
        self.stdout.write(f"Send X-Company-Id: {company.id} when a user belongs to several companies.")
