# accounting/services/account_resolver.py

"""
======================================================
PATH: accounting/services/account_resolver.py
======================================================
ACCOUNT RESOLVER (AUTHORITATIVE)

This module answers ONE question:
"Which account should be used for this purpose, in this company?"

Design goals:
- deterministic (semantic name -> code -> company account)
- company-safe (never resolves across tenants)
- hard-fail on missing setup (so we don't post to wrong accounts)
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.models.account import Account
from accounting.services.exceptions import AccountResolutionError

logger = logging.getLogger(__name__)

CASH = "CASH"
BANK = "BANK"
AR = "AR"
INVENTORY = "INVENTORY"
ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
SALES_REVENUE = "SALES_REVENUE"
COGS = "COGS"
COMMISSION_EXPENSE = "COMMISSION_EXPENSE"

DEFAULT_CODES = {
    CASH: "1000",
    BANK: "1010",
    AR: "1100",
    INVENTORY: "1200",
    ACCOUNTS_PAYABLE: "2000",
    "VAT_PAYABLE": "2100",
    SALES_REVENUE: "4000",
    COGS: "5000",
    COMMISSION_EXPENSE: "6100",
}

DEFAULT_CHART = [
    ("1000", "Cash on Hand", Account.ASSET),
    ("1010", "Bank", Account.ASSET),
    ("1100", "Accounts Receivable", Account.ASSET),
    ("1200", "Inventory", Account.ASSET),
    ("2000", "Accounts Payable", Account.LIABILITY),
    ("2100", "VAT Payable", Account.LIABILITY),
    ("3000", "Owner's Equity", Account.EQUITY),
    ("4000", "Sales Revenue", Account.REVENUE),
    ("5000", "Cost of Goods Sold", Account.EXPENSE),
    ("6100", "Sales Commission Expense", Account.EXPENSE),
]


def code_for(semantic: str) -> str:
    try:
        return DEFAULT_CODES[semantic]
    except KeyError as exc:
        raise AccountResolutionError(f"Unknown account semantic {semantic!r}") from exc


def get_account(*, company, semantic: str) -> Account:
    code = code_for(semantic)
    try:
        return Account.objects.get(company=company, code=code, is_active=True)
    except Account.DoesNotExist as exc:
        raise AccountResolutionError(
            f"{semantic} account (code={code}) not found for company {getattr(company, 'code', company)}"
        ) from exc


def get_cash_account(*, company) -> Account:
    return get_account(company=company, semantic=CASH)


def get_bank_account(*, company) -> Account:
    return get_account(company=company, semantic=BANK)


def get_ar_account(*, company) -> Account:
    return get_account(company=company, semantic=AR)


def get_sales_revenue_account(*, company) -> Account:
    return get_account(company=company, semantic=SALES_REVENUE)


def get_inventory_account(*, company) -> Account:
    return get_account(company=company, semantic=INVENTORY)


def get_cogs_account(*, company) -> Account:
    return get_account(company=company, semantic=COGS)


@transaction.atomic
def seed_default_accounts(*, company) -> list[Account]:
    """Idempotently create the default chart for a company."""
    created = []
    for code, name, account_type in DEFAULT_CHART:
        account, was_created = Account.objects.get_or_create(
            company=company,
            code=code,
            defaults={"name": name, "account_type": account_type},
        )
        if was_created:
            created.append(account)

    if created:
        logger.info(
            "Seeded %d account(s) for company %s", len(created), getattr(company, "code", company)
        )
    return created
