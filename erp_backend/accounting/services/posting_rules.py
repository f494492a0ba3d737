# accounting/services/posting_rules.py

"""
POSTING RULES: SALES INVOICES (AUTHORITATIVE)

Defines WHICH accounts are debited and credited when an invoice is posted
or paid.

RESPONSIBILITIES:
- Resolve semantic accounts (company-scoped)
- Construct debit / credit postings

THIS MODULE DOES NOT:
- Write to the database
- Calculate amounts (they are passed in)
"""

from decimal import Decimal

from accounting.services.account_resolver import (
    get_ar_account,
    get_bank_account,
    get_cash_account,
    get_cogs_account,
    get_inventory_account,
    get_sales_revenue_account,
)
from accounting.services.exceptions import PostingRuleError

ZERO = Decimal("0.00")


def build_ar_postings(*, company, amount: Decimal) -> list[dict]:
    """
    Accounting rule (invoice issued on credit):
    - Debit  Accounts Receivable
    - Credit Sales Revenue
    """
    if amount is None or amount <= 0:
        raise PostingRuleError("AR amount must be greater than zero")

    return [
        {"account": get_ar_account(company=company), "debit": amount, "credit": ZERO},
        {"account": get_sales_revenue_account(company=company), "debit": ZERO, "credit": amount},
    ]


def build_cogs_postings(*, company, amount: Decimal) -> list[dict]:
    """
    Accounting rule (inventory leaves at cost):
    - Debit  COGS Expense
    - Credit Inventory Asset
    """
    if amount is None or amount <= 0:
        raise PostingRuleError("COGS amount must be greater than zero")

    return [
        {"account": get_cogs_account(company=company), "debit": amount, "credit": ZERO},
        {"account": get_inventory_account(company=company), "debit": ZERO, "credit": amount},
    ]


def build_payment_postings(*, company, amount: Decimal, via_bank: bool = False) -> list[dict]:
    """
    Accounting rule (customer settles an invoice):
    - Debit  Cash on Hand (or Bank for non-cash methods)
    - Credit Accounts Receivable
    """
    if amount is None or amount <= 0:
        raise PostingRuleError("Payment amount must be greater than zero")

    receiving = get_bank_account(company=company) if via_bank else get_cash_account(company=company)
    return [
        {"account": receiving, "debit": amount, "credit": ZERO},
        {"account": get_ar_account(company=company), "debit": ZERO, "credit": amount},
    ]
