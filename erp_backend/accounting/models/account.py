# accounting/models/account.py

"""
Chart of accounts, one per company.

Codes are unique within a company; accounts referenced by ledger lines
are deactivated, never deleted (PROTECT).
"""

from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Account(models.Model):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    DEBIT_NORMAL_TYPES = frozenset({ASSET, EXPENSE})

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey("companies.Company", on_delete=models.PROTECT, related_name="accounts")
    code = models.CharField(max_length=10)
    name = models.CharField(max_length=150)
    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPES)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["company", "code"], name="acc_account_company_code_idx"),
            models.Index(fields=["company", "account_type"], name="acc_account_company_type_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["company", "code"], name="uniq_account_company_code"),
            models.CheckConstraint(condition=~Q(code=""), name="chk_account_code_not_blank"),
            models.CheckConstraint(condition=~Q(name=""), name="chk_account_name_not_blank"),
        ]

    def __str__(self):
        return f"{self.code} {self.name}"

    @property
    def normal_balance(self) -> str:
        """DEBIT for assets and expenses, CREDIT otherwise."""
        return "DEBIT" if self.account_type in self.DEBIT_NORMAL_TYPES else "CREDIT"

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()
        if not self.code or not self.name:
            raise ValidationError("Account code and name are required")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
