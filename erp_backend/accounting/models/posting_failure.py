# accounting/models/posting_failure.py

"""
======================================================
PATH: accounting/models/posting_failure.py
======================================================
DOWNSTREAM POSTING FAILURES (RECONCILIATION QUEUE)

AR / COGS / commission / payment postings run after stock + status are
committed and are allowed to fail without undoing them. Each failure is
recorded here so the books can be reconciled later:

    python manage.py retry_failed_postings

One open row per (company, kind, document); repeated failures bump attempts.
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


class PostingFailure(models.Model):
    KIND_AR = "ar"
    KIND_COGS = "cogs"
    KIND_COMMISSION = "commission"
    KIND_PAYMENT = "payment"

    KIND_CHOICES = [
        (KIND_AR, "Accounts Receivable"),
        (KIND_COGS, "Cost of Goods Sold"),
        (KIND_COMMISSION, "Sales Commission"),
        (KIND_PAYMENT, "Customer Payment"),
    ]

    STATUS_OPEN = "open"
    STATUS_RESOLVED = "resolved"

    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_RESOLVED, "Resolved"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.CASCADE,
        related_name="posting_failures",
    )

    kind = models.CharField(max_length=20, choices=KIND_CHOICES)
    document_type = models.CharField(max_length=40)
    document_id = models.CharField(max_length=64)
    document_code = models.CharField(max_length=64, blank=True, default="")

    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_OPEN)
    error = models.TextField(blank=True, default="")
    attempts = models.PositiveIntegerField(default=1)

    first_failed_at = models.DateTimeField(default=timezone.now)
    last_attempt_at = models.DateTimeField(default=timezone.now)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["first_failed_at"]
        indexes = [
            models.Index(fields=["company", "status", "kind"], name="acc_pf_company_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "kind", "document_type", "document_id"],
                condition=Q(status="open"),
                name="uniq_open_posting_failure_per_document",
            )
        ]

    def __str__(self):
        return f"{self.kind} {self.document_type}:{self.document_code or self.document_id} ({self.status})"
