# common/models.py

"""
======================================================
PATH: common/models.py
======================================================
SHARED MODEL BUILDING BLOCKS

- TimeStampedModel: created_at / updated_at
- SoftDeleteModel: deleted_at instead of physical delete
- DocumentSequence: per-company, per-prefix, per-year counters used to
  issue codes like ST-2026-0001 without races (row lock on the counter)
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def dead(self):
        return self.filter(deleted_at__isnull=False)


class SoftDeleteModel(TimeStampedModel):
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self):
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at", "updated_at"])


class DocumentSequence(models.Model):
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.CASCADE,
        related_name="document_sequences",
    )
    prefix = models.CharField(max_length=16)
    year = models.PositiveIntegerField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "prefix", "year"],
                name="uniq_document_sequence_company_prefix_year",
            )
        ]

    def __str__(self):
        return f"{self.prefix}-{self.year} @ {self.last_value}"
