# common/numbering.py

"""
Document code issuing: PREFIX-YYYY-NNNN (e.g. ST-2026-0007).

Must be called inside a transaction; the sequence row is locked so two
concurrent postings never receive the same code.
"""

from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from common.models import DocumentSequence


def next_document_code(*, company, prefix: str, on_date=None) -> str:
    year = (on_date or timezone.localdate()).year

    with transaction.atomic():
        seq, _ = DocumentSequence.objects.select_for_update().get_or_create(
            company=company,
            prefix=prefix,
            year=year,
        )
        seq.last_value += 1
        seq.save(update_fields=["last_value"])

    return f"{prefix}-{year}-{seq.last_value:04d}"
