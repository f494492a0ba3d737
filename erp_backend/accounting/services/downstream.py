# accounting/services/downstream.py

"""
======================================================
PATH: accounting/services/downstream.py
======================================================
DOWNSTREAM POSTING RUNNER (BEST-EFFORT, RECONCILABLE)

After a document's stock + status changes are written, dependent postings
(AR, COGS, commission) run through run_downstream():

- each runs in its own savepoint: a failure rolls back only that posting,
  never the stock movement or the status change already made
- the outcome is returned for the API response
- failures are recorded as PostingFailure rows (one open row per document
  and kind) so `manage.py retry_failed_postings` can reconcile later
- a later success resolves any open failure for the same document/kind
- when ACCOUNTING_POSTING_ENABLED is off, AR/COGS/payment report skipped
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Callable

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounting.models.posting_failure import PostingFailure

logger = logging.getLogger(__name__)

ACCOUNTING_KINDS = {PostingFailure.KIND_AR, PostingFailure.KIND_COGS, PostingFailure.KIND_PAYMENT}


@dataclass
class PostingOutcome:
    kind: str
    success: bool = False
    skipped: bool = False
    error: str | None = None
    journal_entry_id: str | None = None
    amount: Decimal | None = None
    extra: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        data = asdict(self)
        if self.amount is not None:
            data["amount"] = str(self.amount)
        return data


def accounting_enabled() -> bool:
    return bool(getattr(settings, "ACCOUNTING_POSTING_ENABLED", True))


def commission_enabled() -> bool:
    return bool(getattr(settings, "COMMISSION_ENABLED", True))


def _is_enabled(kind: str) -> bool:
    if kind in ACCOUNTING_KINDS:
        return accounting_enabled()
    if kind == PostingFailure.KIND_COMMISSION:
        return commission_enabled()
    return True


def record_failure(*, company, kind: str, document_type: str, document_id, document_code: str = "", error: str) -> PostingFailure:
    now = timezone.now()
    doc_id = str(document_id)

    existing = (
        PostingFailure.objects.select_for_update()
        .filter(
            company=company,
            kind=kind,
            document_type=document_type,
            document_id=doc_id,
            status=PostingFailure.STATUS_OPEN,
        )
        .first()
    )
    if existing is not None:
        PostingFailure.objects.filter(pk=existing.pk).update(
            attempts=F("attempts") + 1,
            error=error,
            last_attempt_at=now,
        )
        existing.refresh_from_db()
        return existing

    return PostingFailure.objects.create(
        company=company,
        kind=kind,
        document_type=document_type,
        document_id=doc_id,
        document_code=document_code or "",
        error=error,
        first_failed_at=now,
        last_attempt_at=now,
    )


def resolve_failures(*, company, kind: str, document_type: str, document_id) -> int:
    return PostingFailure.objects.filter(
        company=company,
        kind=kind,
        document_type=document_type,
        document_id=str(document_id),
        status=PostingFailure.STATUS_OPEN,
    ).update(status=PostingFailure.STATUS_RESOLVED, resolved_at=timezone.now())


def run_downstream(
    *,
    kind: str,
    company,
    document_type: str,
    document_id,
    action: Callable[[], PostingOutcome],
    document_code: str = "",
) -> PostingOutcome:
    if not _is_enabled(kind):
        return PostingOutcome(kind=kind, skipped=True, error=f"{kind} posting disabled")

    try:
        with transaction.atomic():
            outcome = action()
    except Exception as exc:  # noqa: BLE001 - downstream postings must not fail the document
        if getattr(exc, "http_status", None) is None:
            logger.exception(
                "Unexpected %s posting failure for %s %s", kind, document_type, document_id
            )
        else:
            logger.warning(
                "%s posting failed for %s %s: %s", kind, document_type, document_id, exc
            )
        outcome = PostingOutcome(kind=kind, success=False, error=str(exc) or exc.__class__.__name__)

    if outcome.success or outcome.skipped:
        resolve_failures(
            company=company, kind=kind, document_type=document_type, document_id=document_id
        )
        return outcome

    record_failure(
        company=company,
        kind=kind,
        document_type=document_type,
        document_id=document_id,
        document_code=document_code,
        error=outcome.error or "unknown error",
    )
    return outcome
