# accounting/services/retry.py

"""
======================================================
PATH: accounting/services/retry.py
======================================================
RETRY OPEN POSTING FAILURES

Each (document_type, kind) maps to a handler:
    handler(*, company, document_id) -> PostingOutcome

Handlers are referenced by dotted path so accounting does not import the
sales app at module load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.utils.module_loading import import_string

from accounting.models.posting_failure import PostingFailure
from accounting.services.downstream import run_downstream

logger = logging.getLogger(__name__)

HANDLERS = {
    ("sales_invoice", PostingFailure.KIND_AR): "accounting.services.posting.retry_invoice_ar",
    ("sales_invoice", PostingFailure.KIND_COGS): "accounting.services.posting.retry_invoice_cogs",
    ("sales_invoice", PostingFailure.KIND_COMMISSION): "sales.services.commission_service.retry_invoice_commission",
    ("sales_invoice_payment", PostingFailure.KIND_PAYMENT): "accounting.services.posting.retry_invoice_payment",
}


@dataclass
class RetryResult:
    failure_id: str
    kind: str
    document_type: str
    document_id: str
    success: bool
    skipped: bool = False
    error: str | None = None


def open_failures(*, company=None, kind: str | None = None):
    qs = PostingFailure.objects.select_related("company").filter(status=PostingFailure.STATUS_OPEN)
    if company is not None:
        qs = qs.filter(company=company)
    if kind:
        qs = qs.filter(kind=kind)
    return qs.order_by("first_failed_at")


def handler_for(failure: PostingFailure):
    path = HANDLERS.get((failure.document_type, failure.kind))
    if path is None:
        return None
    return import_string(path)


def retry_failure(failure: PostingFailure) -> RetryResult:
    handler = handler_for(failure)
    if handler is None:
        logger.warning(
            "No retry handler for %s/%s (failure %s)", failure.document_type, failure.kind, failure.id
        )
        return RetryResult(
            failure_id=str(failure.id),
            kind=failure.kind,
            document_type=failure.document_type,
            document_id=failure.document_id,
            success=False,
            error="No retry handler registered",
        )

    outcome = run_downstream(
        kind=failure.kind,
        company=failure.company,
        document_type=failure.document_type,
        document_id=failure.document_id,
        document_code=failure.document_code,
        action=lambda: handler(company=failure.company, document_id=failure.document_id),
    )
    return RetryResult(
        failure_id=str(failure.id),
        kind=failure.kind,
        document_type=failure.document_type,
        document_id=failure.document_id,
        success=outcome.success,
        skipped=outcome.skipped,
        error=outcome.error,
    )
