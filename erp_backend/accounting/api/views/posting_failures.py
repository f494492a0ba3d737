# accounting/api/views/posting_failures.py

"""
PATH: accounting/api/views/posting_failures.py

POSTING FAILURE QUEUE API

GET  /api/accounting/posting-failures/            ?status=open&kind=cogs
POST /api/accounting/posting-failures/{id}/retry/

A retry re-runs the original AR / COGS / commission posting through the
same best-effort runner; success resolves the row, failure bumps attempts.
"""

from drf_spectacular.utils import extend_schema
from rest_framework.response import Response

from accounting.api.serializers.posting_failures import (
    PostingFailureSerializer,
    RetryResultSerializer,
)
from accounting.models.posting_failure import PostingFailure
from accounting.services.retry import retry_failure
from common.api.views import DomainAPIView
from common.exceptions import NotFoundError, ValidationFailed
from permissions.roles import CAP_ACCOUNTING_RETRY, CAP_ACCOUNTING_VIEW


class PostingFailureListView(DomainAPIView):
    required_capability = CAP_ACCOUNTING_VIEW
    serializer_class = PostingFailureSerializer
    filterset_fields = ["status", "kind", "document_type", "document_id"]

    @extend_schema(tags=["accounting"], responses=PostingFailureSerializer(many=True))
    def get(self, request):
        qs = PostingFailure.objects.filter(company=self.company).order_by("-last_attempt_at")
        return self.list_response(qs)


class PostingFailureRetryView(DomainAPIView):
    required_capability = CAP_ACCOUNTING_RETRY

    @extend_schema(tags=["accounting"], request=None, responses=RetryResultSerializer)
    def post(self, request, failure_id):
        failure = (
            PostingFailure.objects.select_related("company")
            .filter(company=self.company, id=failure_id)
            .first()
        )
        if failure is None:
            raise NotFoundError("Posting failure not found")
        if failure.status != PostingFailure.STATUS_OPEN:
            raise ValidationFailed("Posting failure is already resolved")

        result = retry_failure(failure)
        return Response(RetryResultSerializer(result).data)
