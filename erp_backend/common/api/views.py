# common/api/views.py

"""
======================================================
PATH: common/api/views.py
======================================================
BASE API VIEW

All staff endpoints inherit DomainAPIView so service-layer errors
(DomainError, django ValidationError) surface as:

    {"error": "<message>"}  with the exception's HTTP status

DRF's own errors (authentication, permission, serializer validation)
keep DRF's standard response format.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.exceptions import DomainError
from companies.services.context import resolve_request_context
from permissions.roles import HasCapability

logger = logging.getLogger(__name__)


def error_response(message: str, *, http_status: int = status.HTTP_400_BAD_REQUEST) -> Response:
    return Response({"error": message}, status=http_status)


def _validation_message(exc: DjangoValidationError) -> str:
    if hasattr(exc, "message_dict"):
        parts = []
        for field, messages in exc.message_dict.items():
            joined = "; ".join(str(m) for m in messages)
            parts.append(joined if field == "__all__" else f"{field}: {joined}")
        return " | ".join(parts)
    return "; ".join(str(m) for m in exc.messages)


class DomainAPIView(GenericAPIView):
    """
    Company-scoped, capability-protected API view.

    Subclasses set:
        required_capability = CAP_...
    or, when reads and writes differ:
        method_capabilities = {"GET": CAP_..._VIEW, "POST": CAP_...}
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability: str | None = None
    method_capabilities: dict[str, str] = {}

    def get_required_capability(self, request) -> str | None:
        return self.method_capabilities.get(request.method, self.required_capability)

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        # Authenticated + permitted at this point; pin tenant context once.
        self.ctx = resolve_request_context(request)

    @property
    def company(self):
        return self.ctx.company

    def list_response(self, queryset) -> Response:
        queryset = self.filter_queryset(queryset)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            if exc.http_status >= 500:
                logger.error("Domain failure in %s: %s", self.__class__.__name__, exc)
            return error_response(str(exc), http_status=exc.http_status)

        if isinstance(exc, DjangoValidationError):
            return error_response(_validation_message(exc))

        if isinstance(exc, DatabaseError):
            logger.exception("Database error in %s", self.__class__.__name__)
            return error_response(
                str(exc), http_status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return super().handle_exception(exc)
