# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API (READ-ONLY)

GET /api/accounting/accounts/
Active accounts of the request's company, ordered by code.
"""

from drf_spectacular.utils import extend_schema

from accounting.api.serializers.accounts import AccountListSerializer
from accounting.models.account import Account
from common.api.views import DomainAPIView
from permissions.roles import CAP_ACCOUNTING_VIEW


class ChartAccountsView(DomainAPIView):
    required_capability = CAP_ACCOUNTING_VIEW
    serializer_class = AccountListSerializer
    pagination_class = None
    filterset_fields = ["account_type"]

    @extend_schema(
        tags=["accounting"],
        responses=AccountListSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        qs = Account.objects.filter(company=self.company, is_active=True).order_by("code")
        return self.list_response(qs)
