# companies/services/context.py

"""
======================================================
PATH: companies/services/context.py
======================================================
REQUEST TENANT CONTEXT

Resolves which company (and business unit) a request acts on.

Resolution order:
1) X-Company-Id header (must match an active membership)
2) the user's default membership
3) the user's only active membership

The result is cached on the request so permission classes and views
share one lookup.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.core.exceptions import ValidationError

from common.exceptions import DomainError
from companies.models import BusinessUnit, Company, Membership

COMPANY_HEADER = "HTTP_X_COMPANY_ID"
BUSINESS_UNIT_HEADER = "HTTP_X_BUSINESS_UNIT_ID"

_CACHE_ATTR = "_erp_tenant_context"


class TenantContextError(DomainError):
    http_status = 403


@dataclass(frozen=True)
class RequestContext:
    company: Company
    business_unit: BusinessUnit | None
    membership: Membership
    user: object

    @property
    def role(self) -> str:
        return self.membership.role


def _memberships_for(user):
    return Membership.objects.select_related("company", "business_unit").filter(
        user=user,
        is_active=True,
        company__is_active=True,
    )


def _pick_membership(user, company_id: str | None) -> Membership:
    qs = _memberships_for(user)

    if company_id:
        m = qs.filter(company_id=company_id).first()
        if m is None:
            raise TenantContextError("You are not a member of the requested company")
        return m

    default = qs.filter(is_default=True).first()
    if default is not None:
        return default

    memberships = list(qs[:2])
    if len(memberships) == 1:
        return memberships[0]
    if not memberships:
        raise TenantContextError("No active company membership for this user")
    raise TenantContextError(
        "Multiple company memberships; send the X-Company-Id header"
    )


def resolve_request_context(request) -> RequestContext:
    cached = getattr(request, _CACHE_ATTR, None)
    if cached is not None:
        return cached

    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        raise TenantContextError("Authentication required")

    meta = getattr(request, "META", {})
    company_id = (meta.get(COMPANY_HEADER) or "").strip() or None
    unit_id = (meta.get(BUSINESS_UNIT_HEADER) or "").strip() or None

    try:
        membership = _pick_membership(user, company_id)
    except (ValueError, TypeError, ValidationError) as exc:
        raise TenantContextError("Invalid X-Company-Id header") from exc

    business_unit = membership.business_unit
    if unit_id:
        try:
            business_unit = BusinessUnit.objects.filter(
                id=unit_id, company=membership.company, is_active=True
            ).first()
        except (ValueError, TypeError, ValidationError) as exc:
            raise TenantContextError("Invalid X-Business-Unit-Id header") from exc
        if business_unit is None:
            raise TenantContextError("Business unit not found for this company")

    ctx = RequestContext(
        company=membership.company,
        business_unit=business_unit,
        membership=membership,
        user=user,
    )
    setattr(request, _CACHE_ATTR, ctx)
    return ctx
