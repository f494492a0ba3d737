# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission

from common.exceptions import DomainError


# =========================================================
# ROLE CONSTANTS (COMPANY MEMBERSHIP ROLES)
# =========================================================
# Roles live on companies.Membership, not on the user: the same user can
# be an accountant in one company and a viewer in another.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_ACCOUNTANT = "accountant"
ROLE_SALES = "sales"
ROLE_PURCHASING = "purchasing"
ROLE_WAREHOUSE = "warehouse"
ROLE_VIEWER = "viewer"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_ACCOUNTANT,
    ROLE_SALES,
    ROLE_PURCHASING,
    ROLE_WAREHOUSE,
    ROLE_VIEWER,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# "<resource>.<action>". Views protect capabilities, not raw roles.
CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_ADJUST = "stock_adjustments.create"
CAP_INVENTORY_ADJUST_POST = "stock_adjustments.post"

CAP_SALES_INVOICES_VIEW = "sales_invoices.view"
CAP_SALES_INVOICES_MANAGE = "sales_invoices.manage"
CAP_SALES_INVOICES_POST = "sales_invoices.post"
CAP_SALES_ORDERS_VIEW = "sales_orders.view"
CAP_SALES_ORDERS_MANAGE = "sales_orders.manage"
CAP_SALES_ORDERS_CONVERT = "sales_orders.convert"
CAP_SALES_PAYMENTS_RECORD = "sales_payments.record"

CAP_GRN_VIEW = "grns.view"
CAP_GRN_SUBMIT = "grns.submit"
CAP_GRN_APPROVE = "grns.approve"

CAP_DELIVERY_NOTES_VIEW = "delivery_notes.view"
CAP_DELIVERY_NOTES_MANAGE = "delivery_notes.manage"
CAP_DELIVERY_NOTES_DISPATCH = "delivery_notes.dispatch"
CAP_DELIVERY_NOTES_RECEIVE = "delivery_notes.receive"

CAP_ACCOUNTING_VIEW = "accounting.view"
CAP_ACCOUNTING_RETRY = "accounting.retry"

ALL_CAPABILITIES = {
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_ADJUST_POST,
    CAP_SALES_INVOICES_VIEW,
    CAP_SALES_INVOICES_MANAGE,
    CAP_SALES_ORDERS_VIEW,
    CAP_SALES_ORDERS_MANAGE,
    CAP_SALES_INVOICES_POST,
    CAP_SALES_ORDERS_CONVERT,
    CAP_SALES_PAYMENTS_RECORD,
    CAP_GRN_VIEW,
    CAP_GRN_SUBMIT,
    CAP_GRN_APPROVE,
    CAP_DELIVERY_NOTES_VIEW,
    CAP_DELIVERY_NOTES_MANAGE,
    CAP_DELIVERY_NOTES_DISPATCH,
    CAP_DELIVERY_NOTES_RECEIVE,
    CAP_ACCOUNTING_VIEW,
    CAP_ACCOUNTING_RETRY,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_ADJUST,
        CAP_INVENTORY_ADJUST_POST,
        CAP_SALES_INVOICES_VIEW,
        CAP_SALES_INVOICES_MANAGE,
        CAP_SALES_ORDERS_VIEW,
        CAP_SALES_ORDERS_MANAGE,
        CAP_SALES_INVOICES_POST,
        CAP_SALES_ORDERS_CONVERT,
        CAP_SALES_PAYMENTS_RECORD,
        CAP_GRN_VIEW,
        CAP_GRN_SUBMIT,
        CAP_GRN_APPROVE,
        CAP_DELIVERY_NOTES_VIEW,
        CAP_DELIVERY_NOTES_MANAGE,
        CAP_DELIVERY_NOTES_DISPATCH,
        CAP_DELIVERY_NOTES_RECEIVE,
        CAP_ACCOUNTING_VIEW,
    },
    ROLE_ACCOUNTANT: {
        CAP_INVENTORY_VIEW,
        CAP_SALES_INVOICES_VIEW,
        CAP_SALES_INVOICES_MANAGE,
        CAP_SALES_ORDERS_VIEW,
        CAP_SALES_INVOICES_POST,
        CAP_SALES_PAYMENTS_RECORD,
        CAP_GRN_VIEW,
        CAP_ACCOUNTING_VIEW,
        CAP_ACCOUNTING_RETRY,
    },
    ROLE_SALES: {
        CAP_INVENTORY_VIEW,
        CAP_SALES_INVOICES_VIEW,
        CAP_SALES_INVOICES_MANAGE,
        CAP_SALES_ORDERS_VIEW,
        CAP_SALES_ORDERS_MANAGE,
        CAP_SALES_INVOICES_POST,
        CAP_SALES_ORDERS_CONVERT,
    },
    ROLE_PURCHASING: {
        CAP_INVENTORY_VIEW,
        CAP_GRN_VIEW,
        CAP_GRN_SUBMIT,
        # approval stays with managers (segregation of duties)
    },
    ROLE_WAREHOUSE: {
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_ADJUST,
        CAP_GRN_VIEW,
        CAP_DELIVERY_NOTES_VIEW,
        CAP_DELIVERY_NOTES_MANAGE,
        CAP_DELIVERY_NOTES_DISPATCH,
        CAP_DELIVERY_NOTES_RECEIVE,
    },
    ROLE_VIEWER: {
        CAP_INVENTORY_VIEW,
        CAP_SALES_INVOICES_VIEW,
        CAP_SALES_ORDERS_VIEW,
        CAP_GRN_VIEW,
        CAP_DELIVERY_NOTES_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_request_role(request) -> Optional[str]:
    """
    Role comes from the company membership resolved for this request.
    Superusers act as admin in every company they belong to.
    """
    from companies.services.context import resolve_request_context

    try:
        ctx = resolve_request_context(request)
    except DomainError:
        return None

    user = getattr(request, "user", None)
    if getattr(user, "is_superuser", False):
        return ROLE_ADMIN

    return ctx.role


def effective_capabilities_for(request) -> set[str]:
    role = get_request_role(request)
    return set(ROLE_CAPABILITIES.get(role, set()))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_SALES_INVOICES_POST

    Views may instead expose get_required_capability(request) to vary the
    capability per HTTP method.
    """

    message = "You do not have permission to perform this action in this company."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        getter = getattr(view, "get_required_capability", None)
        required = getter(request) if getter else getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(request)
