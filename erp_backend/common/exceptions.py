# common/exceptions.py

"""
======================================================
PATH: common/exceptions.py
======================================================
DOMAIN ERROR TAXONOMY

Every service-layer failure in this backend derives from DomainError.
API views convert these into {"error": "..."} responses using http_status.

Families:
- ValidationFailed      -> 400 (bad input, missing fields)
- BusinessRuleError     -> 400 (insufficient stock, over-allocation, bad transition)
- NotFoundError         -> 404
- PostingError          -> 500 (downstream accounting/commission failure)
"""

from __future__ import annotations

from decimal import Decimal


class DomainError(Exception):
    """Base exception for all domain/service failures."""

    http_status = 400

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self):
        return self.message or self.__class__.__name__


class ValidationFailed(DomainError):
    http_status = 400


class BusinessRuleError(DomainError):
    http_status = 400


class NotFoundError(DomainError):
    http_status = 404


class PostingError(DomainError):
    http_status = 500


class InvalidTransitionError(BusinessRuleError):
    """Raised when a document is asked to move from a status that does not allow it."""

    def __init__(self, message: str, *, document: str, from_status: str, to_status: str):
        super().__init__(
            message,
            document=document,
            from_status=from_status,
            to_status=to_status,
        )
        self.document = document
        self.from_status = from_status
        self.to_status = to_status


class InsufficientStockError(BusinessRuleError):
    """
    Outbound posting would drive current_stock below zero.

    Carries the quantities so callers/tests can report them precisely.
    """

    def __init__(self, *, item_code: str, warehouse_code: str, available, requested):
        self.item_code = item_code
        self.warehouse_code = warehouse_code
        self.available = Decimal(str(available))
        self.requested = Decimal(str(requested))
        super().__init__(
            f"Insufficient stock for item {item_code} in warehouse {warehouse_code}. "
            f"Available={_fmt(self.available)}, requested={_fmt(self.requested)}",
            item_code=item_code,
            warehouse_code=warehouse_code,
            available=self.available,
            requested=self.requested,
        )


class OverAllocationError(BusinessRuleError):
    """Allocation exceeds requested - received - already allocated."""


def _fmt(value: Decimal) -> str:
    normalized = value.normalize()
    if normalized == normalized.to_integral():
        return str(normalized.quantize(Decimal("1")))
    return str(normalized)
