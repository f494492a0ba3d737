# sales/services/exceptions.py

"""
SALES SERVICE ERRORS
"""

from common.exceptions import (  # noqa: F401  (re-exported for callers)
    BusinessRuleError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailed,
)


class SalesError(BusinessRuleError):
    """Base exception for sales rule violations."""


class AlreadyConvertedError(SalesError):
    """Sales order already has an invoice."""


class CommissionError(SalesError):
    """Commission could not be calculated or assigned."""
