# fulfillment/services/exceptions.py

"""
FULFILLMENT SERVICE ERRORS
"""

from common.exceptions import (  # noqa: F401  (re-exported for callers)
    BusinessRuleError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    OverAllocationError,
    ValidationFailed,
)


class FulfillmentError(BusinessRuleError):
    """Base exception for stock request / delivery note rule violations."""
