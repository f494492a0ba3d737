# purchases/services/exceptions.py

"""
PURCHASING SERVICE ERRORS
"""

from common.exceptions import (  # noqa: F401  (re-exported for callers)
    BusinessRuleError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailed,
)


class PurchaseReceivingError(BusinessRuleError):
    """GRN could not be received into stock."""
