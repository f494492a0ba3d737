# inventory/services/exceptions.py

"""
INVENTORY SERVICE ERRORS
"""

from common.exceptions import (  # noqa: F401  (re-exported for callers)
    BusinessRuleError,
    InsufficientStockError,
    NotFoundError,
    ValidationFailed,
)


class InventoryError(BusinessRuleError):
    """Base exception for inventory rule violations."""


class NormalizationError(ValidationFailed):
    """Quantity/packaging could not be converted to base units."""


class StockPostingError(InventoryError):
    """A stock transaction could not be posted."""
