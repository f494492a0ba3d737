# inventory/models/__init__.py

"""
INVENTORY MODELS PACKAGE EXPORTS

Keep this file imports-only.
"""

from inventory.models.item import Item, ItemPackaging
from inventory.models.stock_adjustment import StockAdjustment, StockAdjustmentItem
from inventory.models.stock_transaction import StockTransaction, StockTransactionItem
from inventory.models.warehouse import ItemWarehouse, Warehouse

__all__ = [
    "Item",
    "ItemPackaging",
    "Warehouse",
    "ItemWarehouse",
    "StockTransaction",
    "StockTransactionItem",
    "StockAdjustment",
    "StockAdjustmentItem",
]
