# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for sales app models.
"""

from .commission import InvoiceEmployee
from .customer import Customer
from .employee import Employee, EmployeeTerritory
from .payment import InvoicePayment
from .sales_invoice import SalesInvoice, SalesInvoiceItem
from .sales_order import SalesOrder, SalesOrderItem

__all__ = [
    "Customer",
    "Employee",
    "EmployeeTerritory",
    "SalesOrder",
    "SalesOrderItem",
    "SalesInvoice",
    "SalesInvoiceItem",
    "InvoiceEmployee",
    "InvoicePayment",
]
