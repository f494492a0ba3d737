# common/tests/factories.py

"""
Shared fixtures for the app test suites.

Each helper creates the smallest valid object graph: one company with the
default chart, warehouses, items with a base packaging (+ optional
alternate packaging), and opening stock posted through the real ledger.
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounting.services.account_resolver import seed_default_accounts
from companies.models import Company, Membership
from inventory.models import Item, ItemPackaging, StockTransaction, Warehouse
from inventory.services.normalization import normalize_line
from inventory.services.stock_ledger import IN, StockLine, post_stock_transaction
from sales.models import Customer, Employee

User = get_user_model()


def make_company(code="acme", *, with_chart=True) -> Company:
    company = Company.objects.create(code=code, name=code.upper())
    if with_chart:
        seed_default_accounts(company=company)
    return company


def make_user(company, *, role=Membership.ROLE_ADMIN, username=None):
    username = username or f"{role}@{company.code}"
    user = User.objects.create_user(username=username, password="pass")
    Membership.objects.create(user=user, company=company, role=role)
    return user


def api_client_for(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def make_warehouse(company, code="MAIN") -> Warehouse:
    return Warehouse.objects.create(company=company, code=code, name=f"{code} warehouse")


def make_item(company, code="WIDGET", *, purchase_price="2.50", sales_price="10.00", pack=None, is_stock_item=True) -> Item:
    """pack=("Carton", 12) adds an alternate packaging next to the base one."""
    item = Item.objects.create(
        company=company,
        code=code,
        name=code.title(),
        uom="piece",
        purchase_price=Decimal(purchase_price),
        sales_price=Decimal(sales_price),
        is_stock_item=is_stock_item,
    )
    ItemPackaging.objects.create(item=item, name="Piece", qty_per_pack=Decimal("1"), is_base=True)
    if pack is not None:
        name, qty = pack
        ItemPackaging.objects.create(item=item, name=name, qty_per_pack=Decimal(str(qty)))
    return item


def packaging(item, name) -> ItemPackaging:
    return ItemPackaging.objects.get(item=item, name=name)


def stock_in(company, warehouse, item, qty, *, unit_cost=None):
    """Opening stock in base units."""
    line = StockLine(
        normalized=normalize_line(company=company, item=item, input_qty=qty),
        direction=IN,
        unit_cost=Decimal(str(unit_cost)) if unit_cost is not None else None,
    )
    return post_stock_transaction(
        company=company,
        warehouse=warehouse,
        transaction_type=StockTransaction.TransactionType.IN,
        reference_type="opening_stock",
        reference_id=item.id,
        lines=[line],
    )


def make_customer(company, code="CUST1", *, city="", state="") -> Customer:
    return Customer.objects.create(
        company=company,
        code=code,
        name=f"Customer {code}",
        billing_city=city,
        billing_state=state,
    )


def make_employee(company, code="EMP1", *, rate="5.00", role=Employee.ROLE_SALES_AGENT) -> Employee:
    return Employee.objects.create(
        company=company,
        code=code,
        name=f"Employee {code}",
        role=role,
        commission_rate=Decimal(rate),
    )
