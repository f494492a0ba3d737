# inventory/tests/test_stock_movements.py

from decimal import Decimal

from django.test import TestCase

from common.tests.factories import (
    api_client_for,
    make_company,
    make_item,
    make_user,
    make_warehouse,
    packaging,
    stock_in,
)
from companies.models import Membership
from inventory.models import StockTransaction, StockTransactionItem
from inventory.services.exceptions import InsufficientStockError, ValidationFailed
from inventory.services.stock_ledger import get_balance
from inventory.services.stock_movements import REFERENCE_TYPE, create_stock_transaction


class StockMovementServiceTests(TestCase):
    """
    GUARANTEES:
    - in / out lines are normalized to base units before touching balances
    - a transfer moves stock out of one warehouse and into another atomically
    - the destination leg keeps the source valuation rate
    - a failed line rolls back every leg
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.main = make_warehouse(self.company, "MAIN")
        self.branch = make_warehouse(self.company, "BRANCH")
        self.soap = make_item(self.company, "SOAP", pack=("Carton", 12))
        self.carton = packaging(self.soap, "Carton")
        stock_in(self.company, self.main, self.soap, 30, unit_cost="2.00")

    def _post(self, transaction_type, items, **extra):
        return create_stock_transaction(
            company=self.company,
            warehouse_id=self.main.id,
            transaction_type=transaction_type,
            items=items,
            **extra,
        )

    def _manual(self):
        return StockTransaction.objects.filter(company=self.company, reference_type=REFERENCE_TYPE)

    # ======================================================
    # IN / OUT
    # ======================================================

    def test_in_by_carton_with_cost(self):
        result = self._post("in", [{"item_id": self.soap.id, "packaging_id": self.carton.id, "quantity": "2", "unit_cost": "36.00"}])

        self.assertEqual(get_balance(item=self.soap, warehouse=self.main), Decimal("54"))
        (leg,) = result["transactions"]
        row = StockTransactionItem.objects.get(transaction_id=leg["transaction_id"])
        self.assertEqual(row.normalized_qty, Decimal("24"))
        self.assertEqual(row.valuation_rate, Decimal("3.0000"))
        self.assertEqual(row.transaction.transaction_type, StockTransaction.TransactionType.IN)

    def test_out_decrements(self):
        self._post("out", [{"item_id": self.soap.id, "quantity": "5"}])

        self.assertEqual(get_balance(item=self.soap, warehouse=self.main), Decimal("25"))
        self.assertEqual(self._manual().get().transaction_type, StockTransaction.TransactionType.OUT)

    def test_out_beyond_stock_rolls_back(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            self._post("out", [{"item_id": self.soap.id, "packaging_id": self.carton.id, "quantity": "3"}])

        self.assertIn("Available=30, requested=36", str(ctx.exception))
        self.assertEqual(get_balance(item=self.soap, warehouse=self.main), Decimal("30"))
        self.assertFalse(self._manual().exists())

    # ======================================================
    # TRANSFER
    # ======================================================

    def test_transfer_moves_stock_between_warehouses(self):
        result = self._post(
            "transfer",
            [{"item_id": self.soap.id, "packaging_id": self.carton.id, "quantity": "1"}],
            to_warehouse_id=self.branch.id,
        )

        self.assertEqual(get_balance(item=self.soap, warehouse=self.main), Decimal("18"))
        self.assertEqual(get_balance(item=self.soap, warehouse=self.branch), Decimal("12"))

        source, destination = result["transactions"]
        self.assertEqual(source["warehouse_id"], str(self.main.id))
        self.assertEqual(destination["warehouse_id"], str(self.branch.id))

        legs = self._manual()
        self.assertEqual(legs.count(), 2)
        self.assertEqual({leg.reference_id for leg in legs}, {result["reference_id"]})
        self.assertTrue(all(leg.transaction_type == StockTransaction.TransactionType.TRANSFER for leg in legs))

        arrival = StockTransactionItem.objects.get(transaction_id=destination["transaction_id"])
        self.assertEqual(arrival.direction, StockTransactionItem.Direction.IN)
        self.assertEqual(arrival.valuation_rate, Decimal("2.0000"))
        self.assertEqual(arrival.qty_before, Decimal("0"))
        self.assertEqual(arrival.qty_after, Decimal("12"))
        self.assertEqual(arrival.transaction.reference_code, source["transaction_code"])

    def test_transfer_beyond_stock_touches_neither_warehouse(self):
        with self.assertRaises(InsufficientStockError):
            self._post("transfer", [{"item_id": self.soap.id, "quantity": "31"}], to_warehouse_id=self.branch.id)

        self.assertEqual(get_balance(item=self.soap, warehouse=self.main), Decimal("30"))
        self.assertEqual(get_balance(item=self.soap, warehouse=self.branch), Decimal("0"))
        self.assertFalse(self._manual().exists())

    def test_transfer_needs_a_different_destination(self):
        line = [{"item_id": self.soap.id, "quantity": "1"}]

        with self.assertRaises(ValidationFailed):
            self._post("transfer", line)
        with self.assertRaises(ValidationFailed):
            self._post("transfer", line, to_warehouse_id=self.main.id)
        with self.assertRaises(ValidationFailed):
            self._post("in", line, to_warehouse_id=self.branch.id)

        self.assertFalse(self._manual().exists())

    # ======================================================
    # REJECTIONS
    # ======================================================

    def test_non_stock_item_rejected(self):
        service = make_item(self.company, "DELIVERY", is_stock_item=False)

        with self.assertRaises(ValidationFailed):
            self._post("in", [{"item_id": service.id, "quantity": "1"}])

    def test_adjustment_type_not_accepted(self):
        with self.assertRaises(ValidationFailed):
            self._post("adjustment", [{"item_id": self.soap.id, "quantity": "1"}])


class StockMovementAPITests(TestCase):
    """
    GUARANTEES:
    - POST /api/inventory/stock-transactions/ posts immediately (201)
    - warehouse staff may move stock, viewers may not
    - listing shows both legs of a transfer
    """

    url = "/api/inventory/stock-transactions/"

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.main = make_warehouse(self.company, "MAIN")
        self.branch = make_warehouse(self.company, "BRANCH")
        self.soap = make_item(self.company, "SOAP")
        stock_in(self.company, self.main, self.soap, 10, unit_cost="1.00")
        self.client = api_client_for(make_user(self.company, role=Membership.ROLE_WAREHOUSE))

    def _transfer_body(self, qty="4"):
        return {
            "transaction_type": "transfer",
            "warehouse_id": str(self.main.id),
            "to_warehouse_id": str(self.branch.id),
            "items": [{"item_id": str(self.soap.id), "quantity": qty}],
        }

    def test_transfer_then_list(self):
        res = self.client.post(self.url, self._transfer_body(), format="json")

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(len(res.data["transactions"]), 2)
        self.assertEqual(get_balance(item=self.soap, warehouse=self.branch), Decimal("4"))

        listed = self.client.get(self.url, {"reference_type": REFERENCE_TYPE})
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(len(listed.data["results"]), 2)

    def test_insufficient_stock_is_400(self):
        res = self.client.post(self.url, self._transfer_body(qty="11"), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("Available=10, requested=11", res.data["error"])

    def test_empty_items_rejected(self):
        body = self._transfer_body()
        body["items"] = []

        res = self.client.post(self.url, body, format="json")

        self.assertEqual(res.status_code, 400)

    def test_viewer_cannot_post(self):
        client = api_client_for(make_user(self.company, role=Membership.ROLE_VIEWER))

        res = client.post(self.url, self._transfer_body(), format="json")

        self.assertEqual(res.status_code, 403)
        self.assertEqual(get_balance(item=self.soap, warehouse=self.main), Decimal("10"))
