# inventory/tests/test_adjustments.py

from decimal import Decimal

from django.test import TestCase

from common.exceptions import InvalidTransitionError
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
from inventory.models import StockAdjustment, StockTransaction
from inventory.services.adjustments import (
    create_stock_adjustment,
    delete_stock_adjustment,
    post_stock_adjustment,
    update_stock_adjustment,
)
from inventory.services.exceptions import InsufficientStockError, ValidationFailed
from inventory.services.stock_ledger import get_balance


class StockAdjustmentServiceTests(TestCase):
    """
    GUARANTEES:
    - Positive differences go in, negative go out, zero lines are skipped
    - All-zero adjustment cannot be posted
    - Insufficient stock rolls the whole posting back
    - Edit / delete only while draft; post is one-shot
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.warehouse = make_warehouse(self.company)
        self.soap = make_item(self.company, "SOAP", pack=("Carton", 12))
        self.brush = make_item(self.company, "BRUSH")
        self.comb = make_item(self.company, "COMB")
        stock_in(self.company, self.warehouse, self.brush, 10)

    def _create(self, items):
        return create_stock_adjustment(
            company=self.company,
            warehouse_id=self.warehouse.id,
            items=items,
        )

    def test_post_mixed_directions(self):
        adj = self._create([
            {"item_id": self.soap.id, "packaging_id": packaging(self.soap, "Carton").id, "difference": "2", "unit_cost": "24.00"},
            {"item_id": self.brush.id, "current_qty": "10", "adjusted_qty": "7"},
            {"item_id": self.comb.id, "current_qty": "0", "adjusted_qty": "0"},
        ])
        self.assertTrue(adj.code.startswith("ADJ-"))

        result = post_stock_adjustment(company=self.company, adjustment_id=adj.id)

        self.assertEqual(result["status"], StockAdjustment.Status.POSTED)
        self.assertEqual(result["lines_posted"], 2)
        self.assertEqual(result["lines_skipped"], 1)
        # net +24 -3 => inbound header
        self.assertEqual(result["transaction_type"], StockTransaction.TransactionType.IN)

        self.assertEqual(get_balance(item=self.soap, warehouse=self.warehouse), Decimal("24"))
        self.assertEqual(get_balance(item=self.brush, warehouse=self.warehouse), Decimal("7"))

        adj.refresh_from_db()
        self.assertIsNotNone(adj.posted_at)
        self.assertEqual(str(adj.stock_transaction_id), result["transaction_id"])

        txn = StockTransaction.objects.get(pk=result["transaction_id"])
        self.assertEqual(txn.reference_type, "stock_adjustment")
        self.assertEqual(txn.reference_code, adj.code)
        soap_row = txn.items.get(item=self.soap)
        # carton cost spread over base units
        self.assertEqual(soap_row.valuation_rate, Decimal("2.0000"))

    def test_net_negative_is_outbound(self):
        adj = self._create([{"item_id": self.brush.id, "difference": "-4"}])

        result = post_stock_adjustment(company=self.company, adjustment_id=adj.id)

        self.assertEqual(result["transaction_type"], StockTransaction.TransactionType.OUT)
        self.assertEqual(get_balance(item=self.brush, warehouse=self.warehouse), Decimal("6"))

    def test_all_zero_adjustment_rejected(self):
        adj = self._create([{"item_id": self.brush.id, "current_qty": "10", "adjusted_qty": "10"}])

        with self.assertRaises(ValidationFailed):
            post_stock_adjustment(company=self.company, adjustment_id=adj.id)

        adj.refresh_from_db()
        self.assertEqual(adj.status, StockAdjustment.Status.DRAFT)

    def test_insufficient_stock_rolls_back(self):
        adj = self._create([
            {"item_id": self.comb.id, "difference": "5"},
            {"item_id": self.brush.id, "difference": "-11"},
        ])
        txn_count = StockTransaction.objects.count()

        with self.assertRaises(InsufficientStockError):
            post_stock_adjustment(company=self.company, adjustment_id=adj.id)

        adj.refresh_from_db()
        self.assertEqual(adj.status, StockAdjustment.Status.DRAFT)
        self.assertEqual(StockTransaction.objects.count(), txn_count)
        self.assertEqual(get_balance(item=self.comb, warehouse=self.warehouse), Decimal("0"))
        self.assertEqual(get_balance(item=self.brush, warehouse=self.warehouse), Decimal("10"))

    def test_post_is_one_shot(self):
        adj = self._create([{"item_id": self.comb.id, "difference": "1"}])
        post_stock_adjustment(company=self.company, adjustment_id=adj.id)

        with self.assertRaises(InvalidTransitionError):
            post_stock_adjustment(company=self.company, adjustment_id=adj.id)

    def test_edit_replaces_items_while_draft(self):
        adj = self._create([{"item_id": self.comb.id, "difference": "1"}])

        update_stock_adjustment(
            company=self.company,
            adjustment_id=adj.id,
            notes="recount",
            items=[{"item_id": self.brush.id, "difference": "2"}, {"item_id": self.comb.id, "difference": "3"}],
        )

        adj.refresh_from_db()
        self.assertEqual(adj.notes, "recount")
        self.assertEqual(adj.items.count(), 2)

    def test_edit_and_delete_rejected_after_post(self):
        adj = self._create([{"item_id": self.comb.id, "difference": "1"}])
        post_stock_adjustment(company=self.company, adjustment_id=adj.id)

        with self.assertRaises(InvalidTransitionError):
            update_stock_adjustment(company=self.company, adjustment_id=adj.id, notes="late")
        with self.assertRaises(InvalidTransitionError):
            delete_stock_adjustment(company=self.company, adjustment_id=adj.id)

    def test_delete_draft_hides_it(self):
        adj = self._create([{"item_id": self.comb.id, "difference": "1"}])

        delete_stock_adjustment(company=self.company, adjustment_id=adj.id)

        self.assertFalse(StockAdjustment.objects.alive().filter(pk=adj.pk).exists())

    def test_unknown_item_rejected(self):
        other = make_item(make_company("other", with_chart=False), "ALIEN")

        with self.assertRaises(ValidationFailed):
            self._create([{"item_id": other.id, "difference": "1"}])


class StockAdjustmentAPITests(TestCase):
    """
    GUARANTEES:
    - Create / post through the API with capability checks
    - Domain errors surface as {"error": "..."}
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.warehouse = make_warehouse(self.company)
        self.item = make_item(self.company, "SOAP", pack=("Carton", 12))
        self.client = api_client_for(make_user(self.company, role=Membership.ROLE_MANAGER))

    def _create(self, client=None):
        return (client or self.client).post(
            "/api/inventory/stock-adjustments/",
            {
                "warehouse_id": str(self.warehouse.id),
                "reason": StockAdjustment.Reason.PHYSICAL_COUNT,
                "items": [
                    {
                        "item_id": str(self.item.id),
                        "packaging_id": str(packaging(self.item, "Carton").id),
                        "current_qty": "0",
                        "adjusted_qty": "1",
                    }
                ],
            },
            format="json",
        )

    def test_create_then_post(self):
        res = self._create()
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["status"], StockAdjustment.Status.DRAFT)

        res = self.client.post(f"/api/inventory/stock-adjustments/{res.data['id']}/post/")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], StockAdjustment.Status.POSTED)
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("12"))

    def test_second_post_returns_error_body(self):
        adj_id = self._create().data["id"]
        self.client.post(f"/api/inventory/stock-adjustments/{adj_id}/post/")

        res = self.client.post(f"/api/inventory/stock-adjustments/{adj_id}/post/")

        self.assertEqual(res.status_code, 400)
        self.assertIn("error", res.data)

    def test_warehouse_role_cannot_post(self):
        clerk = api_client_for(make_user(self.company, role=Membership.ROLE_WAREHOUSE))
        adj_id = self._create(clerk).data["id"]

        res = clerk.post(f"/api/inventory/stock-adjustments/{adj_id}/post/")

        self.assertEqual(res.status_code, 403)

    def test_viewer_cannot_create(self):
        viewer = api_client_for(make_user(self.company, role=Membership.ROLE_VIEWER))

        res = self._create(viewer)

        self.assertEqual(res.status_code, 403)

    def test_unknown_adjustment_is_404(self):
        res = self.client.post(
            "/api/inventory/stock-adjustments/00000000-0000-0000-0000-000000000000/post/"
        )
        self.assertEqual(res.status_code, 404)
