# purchases/tests/test_receiving.py

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
)
from companies.models import Membership
from inventory.models import ItemWarehouse, StockTransaction
from inventory.services.stock_ledger import adjust_in_transit, get_balance
from purchases.models import GoodsReceiptNote
from purchases.services.exceptions import ValidationFailed
from purchases.services.receiving_service import (
    approve_grn,
    create_grn,
    reject_grn,
    submit_grn,
    update_grn_items,
)
from purchases.services.suppliers import create_supplier


class GRNLifecycleTests(TestCase):
    """
    GUARANTEES:
    - draft -> pending_approval -> approved | rejected, nothing else
    - Approval stocks normalized quantities at the line cost
    - Approval releases in_transit, floored at zero
    - Edit only while draft
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.warehouse = make_warehouse(self.company)
        self.supplier = create_supplier(company=self.company, code="SUP1", name="Acme Supplies")
        self.item = make_item(self.company, "SOAP", pack=("Carton", 12))
        self.carton = packaging(self.item, "Carton")

    def _grn(self, **line):
        item = {
            "item_id": self.item.id,
            "packaging_id": self.carton.id,
            "received_qty": "5",
            "damaged_qty": "0",
            "unit_cost": "36.00",
        }
        item.update(line)
        return create_grn(
            company=self.company,
            supplier_id=self.supplier.id,
            warehouse_id=self.warehouse.id,
            items=[item],
        )

    def test_approve_stocks_base_units_at_cost(self):
        grn = self._grn()
        self.assertTrue(grn.code.startswith("GRN-"))
        submit_grn(company=self.company, grn_id=grn.id)

        result = approve_grn(company=self.company, grn_id=grn.id)

        self.assertEqual(result["status"], GoodsReceiptNote.Status.APPROVED)
        self.assertEqual(result["lines_posted"], 1)
        self.assertEqual(result["total_cost"], "180.00")
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("60"))

        txn = StockTransaction.objects.get(pk=result["transaction_id"])
        self.assertEqual(txn.transaction_type, StockTransaction.TransactionType.IN)
        self.assertEqual(txn.reference_type, "grn")
        row = txn.items.get()
        self.assertEqual(row.normalized_qty, Decimal("60"))
        self.assertEqual(row.valuation_rate, Decimal("3.0000"))

        grn.refresh_from_db()
        self.assertIsNotNone(grn.approved_at)
        self.assertIsNotNone(grn.submitted_at)
        self.assertEqual(grn.stock_transaction_id, txn.id)

    def test_damaged_quantity_noted_on_line(self):
        grn = self._grn(damaged_qty="2")
        submit_grn(company=self.company, grn_id=grn.id)

        result = approve_grn(company=self.company, grn_id=grn.id)

        row = StockTransaction.objects.get(pk=result["transaction_id"]).items.get()
        self.assertIn("Damaged: 2", row.notes)
        self.assertEqual(row.normalized_qty, Decimal("60"))

    def test_approval_releases_in_transit(self):
        adjust_in_transit(item=self.item, warehouse=self.warehouse, delta=Decimal("100"))
        grn = self._grn()
        submit_grn(company=self.company, grn_id=grn.id)

        approve_grn(company=self.company, grn_id=grn.id)

        balance = ItemWarehouse.objects.get(item=self.item, warehouse=self.warehouse)
        self.assertEqual(balance.in_transit, Decimal("40"))

    def test_in_transit_release_floors_at_zero(self):
        grn = self._grn()
        submit_grn(company=self.company, grn_id=grn.id)

        approve_grn(company=self.company, grn_id=grn.id)

        balance = ItemWarehouse.objects.get(item=self.item, warehouse=self.warehouse)
        self.assertEqual(balance.in_transit, Decimal("0"))

    def test_draft_cannot_be_approved(self):
        grn = self._grn()

        with self.assertRaises(InvalidTransitionError) as ctx:
            approve_grn(company=self.company, grn_id=grn.id)

        self.assertIn("Required status: pending_approval", str(ctx.exception))
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("0"))

    def test_approved_grn_cannot_be_approved_again(self):
        grn = self._grn()
        submit_grn(company=self.company, grn_id=grn.id)
        approve_grn(company=self.company, grn_id=grn.id)

        with self.assertRaises(InvalidTransitionError):
            approve_grn(company=self.company, grn_id=grn.id)
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("60"))

    def test_reject_requires_reason(self):
        grn = self._grn()
        submit_grn(company=self.company, grn_id=grn.id)

        with self.assertRaises(ValidationFailed):
            reject_grn(company=self.company, grn_id=grn.id, reason="  ")

        grn = reject_grn(company=self.company, grn_id=grn.id, reason="Wrong goods")
        self.assertEqual(grn.status, GoodsReceiptNote.Status.REJECTED)
        self.assertEqual(grn.rejection_reason, "Wrong goods")

        with self.assertRaises(InvalidTransitionError):
            approve_grn(company=self.company, grn_id=grn.id)

    def test_edit_only_while_draft(self):
        grn = self._grn()
        update_grn_items(
            company=self.company,
            grn_id=grn.id,
            items=[{"item_id": self.item.id, "received_qty": "7", "unit_cost": "3.00"}],
        )
        self.assertEqual(grn.items.get().received_qty, Decimal("7"))

        submit_grn(company=self.company, grn_id=grn.id)
        with self.assertRaises(InvalidTransitionError):
            update_grn_items(
                company=self.company,
                grn_id=grn.id,
                items=[{"item_id": self.item.id, "received_qty": "1"}],
            )

    def test_damaged_above_received_rejected(self):
        with self.assertRaises(ValidationFailed):
            self._grn(received_qty="1", damaged_qty="2")


class GRNAPITests(TestCase):
    """
    GUARANTEES:
    - purchasing can create + submit, only managers approve
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.warehouse = make_warehouse(self.company)
        self.supplier = create_supplier(company=self.company, code="SUP1", name="Acme Supplies")
        self.item = make_item(self.company, "SOAP")
        self.buyer = api_client_for(make_user(self.company, role=Membership.ROLE_PURCHASING))
        self.manager = api_client_for(make_user(self.company, role=Membership.ROLE_MANAGER))

    def _submitted_grn(self):
        res = self.buyer.post(
            "/api/purchasing/grns/",
            {
                "supplier_id": str(self.supplier.id),
                "warehouse_id": str(self.warehouse.id),
                "items": [{"item_id": str(self.item.id), "received_qty": "4", "unit_cost": "2.00"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        grn_id = res.data["id"]
        res = self.buyer.post(f"/api/purchasing/grns/{grn_id}/submit/")
        self.assertEqual(res.status_code, 200, res.data)
        return grn_id

    def test_manager_approves(self):
        grn_id = self._submitted_grn()

        res = self.manager.post(f"/api/purchasing/grns/{grn_id}/approve/", {}, format="json")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], GoodsReceiptNote.Status.APPROVED)
        self.assertEqual(get_balance(item=self.item, warehouse=self.warehouse), Decimal("4"))

    def test_purchasing_role_cannot_approve(self):
        grn_id = self._submitted_grn()

        res = self.buyer.post(f"/api/purchasing/grns/{grn_id}/approve/", {}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_approve_twice_is_400(self):
        grn_id = self._submitted_grn()
        self.manager.post(f"/api/purchasing/grns/{grn_id}/approve/", {}, format="json")

        res = self.manager.post(f"/api/purchasing/grns/{grn_id}/approve/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("error", res.data)
