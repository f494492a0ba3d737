# fulfillment/tests/test_delivery_notes.py

from decimal import Decimal

from django.test import TestCase

from common.exceptions import InvalidTransitionError, OverAllocationError
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
from fulfillment.models import DeliveryNote, StockRequest
from fulfillment.services.delivery_notes import (
    confirm_delivery_note,
    create_delivery_note,
    dispatch_delivery_note,
    mark_dispatch_ready,
    receive_delivery_note,
    record_picks,
    start_picking,
    void_delivery_note,
)
from fulfillment.services.exceptions import InsufficientStockError, ValidationFailed
from fulfillment.services.stock_requests import (
    DERIVED_ALLOCATED,
    DERIVED_DISPATCHED,
    DERIVED_FULFILLED,
    DERIVED_PARTIALLY_ALLOCATED,
    DERIVED_PARTIALLY_FULFILLED,
    DERIVED_SUBMITTED,
    create_stock_request,
    derived_status,
    submit_stock_request,
)
from inventory.models import ItemWarehouse, StockTransaction
from inventory.services.stock_ledger import get_balance


class _FulfillmentFixture(TestCase):
    def setUp(self):
        self.company = make_company(with_chart=False)
        self.hub = make_warehouse(self.company, "HUB")
        self.store = make_warehouse(self.company, "STORE")
        self.item = make_item(self.company, "SOAP", pack=("Carton", 12))
        self.carton = packaging(self.item, "Carton")
        stock_in(self.company, self.hub, self.item, 120, unit_cost="2.00")

        self.request = create_stock_request(
            company=self.company,
            requesting_warehouse_id=self.store.id,
            fulfilling_warehouse_id=self.hub.id,
            items=[{"item_id": self.item.id, "packaging_id": self.carton.id, "requested_qty": "4"}],
        )
        submit_stock_request(company=self.company, request_id=self.request.id)
        self.request_item = self.request.items.get()

    def _note(self, qty="4"):
        return create_delivery_note(
            company=self.company,
            lines=[{"stock_request_item_id": self.request_item.id, "allocated_qty": qty}],
        )

    def _dispatched(self, qty="4", picked=None):
        note = self._note(qty)
        line = note.items.get()
        confirm_delivery_note(company=self.company, note_id=note.id)
        start_picking(company=self.company, note_id=note.id)
        record_picks(company=self.company, note_id=note.id, picks=[{"id": line.id, "picked_qty": picked or qty}])
        mark_dispatch_ready(company=self.company, note_id=note.id)
        dispatch_delivery_note(company=self.company, note_id=note.id)
        return note, line

    def _in_transit(self, warehouse):
        return ItemWarehouse.objects.get(item=self.item, warehouse=warehouse).in_transit


class AllocationTests(_FulfillmentFixture):
    """
    GUARANTEES:
    - allocated <= requested - received - allocated on other active notes
    - voided notes free their allocation
    """

    def test_over_allocation_rejected(self):
        self._note("3")

        with self.assertRaises(OverAllocationError) as ctx:
            self._note("2")

        self.assertIn("exceeds available quantity (1)", str(ctx.exception))
        self.assertEqual(DeliveryNote.objects.count(), 1)

    def test_two_lines_on_one_note_count_together(self):
        with self.assertRaises(OverAllocationError):
            create_delivery_note(
                company=self.company,
                lines=[
                    {"stock_request_item_id": self.request_item.id, "allocated_qty": "3"},
                    {"stock_request_item_id": self.request_item.id, "allocated_qty": "2"},
                ],
            )

    def test_void_frees_allocation(self):
        first = self._note("4")
        void_delivery_note(company=self.company, note_id=first.id, reason="truck broke down")

        second = self._note("4")

        self.assertEqual(second.items.get().allocated_qty, Decimal("4"))

    def test_draft_request_not_allocatable(self):
        draft = create_stock_request(
            company=self.company,
            requesting_warehouse_id=self.store.id,
            fulfilling_warehouse_id=self.hub.id,
            items=[{"item_id": self.item.id, "requested_qty": "1"}],
        )

        with self.assertRaises(ValidationFailed):
            create_delivery_note(
                company=self.company,
                lines=[{"stock_request_item_id": draft.items.get().id, "allocated_qty": "1"}],
            )

    def test_same_warehouse_request_rejected(self):
        with self.assertRaises(ValidationFailed):
            create_stock_request(
                company=self.company,
                requesting_warehouse_id=self.hub.id,
                fulfilling_warehouse_id=self.hub.id,
                items=[{"item_id": self.item.id, "requested_qty": "1"}],
            )

    def test_derived_status_follows_allocation(self):
        self.assertEqual(derived_status(self.request), DERIVED_SUBMITTED)
        self._note("1")
        self.assertEqual(derived_status(self.request), DERIVED_PARTIALLY_ALLOCATED)
        self._note("3")
        self.assertEqual(derived_status(self.request), DERIVED_ALLOCATED)


class DispatchReceiveTests(_FulfillmentFixture):
    """
    GUARANTEES:
    - dispatch: stock OUT at the fulfilling warehouse, in_transit up at the requester
    - receive: stock IN at the requester, in_transit released (floored at zero)
    - fully received requests complete
    - void only before dispatch
    """

    def test_full_flow(self):
        note, line = self._dispatched()

        self.assertEqual(get_balance(item=self.item, warehouse=self.hub), Decimal("72"))
        self.assertEqual(self._in_transit(self.store), Decimal("48"))
        self.assertEqual(derived_status(self.request), DERIVED_DISPATCHED)

        result = receive_delivery_note(company=self.company, note_id=note.id)

        self.assertEqual(result["status"], DeliveryNote.Status.RECEIVED)
        self.assertEqual(result["completed_stock_requests"], [self.request.code])
        self.assertEqual(get_balance(item=self.item, warehouse=self.store), Decimal("48"))
        self.assertEqual(self._in_transit(self.store), Decimal("0"))

        txn = StockTransaction.objects.get(pk=result["transaction_id"])
        self.assertEqual(txn.transaction_type, StockTransaction.TransactionType.TRANSFER)
        self.assertEqual(txn.reference_type, "delivery_note")

        self.request.refresh_from_db()
        self.assertEqual(self.request.status, StockRequest.Status.COMPLETED)
        self.assertEqual(derived_status(self.request), DERIVED_FULFILLED)

    def test_short_pick_dispatches_picked_only(self):
        note, line = self._dispatched(qty="4", picked="3")

        line.refresh_from_db()
        self.assertEqual(line.short_qty, Decimal("1"))
        self.assertEqual(line.dispatched_qty, Decimal("3"))
        self.assertEqual(get_balance(item=self.item, warehouse=self.hub), Decimal("84"))

    def test_partial_receipt_releases_whole_dispatch(self):
        note, line = self._dispatched()

        result = receive_delivery_note(
            company=self.company,
            note_id=note.id,
            quantities=[{"id": line.id, "received_qty": "1"}],
        )

        self.assertEqual(result["completed_stock_requests"], [])
        self.assertEqual(get_balance(item=self.item, warehouse=self.store), Decimal("12"))
        self.assertEqual(self._in_transit(self.store), Decimal("0"))
        self.assertEqual(derived_status(self.request), DERIVED_PARTIALLY_FULFILLED)
        self.request_item.refresh_from_db()
        self.assertEqual(self.request_item.received_qty, Decimal("1"))

    def test_receive_more_than_dispatched_rejected(self):
        note, line = self._dispatched()

        with self.assertRaises(ValidationFailed):
            receive_delivery_note(
                company=self.company,
                note_id=note.id,
                quantities=[{"id": line.id, "received_qty": "5"}],
            )

        self.assertEqual(get_balance(item=self.item, warehouse=self.store), Decimal("0"))
        note.refresh_from_db()
        self.assertEqual(note.status, DeliveryNote.Status.DISPATCHED)

    def test_dispatch_without_stock_rolls_back(self):
        ItemWarehouse.objects.filter(item=self.item, warehouse=self.hub).update(current_stock=Decimal("10"))
        note = self._note("4")
        line = note.items.get()
        confirm_delivery_note(company=self.company, note_id=note.id)
        start_picking(company=self.company, note_id=note.id)
        record_picks(company=self.company, note_id=note.id, picks=[{"id": line.id, "picked_qty": "4"}])
        mark_dispatch_ready(company=self.company, note_id=note.id)

        with self.assertRaises(InsufficientStockError):
            dispatch_delivery_note(company=self.company, note_id=note.id)

        note.refresh_from_db()
        self.assertEqual(note.status, DeliveryNote.Status.DISPATCH_READY)
        self.assertFalse(ItemWarehouse.objects.filter(warehouse=self.store, in_transit__gt=0).exists())

    def test_void_after_dispatch_rejected(self):
        note, _ = self._dispatched()

        with self.assertRaises(InvalidTransitionError):
            void_delivery_note(company=self.company, note_id=note.id)

    def test_steps_must_follow_order(self):
        note = self._note("1")

        with self.assertRaises(InvalidTransitionError):
            dispatch_delivery_note(company=self.company, note_id=note.id)
        with self.assertRaises(InvalidTransitionError):
            record_picks(company=self.company, note_id=note.id, picks=[{"id": note.items.get().id, "picked_qty": "1"}])


class DeliveryNoteAPITests(_FulfillmentFixture):
    def test_receive_endpoint(self):
        note, line = self._dispatched()
        client = api_client_for(make_user(self.company, role=Membership.ROLE_WAREHOUSE))

        res = client.post(
            f"/api/fulfillment/delivery-notes/{note.id}/receive/",
            {"items": [{"id": str(line.id), "received_qty": "4"}]},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], DeliveryNote.Status.RECEIVED)
        self.assertEqual(get_balance(item=self.item, warehouse=self.store), Decimal("48"))

    def test_viewer_cannot_receive(self):
        note, _ = self._dispatched()
        client = api_client_for(make_user(self.company, role=Membership.ROLE_VIEWER))

        res = client.post(f"/api/fulfillment/delivery-notes/{note.id}/receive/", {}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_receive_twice_is_400(self):
        note, _ = self._dispatched()
        client = api_client_for(make_user(self.company, role=Membership.ROLE_WAREHOUSE))
        client.post(f"/api/fulfillment/delivery-notes/{note.id}/receive/", {}, format="json")

        res = client.post(f"/api/fulfillment/delivery-notes/{note.id}/receive/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("Required status: dispatched", res.data["error"])
