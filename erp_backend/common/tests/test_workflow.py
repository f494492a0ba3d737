# common/tests/test_workflow.py

from django.test import SimpleTestCase, TestCase

from common.exceptions import InvalidTransitionError
from common.numbering import next_document_code
from common.tests.factories import make_company, make_warehouse
from common.workflow import Transition, Workflow
from inventory.models import StockAdjustment
from inventory.services.lifecycle import ADJUSTMENT_WORKFLOW


class _Doc:
    """Bare status holder; save() records the fields it was asked to write."""

    def __init__(self, status="draft", code="DOC-1"):
        self.status = status
        self.code = code
        self.saved_fields = None

    def save(self, update_fields=None):
        self.saved_fields = update_fields


def _workflow():
    return Workflow(
        document="Test doc",
        states=("draft", "sent", "paid", "cancelled"),
        transitions=[
            Transition.build("send", ["draft"], "sent"),
            Transition.build("pay", ["sent"], "paid"),
            Transition.build("cancel", ["draft", "sent"], "cancelled"),
        ],
    )


class WorkflowTests(SimpleTestCase):
    """
    GUARANTEES:
    - Transitions only from their source statuses
    - Error names the required status
    - Extra field changes are saved with the status
    """

    def test_apply_moves_status_and_saves(self):
        doc = _Doc()
        _workflow().apply(doc, "send")

        self.assertEqual(doc.status, "sent")
        self.assertEqual(doc.saved_fields, ["status"])

    def test_disallowed_transition_names_required_status(self):
        doc = _Doc(status="paid")

        with self.assertRaises(InvalidTransitionError) as ctx:
            _workflow().apply(doc, "pay")

        self.assertIn("Required status: sent", str(ctx.exception))
        self.assertEqual(ctx.exception.from_status, "paid")
        self.assertEqual(ctx.exception.to_status, "paid")
        self.assertEqual(doc.status, "paid")
        self.assertIsNone(doc.saved_fields)

    def test_multiple_sources_listed(self):
        with self.assertRaises(InvalidTransitionError) as ctx:
            _workflow().validate(_Doc(status="paid"), "cancel")
        self.assertIn("draft or sent", str(ctx.exception))

    def test_extra_changes_are_saved(self):
        doc = _Doc()
        _workflow().apply(doc, "send", code="DOC-2")

        self.assertEqual(doc.code, "DOC-2")
        self.assertEqual(doc.saved_fields, ["code", "status"])

    def test_unknown_state_in_table_rejected(self):
        with self.assertRaises(ValueError):
            Workflow(
                document="Broken",
                states=("draft",),
                transitions=[Transition.build("send", ["draft"], "sent")],
            )

    def test_allowed_actions(self):
        self.assertEqual(_workflow().allowed_actions("draft"), ["send", "cancel"])
        self.assertEqual(_workflow().allowed_actions("paid"), [])

    def test_require_status_guard(self):
        with self.assertRaises(InvalidTransitionError):
            _workflow().require_status(_Doc(status="sent"), {"draft"}, action="edited")


class ModelWorkflowTests(TestCase):
    def setUp(self):
        self.company = make_company(with_chart=False)
        self.warehouse = make_warehouse(self.company)

    def test_stamp_field_is_set(self):
        adj = StockAdjustment.objects.create(company=self.company, warehouse=self.warehouse, code="ADJ-1")

        ADJUSTMENT_WORKFLOW.apply(adj, "post")

        adj.refresh_from_db()
        self.assertEqual(adj.status, StockAdjustment.Status.POSTED)
        self.assertIsNotNone(adj.posted_at)

    def test_post_is_one_shot(self):
        adj = StockAdjustment.objects.create(company=self.company, warehouse=self.warehouse, code="ADJ-1")
        ADJUSTMENT_WORKFLOW.apply(adj, "post")

        with self.assertRaises(InvalidTransitionError):
            ADJUSTMENT_WORKFLOW.apply(adj, "post")


class DocumentNumberingTests(TestCase):
    def test_codes_increment_per_company_and_prefix(self):
        acme = make_company("acme", with_chart=False)
        other = make_company("other", with_chart=False)

        first = next_document_code(company=acme, prefix="ST")
        second = next_document_code(company=acme, prefix="ST")
        other_first = next_document_code(company=other, prefix="ST")
        grn = next_document_code(company=acme, prefix="GRN")

        self.assertTrue(first.startswith("ST-") and first.endswith("-0001"))
        self.assertTrue(second.endswith("-0002"))
        self.assertTrue(other_first.endswith("-0001"))
        self.assertTrue(grn.startswith("GRN-") and grn.endswith("-0001"))
