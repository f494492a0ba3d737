# purchases/services/lifecycle.py

"""
GRN LIFECYCLE

draft -> pending_approval -> approved | rejected
Lines are editable only while draft.
"""

from common.workflow import Transition, Workflow
from purchases.models import GoodsReceiptNote

S = GoodsReceiptNote.Status

GRN_WORKFLOW = Workflow(
    document="GRN",
    states=tuple(S.values),
    transitions=[
        Transition.build("submit", [S.DRAFT], S.PENDING_APPROVAL, stamp_field="submitted_at"),
        Transition.build("approve", [S.PENDING_APPROVAL], S.APPROVED, stamp_field="approved_at"),
        Transition.build("reject", [S.PENDING_APPROVAL], S.REJECTED, stamp_field="rejected_at"),
    ],
)

EDITABLE_STATUSES = {S.DRAFT}
