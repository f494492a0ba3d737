# inventory/services/lifecycle.py

"""
STOCK ADJUSTMENT LIFECYCLE

draft -> posted (one-shot)
Edit / delete are allowed only while draft.
"""

from common.workflow import Transition, Workflow
from inventory.models.stock_adjustment import StockAdjustment

S = StockAdjustment.Status

ADJUSTMENT_WORKFLOW = Workflow(
    document="Stock adjustment",
    states=tuple(S.values),
    transitions=[
        Transition.build("post", [S.DRAFT], S.POSTED, stamp_field="posted_at"),
    ],
)

EDITABLE_STATUSES = {S.DRAFT}
