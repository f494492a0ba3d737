# fulfillment/services/lifecycle.py

"""
STOCK REQUEST + DELIVERY NOTE LIFECYCLES

Stock request (stored status):
- submit: draft -> submitted
- cancel: draft | submitted -> cancelled
- complete: submitted -> completed (set when every line is fully received)
The richer fulfilment status (allocated, dispatched, ...) is derived, see
fulfillment.services.stock_requests.derived_status.

Delivery note:
draft -> confirmed -> picking_in_progress -> dispatch_ready -> dispatched -> received
void: any status before dispatched -> voided
"""

from common.workflow import Transition, Workflow
from fulfillment.models import DeliveryNote, StockRequest

R = StockRequest.Status
D = DeliveryNote.Status

STOCK_REQUEST_WORKFLOW = Workflow(
    document="Stock request",
    states=tuple(R.values),
    transitions=[
        Transition.build("submit", [R.DRAFT], R.SUBMITTED),
        Transition.build("cancel", [R.DRAFT, R.SUBMITTED], R.CANCELLED),
        Transition.build("complete", [R.SUBMITTED], R.COMPLETED),
    ],
)

PRE_DISPATCH_STATUSES = [D.DRAFT, D.CONFIRMED, D.PICKING_IN_PROGRESS, D.DISPATCH_READY]

DELIVERY_NOTE_WORKFLOW = Workflow(
    document="Delivery note",
    states=tuple(D.values),
    transitions=[
        Transition.build("confirm", [D.DRAFT], D.CONFIRMED, stamp_field="confirmed_at"),
        Transition.build(
            "start_picking", [D.CONFIRMED], D.PICKING_IN_PROGRESS, stamp_field="picking_started_at"
        ),
        Transition.build(
            "mark_dispatch_ready",
            [D.PICKING_IN_PROGRESS],
            D.DISPATCH_READY,
            stamp_field="picking_completed_at",
        ),
        Transition.build("dispatch", [D.DISPATCH_READY], D.DISPATCHED, stamp_field="dispatched_at"),
        Transition.build("receive", [D.DISPATCHED], D.RECEIVED, stamp_field="received_at"),
        Transition.build("void", PRE_DISPATCH_STATUSES, D.VOIDED, stamp_field="voided_at"),
    ],
)

# allocations on these notes no longer count against a request line
INACTIVE_NOTE_STATUSES = {D.VOIDED, D.RECEIVED}

PICKABLE_STATUSES = {D.PICKING_IN_PROGRESS}
