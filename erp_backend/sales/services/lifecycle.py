# sales/services/lifecycle.py

"""
SALES DOCUMENT LIFECYCLES

Invoice:
- post:         draft -> sent        (stock out + downstream postings)
- mark_overdue: sent -> overdue
- mark_paid:    sent | overdue -> paid
- cancel:       draft -> cancelled   (nothing posted yet)

Sales order:
- confirm:            draft -> confirmed
- start_processing:   confirmed -> processing
- convert_to_invoice: confirmed | processing -> invoiced
- cancel:             draft | confirmed -> cancelled

Side effects live in the services, not here.
"""

from common.workflow import Transition, Workflow
from sales.models import SalesInvoice, SalesOrder

I = SalesInvoice.Status
O = SalesOrder.Status

INVOICE_WORKFLOW = Workflow(
    document="Invoice",
    states=tuple(I.values),
    transitions=[
        Transition.build("post", [I.DRAFT], I.SENT, stamp_field="posted_at"),
        Transition.build("mark_overdue", [I.SENT], I.OVERDUE),
        Transition.build("mark_paid", [I.SENT, I.OVERDUE], I.PAID),
        Transition.build("cancel", [I.DRAFT], I.CANCELLED),
    ],
)

ORDER_WORKFLOW = Workflow(
    document="Sales order",
    states=tuple(O.values),
    transitions=[
        Transition.build("confirm", [O.DRAFT], O.CONFIRMED),
        Transition.build("start_processing", [O.CONFIRMED], O.PROCESSING),
        Transition.build(
            "convert_to_invoice",
            [O.CONFIRMED, O.PROCESSING],
            O.INVOICED,
            stamp_field="converted_at",
        ),
        Transition.build("cancel", [O.DRAFT, O.CONFIRMED], O.CANCELLED),
    ],
)

INVOICE_EDITABLE_STATUSES = {I.DRAFT}
ORDER_EDITABLE_STATUSES = {O.DRAFT}
