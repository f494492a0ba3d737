# sales/services/commission_service.py

"""
======================================================
PATH: sales/services/commission_service.py
======================================================
SALES COMMISSION SERVICE

commission = invoice total × split% × employee commission_rate%

An existing split (assign_commission_split) survives posting: amounts are
recomputed over it. Otherwise, employee resolution:
1) explicit employee argument
2) invoice.primary_employee
3) auto-assign from the customer's location:
   - territory matching billing_city (primary territories first)
   - else territory matching billing_state (primary territories first)
   - else the earliest-created active sales agent

Runs as a downstream posting (see accounting.services.downstream): failures
raise CommissionError and never undo the invoice post.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from accounting.models.posting_failure import PostingFailure
from accounting.services.downstream import PostingOutcome
from sales.models import Employee, EmployeeTerritory, InvoiceEmployee, SalesInvoice
from sales.services.exceptions import CommissionError, NotFoundError, ValidationFailed

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def _money(v) -> Decimal:
    return Decimal(str(v or 0)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def commission_amount(*, total, rate, split_percentage=HUNDRED) -> Decimal:
    return _money(Decimal(str(total)) * Decimal(str(split_percentage)) / HUNDRED * Decimal(str(rate)) / HUNDRED)


def _active_employees(company):
    return Employee.objects.alive().filter(company=company, is_active=True)


def _territory_match(*, company, **lookup) -> Employee | None:
    territory = (
        EmployeeTerritory.objects.select_related("employee")
        .filter(
            company=company,
            employee__is_active=True,
            employee__deleted_at__isnull=True,
            **lookup,
        )
        .order_by("-is_primary", "created_at")
        .first()
    )
    return territory.employee if territory else None


def find_employee_for_customer(*, company, customer) -> Employee | None:
    city = (getattr(customer, "billing_city", "") or "").strip()
    state = (getattr(customer, "billing_state", "") or "").strip()

    if city:
        employee = _territory_match(company=company, city__iexact=city)
        if employee is not None:
            return employee

    if state:
        employee = _territory_match(company=company, region_state__iexact=state)
        if employee is not None:
            return employee

    return (
        _active_employees(company)
        .filter(role=Employee.ROLE_SALES_AGENT)
        .order_by("created_at")
        .first()
    )


def _resolve_employee(*, invoice: SalesInvoice, employee=None) -> Employee:
    if employee is not None:
        if not isinstance(employee, Employee):
            employee = _active_employees(invoice.company_id).filter(id=employee).first()
        if employee is None or employee.company_id != invoice.company_id:
            raise CommissionError("Employee not found")
        return employee

    if invoice.primary_employee_id:
        employee = _active_employees(invoice.company_id).filter(id=invoice.primary_employee_id).first()
        if employee is None:
            raise CommissionError("Primary employee is inactive or missing")
        return employee

    employee = find_employee_for_customer(company=invoice.company_id, customer=invoice.customer)
    if employee is None:
        raise CommissionError("No employee assigned and auto-assignment failed")

    logger.info("Auto-assigned employee %s to invoice %s", employee.code, invoice.code)
    return employee


def _write_splits(*, invoice: SalesInvoice, splits: list[tuple[Employee, Decimal]]) -> Decimal:
    invoice.commission_splits.all().delete()

    total = Decimal("0.00")
    rows = []
    for idx, (employee, pct) in enumerate(splits):
        amount = commission_amount(
            total=invoice.total_amount,
            rate=employee.commission_rate,
            split_percentage=pct,
        )
        total += amount
        rows.append(
            InvoiceEmployee(
                invoice=invoice,
                employee=employee,
                split_percentage=pct,
                commission_rate=employee.commission_rate,
                commission_amount=amount,
                is_primary=(idx == 0),
            )
        )
    InvoiceEmployee.objects.bulk_create(rows)

    invoice.primary_employee = splits[0][0]
    invoice.commission_total = _money(total)
    invoice.commission_split_count = len(rows)
    invoice.save(update_fields=["primary_employee", "commission_total", "commission_split_count", "updated_at"])
    return invoice.commission_total


@transaction.atomic
def calculate_invoice_commission(*, invoice: SalesInvoice, employee=None) -> PostingOutcome:
    """
    With an explicit employee: one 100% row replaces any split.
    Without one: an existing split is kept and its amounts recomputed
    against the current total; otherwise the employee is resolved and
    gets a 100% row.
    """
    existing = [] if employee is not None else [
        (row.employee, row.split_percentage)
        for row in invoice.commission_splits.select_related("employee")
    ]
    if existing:
        target = existing[0][0]
        total = _write_splits(invoice=invoice, splits=existing)
    else:
        target = _resolve_employee(invoice=invoice, employee=employee)
        total = _write_splits(invoice=invoice, splits=[(target, HUNDRED)])

    logger.info(
        "Commission %s for invoice %s assigned to %s", total, invoice.code, target.code
    )
    return PostingOutcome(
        kind=PostingFailure.KIND_COMMISSION,
        success=True,
        amount=total,
        extra={"employee_id": str(target.id)},
    )


@transaction.atomic
def assign_commission_split(*, company, invoice_id, splits: list[dict]) -> SalesInvoice:
    """
    splits: [{"employee_id": ..., "split_percentage": ...}, ...]
    The first entry becomes the primary employee.
    """
    invoice = (
        SalesInvoice.objects.select_for_update()
        .alive()
        .filter(company=company, id=invoice_id)
        .first()
    )
    if invoice is None:
        raise NotFoundError("Invoice not found")

    if not splits:
        raise ValidationFailed("At least one commission split is required")

    resolved: list[tuple[Employee, Decimal]] = []
    seen = set()
    for raw in splits:
        employee = _active_employees(company).filter(id=raw.get("employee_id")).first()
        if employee is None:
            raise ValidationFailed(f"Employee {raw.get('employee_id')} not found")
        if employee.id in seen:
            raise ValidationFailed(f"Employee {employee.code} appears more than once")
        seen.add(employee.id)

        pct = _money(raw.get("split_percentage"))
        if pct <= 0:
            raise ValidationFailed("split_percentage must be greater than zero")
        resolved.append((employee, pct))

    total_pct = sum((pct for _, pct in resolved), Decimal("0"))
    if total_pct != HUNDRED:
        raise ValidationFailed(f"Commission split percentages must sum to 100 (got {total_pct})")

    _write_splits(invoice=invoice, splits=resolved)
    return invoice


def retry_invoice_commission(*, company, document_id) -> PostingOutcome:
    invoice = SalesInvoice.objects.alive().filter(company=company, id=document_id).first()
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return calculate_invoice_commission(invoice=invoice)
