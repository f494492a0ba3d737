# sales/tests/test_commission.py

from decimal import Decimal

from django.test import TestCase

from common.tests.factories import (
    make_company,
    make_customer,
    make_employee,
    make_item,
    make_warehouse,
    stock_in,
)
from sales.models import Employee, EmployeeTerritory
from sales.services.commission_service import (
    assign_commission_split,
    calculate_invoice_commission,
    commission_amount,
    find_employee_for_customer,
)
from sales.services.documents import create_sales_invoice
from sales.services.exceptions import CommissionError, ValidationFailed
from sales.services.invoice_posting import post_invoice


class CommissionAmountTests(TestCase):
    def test_total_times_split_times_rate(self):
        self.assertEqual(commission_amount(total="1000", rate="5"), Decimal("50.00"))
        self.assertEqual(
            commission_amount(total="1000", rate="5", split_percentage="40"), Decimal("20.00")
        )
        self.assertEqual(
            commission_amount(total="333.33", rate="2.5", split_percentage="33.33"), Decimal("2.78")
        )


class EmployeeResolutionTests(TestCase):
    """
    GUARANTEES:
    - city territory beats state territory beats the first sales agent
    - primary territories win ties
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.first_agent = make_employee(self.company, "AGENT1")
        self.city_rep = make_employee(self.company, "CITY")
        self.state_rep = make_employee(self.company, "STATE")
        EmployeeTerritory.objects.create(
            company=self.company, employee=self.city_rep, city="Lagos", region_state="Lagos State"
        )
        EmployeeTerritory.objects.create(
            company=self.company, employee=self.state_rep, region_state="Oyo"
        )

    def test_city_match(self):
        customer = make_customer(self.company, city="lagos", state="Oyo")
        self.assertEqual(find_employee_for_customer(company=self.company, customer=customer), self.city_rep)

    def test_state_match_when_city_unknown(self):
        customer = make_customer(self.company, city="Ibadan", state="OYO")
        self.assertEqual(find_employee_for_customer(company=self.company, customer=customer), self.state_rep)

    def test_falls_back_to_first_sales_agent(self):
        customer = make_customer(self.company, city="Abuja", state="FCT")
        self.assertEqual(find_employee_for_customer(company=self.company, customer=customer), self.first_agent)

    def test_primary_territory_wins(self):
        primary = make_employee(self.company, "PRIMARY")
        EmployeeTerritory.objects.create(
            company=self.company, employee=primary, region_state="Oyo", is_primary=True
        )
        customer = make_customer(self.company, state="Oyo")
        self.assertEqual(find_employee_for_customer(company=self.company, customer=customer), primary)

    def test_inactive_employees_ignored(self):
        Employee.objects.filter(pk=self.city_rep.pk).update(is_active=False)
        customer = make_customer(self.company, city="Lagos", state="Oyo")
        self.assertEqual(find_employee_for_customer(company=self.company, customer=customer), self.state_rep)

    def test_non_agents_are_not_fallbacks(self):
        Employee.objects.filter(company=self.company).update(role=Employee.ROLE_OTHER)
        customer = make_customer(self.company)
        self.assertIsNone(find_employee_for_customer(company=self.company, customer=customer))


class InvoiceCommissionTests(TestCase):
    """
    GUARANTEES:
    - single-employee commission writes one 100% split
    - posting keeps an assigned split and recomputes its amounts
    - splits must reference distinct employees and sum to 100
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.customer = make_customer(self.company)
        self.item = make_item(self.company, "SOAP")
        self.alice = make_employee(self.company, "ALICE", rate="10.00")
        self.bob = make_employee(self.company, "BOB", rate="4.00")
        self.invoice = create_sales_invoice(
            company=self.company,
            customer_id=self.customer.id,
            items=[{"item_id": self.item.id, "quantity": "10", "unit_price": "50.00"}],
        )

    def test_single_employee_commission(self):
        outcome = calculate_invoice_commission(invoice=self.invoice, employee=self.bob)

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.amount, Decimal("20.00"))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.primary_employee_id, self.bob.id)
        self.assertEqual(self.invoice.commission_split_count, 1)
        split = self.invoice.commission_splits.get()
        self.assertEqual(split.split_percentage, Decimal("100.00"))
        self.assertTrue(split.is_primary)

    def test_auto_assigned_when_no_employee(self):
        outcome = calculate_invoice_commission(invoice=self.invoice)

        # earliest-created sales agent
        self.assertEqual(outcome.extra["employee_id"], str(self.alice.id))
        self.assertEqual(outcome.amount, Decimal("50.00"))

    def test_no_candidate_raises(self):
        Employee.objects.filter(company=self.company).update(is_active=False)

        with self.assertRaises(CommissionError):
            calculate_invoice_commission(invoice=self.invoice)

    def test_split_between_two_employees(self):
        invoice = assign_commission_split(
            company=self.company,
            invoice_id=self.invoice.id,
            splits=[
                {"employee_id": self.alice.id, "split_percentage": "60"},
                {"employee_id": self.bob.id, "split_percentage": "40"},
            ],
        )

        # 500 x 60% x 10% + 500 x 40% x 4%
        self.assertEqual(invoice.commission_total, Decimal("38.00"))
        self.assertEqual(invoice.primary_employee_id, self.alice.id)
        self.assertEqual(invoice.commission_splits.count(), 2)

    def test_split_must_sum_to_hundred(self):
        with self.assertRaises(ValidationFailed):
            assign_commission_split(
                company=self.company,
                invoice_id=self.invoice.id,
                splits=[
                    {"employee_id": self.alice.id, "split_percentage": "60"},
                    {"employee_id": self.bob.id, "split_percentage": "30"},
                ],
            )

    def test_duplicate_employee_rejected(self):
        with self.assertRaises(ValidationFailed):
            assign_commission_split(
                company=self.company,
                invoice_id=self.invoice.id,
                splits=[
                    {"employee_id": self.alice.id, "split_percentage": "50"},
                    {"employee_id": self.alice.id, "split_percentage": "50"},
                ],
            )

    def test_split_survives_invoice_post(self):
        warehouse = make_warehouse(self.company)
        stock_in(self.company, warehouse, self.item, 10)
        assign_commission_split(
            company=self.company,
            invoice_id=self.invoice.id,
            splits=[
                {"employee_id": self.alice.id, "split_percentage": "60"},
                {"employee_id": self.bob.id, "split_percentage": "40"},
            ],
        )
        Employee.objects.filter(pk=self.bob.pk).update(commission_rate=Decimal("5.00"))

        result = post_invoice(company=self.company, invoice_id=self.invoice.id, warehouse_id=warehouse.id)

        self.assertTrue(result["commission_success"])
        self.assertEqual(result["commission_employee_id"], str(self.alice.id))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.commission_split_count, 2)
        # 500 x 60% x 10% + 500 x 40% x 5% (rate changed after the split)
        self.assertEqual(self.invoice.commission_total, Decimal("40.00"))
        rows = {r.employee_id: r for r in self.invoice.commission_splits.all()}
        self.assertEqual(rows[self.alice.id].split_percentage, Decimal("60.00"))
        self.assertEqual(rows[self.alice.id].commission_amount, Decimal("30.00"))
        self.assertEqual(rows[self.bob.id].commission_amount, Decimal("10.00"))
        self.assertTrue(rows[self.alice.id].is_primary)

    def test_explicit_employee_replaces_split(self):
        assign_commission_split(
            company=self.company,
            invoice_id=self.invoice.id,
            splits=[
                {"employee_id": self.alice.id, "split_percentage": "50"},
                {"employee_id": self.bob.id, "split_percentage": "50"},
            ],
        )

        calculate_invoice_commission(invoice=self.invoice, employee=self.bob)

        self.assertEqual(self.invoice.commission_splits.get().employee_id, self.bob.id)
