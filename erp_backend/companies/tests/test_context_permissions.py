# companies/tests/test_context_permissions.py

from io import StringIO

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.core.management import call_command
from django.test import RequestFactory, TestCase

from accounting.models import Account
from common.tests.factories import api_client_for, make_company, make_user
from companies.models import BusinessUnit, Membership
from companies.services.context import TenantContextError, resolve_request_context
from inventory.models import Warehouse
from permissions.roles import (
    CAP_GRN_APPROVE,
    CAP_INVENTORY_ADJUST_POST,
    CAP_SALES_INVOICES_POST,
    ROLE_CAPABILITIES,
    effective_capabilities_for,
)

User = get_user_model()


class RequestContextTests(TestCase):
    """
    GUARANTEES:
    - X-Company-Id wins, else the default membership, else the only one
    - a company the user is not a member of is refused
    """

    def setUp(self):
        self.factory = RequestFactory()
        self.acme = make_company("acme", with_chart=False)
        self.globex = make_company("globex", with_chart=False)
        self.user = make_user(self.acme, role=Membership.ROLE_SALES, username="sam")

    def _request(self, **headers):
        request = self.factory.get("/api/", **headers)
        request.user = self.user
        return request

    def test_single_membership_resolves_without_header(self):
        ctx = resolve_request_context(self._request())

        self.assertEqual(ctx.company, self.acme)
        self.assertEqual(ctx.role, Membership.ROLE_SALES)

    def test_multiple_memberships_need_header_or_default(self):
        Membership.objects.create(user=self.user, company=self.globex, role=Membership.ROLE_VIEWER)

        with self.assertRaises(TenantContextError):
            resolve_request_context(self._request())

        ctx = resolve_request_context(self._request(HTTP_X_COMPANY_ID=str(self.globex.id)))
        self.assertEqual(ctx.company, self.globex)
        self.assertEqual(ctx.role, Membership.ROLE_VIEWER)

    def test_default_membership_used(self):
        Membership.objects.create(
            user=self.user, company=self.globex, role=Membership.ROLE_VIEWER, is_default=True
        )

        self.assertEqual(resolve_request_context(self._request()).company, self.globex)

    def test_foreign_company_refused(self):
        with self.assertRaises(TenantContextError):
            resolve_request_context(self._request(HTTP_X_COMPANY_ID=str(self.globex.id)))

    def test_malformed_header_refused(self):
        with self.assertRaises(TenantContextError):
            resolve_request_context(self._request(HTTP_X_COMPANY_ID="not-a-uuid"))

    def test_business_unit_header(self):
        unit = BusinessUnit.objects.create(company=self.acme, code="NORTH", name="North")
        foreign = BusinessUnit.objects.create(company=self.globex, code="SOUTH", name="South")

        ctx = resolve_request_context(self._request(HTTP_X_BUSINESS_UNIT_ID=str(unit.id)))
        self.assertEqual(ctx.business_unit, unit)

        with self.assertRaises(TenantContextError):
            resolve_request_context(self._request(HTTP_X_BUSINESS_UNIT_ID=str(foreign.id)))

    def test_anonymous_refused(self):
        request = self.factory.get("/api/")
        request.user = AnonymousUser()

        with self.assertRaises(TenantContextError):
            resolve_request_context(request)


class CapabilityTests(TestCase):
    """
    GUARANTEES:
    - capabilities come from the membership role of the resolved company
    - segregation of duties: purchasing submits GRNs, managers approve
    """

    def setUp(self):
        self.factory = RequestFactory()
        self.company = make_company(with_chart=False)

    def _caps(self, user):
        request = self.factory.get("/api/")
        request.user = user
        return effective_capabilities_for(request)

    def test_role_map(self):
        for role, expected in ROLE_CAPABILITIES.items():
            with self.subTest(role=role):
                user = make_user(self.company, role=role)
                self.assertEqual(self._caps(user), expected)

    def test_segregation_of_duties(self):
        self.assertNotIn(CAP_GRN_APPROVE, ROLE_CAPABILITIES[Membership.ROLE_PURCHASING])
        self.assertNotIn(CAP_INVENTORY_ADJUST_POST, ROLE_CAPABILITIES[Membership.ROLE_WAREHOUSE])
        self.assertNotIn(CAP_SALES_INVOICES_POST, ROLE_CAPABILITIES[Membership.ROLE_VIEWER])

    def test_superuser_acts_as_admin(self):
        user = make_user(self.company, role=Membership.ROLE_VIEWER, username="root")
        User.objects.filter(pk=user.pk).update(is_superuser=True)
        user.refresh_from_db()

        self.assertEqual(self._caps(user), ROLE_CAPABILITIES[Membership.ROLE_ADMIN])

    def test_user_without_membership_gets_403(self):
        loner = User.objects.create_user(username="loner", password="pass")

        res = api_client_for(loner).get("/api/inventory/balances/")

        self.assertEqual(res.status_code, 403)


class SeedCompanyCommandTests(TestCase):
    def test_seed_creates_company_graph(self):
        out = StringIO()

        call_command("seed_company", "demo", "--name", "Demo Ltd", stdout=out)
        call_command("seed_company", "demo", stdout=out)

        self.assertTrue(Account.objects.filter(company__code="demo", code="1100").exists())
        self.assertTrue(Warehouse.objects.filter(company__code="demo", code="MAIN").exists())
        self.assertTrue(BusinessUnit.objects.filter(company__code="demo", code="HQ").exists())
        self.assertEqual(
            Membership.objects.filter(company__code="demo").count(), len(Membership.ROLE_CHOICES)
        )
        self.assertTrue(User.objects.filter(username="admin@demo", is_superuser=True).exists())
