# inventory/tests/test_normalization.py

from decimal import Decimal

from django.test import TestCase

from common.tests.factories import make_company, make_item, packaging
from inventory.models import ItemPackaging
from inventory.services.exceptions import NormalizationError
from inventory.services.normalization import normalize_line, normalize_quantity


class NormalizationTests(TestCase):
    """
    GUARANTEES:
    - normalized_qty = input_qty x conversion_factor
    - base packaging / no packaging => factor 1
    - foreign, inactive or missing packaging is rejected
    """

    def setUp(self):
        self.company = make_company(with_chart=False)
        self.item = make_item(self.company, "SOAP", pack=("Carton", 12))
        self.carton = packaging(self.item, "Carton")

    def test_carton_converts_to_base_units(self):
        line = normalize_line(company=self.company, item=self.item, packaging=self.carton, input_qty=3)

        self.assertEqual(line.normalized_qty, Decimal("36"))
        self.assertEqual(line.conversion_factor, Decimal("12"))
        self.assertEqual(line.input_qty, Decimal("3"))
        self.assertEqual(line.input_packaging_id, self.carton.id)
        self.assertEqual(line.base_package_id, packaging(self.item, "Piece").id)
        self.assertEqual(line.uom, "piece")

    def test_packaging_may_be_given_by_id(self):
        qty = normalize_quantity(
            company=self.company, item=self.item, packaging=str(self.carton.id), input_qty="1.5"
        )
        self.assertEqual(qty, Decimal("18"))

    def test_no_packaging_means_factor_one(self):
        line = normalize_line(company=self.company, item=self.item, input_qty=7)

        self.assertEqual(line.conversion_factor, Decimal("1"))
        self.assertEqual(line.normalized_qty, Decimal("7"))
        self.assertIsNone(line.input_packaging_id)

    def test_base_packaging_means_factor_one(self):
        line = normalize_line(
            company=self.company, item=self.item, packaging=packaging(self.item, "Piece"), input_qty=4
        )
        self.assertEqual(line.normalized_qty, Decimal("4"))

    def test_packaging_of_another_item_rejected(self):
        other = make_item(self.company, "BRUSH", pack=("Box", 6))

        with self.assertRaises(NormalizationError):
            normalize_line(company=self.company, item=self.item, packaging=packaging(other, "Box"), input_qty=1)

    def test_inactive_packaging_rejected(self):
        ItemPackaging.objects.filter(pk=self.carton.pk).update(is_active=False)

        with self.assertRaises(NormalizationError):
            normalize_line(company=self.company, item=self.item, packaging=self.carton.id, input_qty=1)

    def test_unknown_packaging_id_rejected(self):
        with self.assertRaises(NormalizationError):
            normalize_line(company=self.company, item=self.item, packaging="not-a-uuid", input_qty=1)

    def test_item_of_another_company_rejected(self):
        other_company = make_company("other", with_chart=False)

        with self.assertRaises(NormalizationError):
            normalize_line(company=other_company, item=self.item, input_qty=1)

    def test_non_positive_quantity_rejected(self):
        for qty in (0, -1, "", None, "abc"):
            with self.subTest(qty=qty), self.assertRaises(NormalizationError):
                normalize_line(company=self.company, item=self.item, input_qty=qty)

    def test_inactive_item_rejected(self):
        self.item.is_active = False
        self.item.save(update_fields=["is_active"])

        with self.assertRaises(NormalizationError):
            normalize_line(company=self.company, item=self.item, input_qty=1)
