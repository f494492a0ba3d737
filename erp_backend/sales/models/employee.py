# sales/models/employee.py

"""
SALES EMPLOYEES + DISTRIBUTION TERRITORIES

commission_rate is a percentage (5.00 == 5%).
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from common.models import SoftDeleteModel, TimeStampedModel


class Employee(SoftDeleteModel):
    ROLE_SALES_AGENT = "sales_agent"
    ROLE_SALES_MANAGER = "sales_manager"
    ROLE_OTHER = "other"

    ROLE_CHOICES = [
        (ROLE_SALES_AGENT, "Sales Agent"),
        (ROLE_SALES_MANAGER, "Sales Manager"),
        (ROLE_OTHER, "Other"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="employees",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="employee_profiles",
    )

    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_SALES_AGENT)

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text="Commission percentage of invoice total",
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_employee_company_code_alive",
            )
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"


class EmployeeTerritory(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.CASCADE,
        related_name="employee_territories",
    )
    employee = models.ForeignKey(
        Employee,
        on_delete=models.CASCADE,
        related_name="territories",
    )

    city = models.CharField(max_length=100, blank=True, default="")
    region_state = models.CharField(max_length=100, blank=True, default="")
    is_primary = models.BooleanField(default=False)

    class Meta:
        ordering = ["-is_primary", "created_at"]
        indexes = [
            models.Index(fields=["company", "city"], name="sales_terr_company_city_idx"),
            models.Index(fields=["company", "region_state"], name="sales_terr_company_state_idx"),
        ]

    def __str__(self):
        place = self.city or self.region_state or "?"
        return f"{self.employee_id} → {place}"
