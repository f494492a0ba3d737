# sales/models/customer.py

import uuid

from django.db import models
from django.db.models import Q

from common.models import SoftDeleteModel


class Customer(SoftDeleteModel):
    """
    Customer master. Billing city/state drive commission territory matching.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="customers",
    )

    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")

    billing_address = models.TextField(blank=True, default="")
    billing_city = models.CharField(max_length=100, blank=True, default="")
    billing_state = models.CharField(max_length=100, blank=True, default="")

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_customer_company_code_alive",
            )
        ]

    def __str__(self):
        return self.name
